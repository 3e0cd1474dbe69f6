"""Application settings: YAML file, then ``RAG_<SECTION>__<FIELD>`` env overrides.

The settings file is found by walking up from the cwd. ``RAG_SETTINGS``
names a file explicitly; ``RAG_PROFILE=<name>`` prefers
``settings-<name>.yaml``. Provider credentials are read by the SDKs from
their own variables (``OPENAI_API_KEY``, ``ANTHROPIC_API_KEY``).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "RAG_"

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "ollama"
    model: str = "nomic-embed-text"
    dimension: int = Field(768, gt=0)


class VectorStoreSettings(BaseModel):
    backend: str = "qdrant"
    url: str | None = "http://localhost:6333"
    api_key: str | None = None
    path: str | None = None
    collection: str = "rag-documents"


class LLMSettings(BaseModel):
    provider: str = "ollama"
    model: str = "llama3.1:8b"
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1000, gt=0)


class ChunkingSettings(BaseModel):
    max_chars: int = Field(1000, gt=0)
    overlap_chars: int = Field(200, ge=0)

    @model_validator(mode="after")
    def _overlap_below_max(self) -> ChunkingSettings:
        if self.overlap_chars >= self.max_chars:
            raise ValueError("chunking.overlap_chars must be smaller than chunking.max_chars")
        return self


class IngestionSettings(BaseModel):
    csv_rows_per_segment: int = Field(1, ge=1)
    max_file_size_mb: int = Field(50, gt=0)
    sanitize: bool = True


class WebSettings(BaseModel):
    user_agent: str = "docrag/0.1 (+https://github.com/docrag)"
    respect_robots: bool = True
    follow_redirects: bool = True


class RetrievalSettings(BaseModel):
    top_k: int = Field(5, ge=1)
    snippet_chars: int = Field(150, gt=0)
    min_score: float = Field(0.0, ge=0.0, le=1.0)


class SynthesisSettings(BaseModel):
    confidence_base: float = Field(0.7, ge=0.0, le=1.0)
    confidence_step: float = Field(0.05, ge=0.0)
    confidence_cap: float = Field(0.95, ge=0.0, le=1.0)


class TimeoutSettings(BaseModel):
    """Upper bounds, in seconds, for each external dependency."""

    embedding: float = Field(30.0, gt=0)
    index: float = Field(15.0, gt=0)
    generation: float = Field(120.0, gt=0)
    fetch: float = Field(20.0, gt=0)


class RegistrySettings(BaseModel):
    path: str | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    synthesis: SynthesisSettings = Field(default_factory=SynthesisSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    explicit = os.getenv("RAG_SETTINGS")
    if explicit:
        return Path(explicit)

    profile = os.getenv("RAG_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def env_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, str]]:
    """Collect ``RAG_<SECTION>__<FIELD>=value`` variables by section.

    ``RAG_LLM__PROVIDER=openai`` becomes ``{"llm": {"provider": "openai"}}``.
    Values stay strings; pydantic coerces them.
    """
    overrides: dict[str, dict[str, str]] = {}
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, sep, field = name[len(ENV_PREFIX):].lower().partition("__")
        if sep and section in Settings.model_fields and field:
            overrides.setdefault(section, {})[field] = value
    return overrides


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from YAML, apply env overrides, fall back to defaults."""
    path = Path(path) if path else _find_settings_file()

    raw: dict[str, Any] = {}
    if path is not None:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
        logger.debug("Loaded settings from %s", path)

    for section, values in env_overrides(os.environ).items():
        raw[section] = {**(raw.get(section) or {}), **values}

    return Settings(**raw)
