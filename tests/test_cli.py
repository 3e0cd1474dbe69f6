"""Tests for the Typer CLI — knowledge base built from test doubles."""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

import cli.main as cli_main
from conftest import DIM, KeywordEmbedder, ScriptedLLM
from docrag.config import Settings
from docrag.service import KnowledgeBase
from docrag.vectorstore.faiss_store import FAISSStore

runner = CliRunner()

_ID_RE = re.compile(r"ID: ([0-9a-f]{32})")


@pytest.fixture(autouse=True)
def doubles(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> ScriptedLLM:
    """Every command opens the same on-disk index with shared doubles."""
    monkeypatch.chdir(tmp_path)
    embedder, llm = KeywordEmbedder(), ScriptedLLM()
    index_path = str(tmp_path / "index")

    def build(settings: Settings) -> KnowledgeBase:
        return KnowledgeBase(embedder, FAISSStore(DIM, path=index_path), llm, settings=settings)

    monkeypatch.setattr(cli_main.KnowledgeBase, "from_settings", staticmethod(build))
    return llm


def _add(text: str) -> str:
    result = runner.invoke(cli_main.app, ["add-text", text])
    assert result.exit_code == 0, result.output
    return _ID_RE.search(result.output).group(1)


class TestIngestCommands:
    def test_add_text_and_list(self):
        doc_id = _add("Paris is the capital of France.")
        result = runner.invoke(cli_main.app, ["list"])
        assert result.exit_code == 0
        assert "Documents (1)" in result.output
        assert doc_id[:8] in result.output

    def test_registry_defaults_to_disk(self, tmp_path: Path):
        _add("hello world")
        assert (tmp_path / ".docrag" / "registry.json").exists()

    def test_add_csv_file(self, tmp_path: Path, sample_csv_bytes: bytes):
        path = tmp_path / "cities.csv"
        path.write_bytes(sample_csv_bytes)
        result = runner.invoke(cli_main.app, ["add-file", str(path)])
        assert result.exit_code == 0, result.output
        assert "Kind: csv" in result.output
        assert "Chunks: 3" in result.output

    def test_unsupported_kind_reports_error(self, tmp_path: Path):
        path = tmp_path / "deck.pptx"
        path.write_bytes(b"PK\x03\x04")
        result = runner.invoke(cli_main.app, ["add-file", str(path), "--kind", "pptx"])
        assert result.exit_code == 1
        assert "not supported" in result.output

    def test_list_empty(self):
        result = runner.invoke(cli_main.app, ["list"])
        assert "No documents" in result.output


class TestQueryCommands:
    def test_query(self, doubles: ScriptedLLM):
        _add("Paris is the capital of France.")
        result = runner.invoke(cli_main.app, ["query", "What is the capital of France?"])
        assert result.exit_code == 0, result.output
        assert "According to the documents" in result.output
        assert "Confidence: 0.75" in result.output
        assert doubles.calls == 1

    def test_query_stream(self):
        _add("Paris is the capital of France.")
        result = runner.invoke(cli_main.app, ["query", "--stream", "capital of France"])
        assert result.exit_code == 0, result.output
        assert "Paris" in result.output
        assert "Sources" in result.output

    def test_blank_query_rejected(self):
        result = runner.invoke(cli_main.app, ["query", "   "])
        assert result.exit_code == 1
        assert "Query is required" in result.output


class TestManagementCommands:
    def test_remove(self):
        doc_id = _add("hello world")
        result = runner.invoke(cli_main.app, ["remove", doc_id])
        assert result.exit_code == 0
        assert "Removed" in result.output
        assert "No documents" in runner.invoke(cli_main.app, ["list"]).output

    def test_remove_unknown(self):
        result = runner.invoke(cli_main.app, ["remove", "missing"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_clear(self):
        _add("one fact")
        _add("another fact")
        result = runner.invoke(cli_main.app, ["clear", "--yes"])
        assert result.exit_code == 0
        assert "Removed 2 documents" in result.output

    def test_status(self):
        _add("hello world")
        result = runner.invoke(cli_main.app, ["status"])
        assert result.exit_code == 0
        assert "FAISSStore" in result.output
        assert "qdrant" in result.output
