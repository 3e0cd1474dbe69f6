"""Named component registries with lazy imports.

Providers and stores are listed as ``(key, module_path, class_name)`` and
imported only when asked for, so optional SDKs (openai, anthropic, faiss,
sentence-transformers) are needed only by the backends that use them.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

C = TypeVar("C")


class ComponentRegistry(Generic[C]):
    """Map configuration keys to lazily imported classes.

    ``create`` builds a new instance on every call; the caller owns it.
    """

    def __init__(self, kind: str, entries: list[tuple[str, str, str]]):
        self.kind = kind
        self._entries = {key: (module_path, cls_name) for key, module_path, cls_name in entries}

    def keys(self) -> list[str]:
        return list(self._entries)

    def create(self, key: str, **kwargs: Any) -> C:
        try:
            module_path, cls_name = self._entries[key.lower().strip()]
        except KeyError:
            raise ValueError(f"Unknown {self.kind} '{key}'. Available: {self.keys()}") from None

        cls = getattr(importlib.import_module(module_path), cls_name)
        logger.debug("Creating %s %s", self.kind, cls_name)
        return cls(**kwargs)
