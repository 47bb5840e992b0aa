from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class KeyValueMedium(ABC):
    """String key/value backing store, the shape of a browser ``localStorage``."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the raw string stored under ``key`` or None."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete ``key``; no-op if absent."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Return a snapshot of every key currently stored."""


class MemoryMedium(KeyValueMedium):
    """Medium that holds data in memory only (tests, throwaway sessions)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._items.keys())


class JsonFileMedium(KeyValueMedium):
    """Medium persisted as a single JSON object on disk.

    File structure:
    {
      "bingo.v1.gameState": "{\\"currentNumber\\": null, ...}",
      "bingo.v1.prizes": "[...]"
    }

    Values are kept as raw strings so a corrupted entry stays corrupted on
    disk until the store above repairs it. Every mutation rewrites the whole
    file atomically.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = RLock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._load()
            items[key] = value
            self._atomic_write(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._load()
            if key not in items:
                return
            del items[key]
            self._atomic_write(items)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._load().keys())

    # Internal helpers

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to read storage file %s (%s). Treating as empty.", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Storage file %s does not hold a JSON object. Treating as empty.", self.path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _atomic_write(self, items: Dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            logger.debug("Atomic storage write to %s (%d keys)", self.path, len(items))
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
