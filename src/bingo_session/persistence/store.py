from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .media import KeyValueMedium

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "bingo.v1."


class StorageKeys:
    """Names of the persisted documents, relative to the store prefix."""

    GAME_STATE = "gameState"
    PRIZES = "prizes"
    BGM = "bgm"


class VersionedStore:
    """Namespaced JSON store on top of a key/value medium.

    Reads never raise: a missing medium or key yields the fallback, and a
    value that is not valid JSON is deleted before the fallback is returned.
    Writes are not guarded; medium errors propagate to the caller.
    """

    def __init__(self, medium: Optional[KeyValueMedium], prefix: str = STORAGE_PREFIX) -> None:
        self.medium = medium
        self.prefix = prefix

    def key(self, name: str) -> str:
        """Full storage key for a document name, e.g. ``bingo.v1.gameState``."""
        return f"{self.prefix}{name}"

    def read_json(self, key: str, fallback: Any = None) -> Any:
        if self.medium is None:
            return fallback
        raw = self.medium.get_item(key)
        if not raw:
            return fallback
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Corrupted JSON under key '%s'; removing it", key)
            self.medium.remove_item(key)
            return fallback

    def write_json(self, key: str, value: Any) -> None:
        if self.medium is None:
            logger.debug("Storage unavailable; dropping write to '%s'", key)
            return
        self.medium.set_item(key, json.dumps(value, ensure_ascii=False))

    def remove_key(self, key: str) -> None:
        if self.medium is None:
            return
        self.medium.remove_item(key)

    def has_key(self, key: str) -> bool:
        if self.medium is None:
            return False
        return bool(self.medium.get_item(key))

    def clear_versioned(self) -> int:
        """Delete every key under the prefix; other keys are left alone.

        Returns the number of keys removed.
        """
        if self.medium is None:
            return 0
        doomed = [key for key in self.medium.keys() if key.startswith(self.prefix)]
        for key in doomed:
            self.medium.remove_item(key)
        logger.info("Cleared %d versioned keys with prefix '%s'", len(doomed), self.prefix)
        return len(doomed)
