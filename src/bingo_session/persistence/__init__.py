"""Persistence layer for bingo sessions.

- Key/value media (in-memory and atomic JSON file)
- A namespaced JSON store with corruption self-healing
- JSON Schemas for the persisted documents
"""
from .media import JsonFileMedium, KeyValueMedium, MemoryMedium
from .schemas import (
    BGM_PREFERENCE_SCHEMA,
    GAME_STATE_SCHEMA,
    PRIZE_LIST_SCHEMA,
    PRIZE_SCHEMA,
    is_valid,
)
from .store import STORAGE_PREFIX, StorageKeys, VersionedStore

__all__ = [
    "KeyValueMedium",
    "MemoryMedium",
    "JsonFileMedium",
    "VersionedStore",
    "StorageKeys",
    "STORAGE_PREFIX",
    "GAME_STATE_SCHEMA",
    "PRIZE_LIST_SCHEMA",
    "PRIZE_SCHEMA",
    "BGM_PREFERENCE_SCHEMA",
    "is_valid",
]
