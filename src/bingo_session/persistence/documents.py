"""Typed reads and writes of the three session documents.

Each reader returns None (or an empty list) when the document is missing,
corrupted or shaped wrongly; none of them raise. Prize entries are
checked one at a time and only the malformed ones are dropped.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..models import BgmPreference, GameState, Prize, prizes_from_list, prizes_to_list
from .schemas import (
    BGM_PREFERENCE_SCHEMA,
    GAME_STATE_SCHEMA,
    PRIZE_LIST_SCHEMA,
    PRIZE_SCHEMA,
    is_valid,
)
from .store import StorageKeys, VersionedStore

logger = logging.getLogger(__name__)


def read_game_state(store: VersionedStore) -> Optional[GameState]:
    raw = store.read_json(store.key(StorageKeys.GAME_STATE), None)
    if raw is None or not is_valid(raw, GAME_STATE_SCHEMA, "game state"):
        return None
    return GameState.from_dict(raw)


def read_prizes(store: VersionedStore) -> List[Prize]:
    raw = store.read_json(store.key(StorageKeys.PRIZES), None)
    if raw is None or not is_valid(raw, PRIZE_LIST_SCHEMA, "prize list"):
        return []
    valid = [item for index, item in enumerate(raw) if is_valid(item, PRIZE_SCHEMA, f"prize #{index}")]
    if len(valid) != len(raw):
        logger.warning("Dropped %d of %d stored prizes with an invalid shape", len(raw) - len(valid), len(raw))
    return prizes_from_list(valid)


def read_bgm(store: VersionedStore) -> Optional[BgmPreference]:
    raw = store.read_json(store.key(StorageKeys.BGM), None)
    if raw is None or not is_valid(raw, BGM_PREFERENCE_SCHEMA, "BGM preference"):
        return None
    return BgmPreference.from_dict(raw)


def write_game_state(store: VersionedStore, state: GameState) -> None:
    store.write_json(store.key(StorageKeys.GAME_STATE), state.to_dict())


def write_prizes(store: VersionedStore, prizes: Iterable[Prize]) -> None:
    store.write_json(store.key(StorageKeys.PRIZES), prizes_to_list(prizes))


def write_bgm(store: VersionedStore, preference: BgmPreference) -> None:
    store.write_json(store.key(StorageKeys.BGM), preference.to_dict())
