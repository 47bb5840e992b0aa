"""
Bingo session core.

This package provides headless logic for a numbered-ball bingo caller:
- Draw engine over the 1..75 domain with seeded or random selection
- Prize list CSV import/export with per-row validation and dedup
- Versioned key/value JSON storage with corruption self-healing
- Session lifecycle composing game state, prizes and BGM preference

UI layers should import and compose these services.
"""
from .engine import (
    BINGO_MAX,
    BINGO_MIN,
    DrawOptions,
    available_numbers,
    draw_next,
    history_view,
    letter_for,
    reset_game,
)
from .csv_codec import PRIZE_CSV_HEADER, SkipReason, generate_prizes_csv, parse_prizes_csv
from .errors import (
    BingoError,
    InvalidCsvHeaderError,
    InvalidReorderError,
    NoAvailableNumbersError,
    PrizeNotFoundError,
)
from .models import (
    BgmPreference,
    CsvImportResult,
    CsvParseResult,
    DrawHistoryEntry,
    GameState,
    GameStateEnvelope,
    Prize,
    SkipRecord,
)
from .observable import StateHolder
from .persistence import JsonFileMedium, MemoryMedium, StorageKeys, VersionedStore
from .prizes import PrizeService
from .session import SessionService

__all__ = [
    "BINGO_MIN",
    "BINGO_MAX",
    "DrawOptions",
    "available_numbers",
    "draw_next",
    "reset_game",
    "history_view",
    "letter_for",
    "PRIZE_CSV_HEADER",
    "SkipReason",
    "parse_prizes_csv",
    "generate_prizes_csv",
    "BingoError",
    "NoAvailableNumbersError",
    "InvalidCsvHeaderError",
    "PrizeNotFoundError",
    "InvalidReorderError",
    "DrawHistoryEntry",
    "GameState",
    "Prize",
    "BgmPreference",
    "GameStateEnvelope",
    "SkipRecord",
    "CsvParseResult",
    "CsvImportResult",
    "StateHolder",
    "MemoryMedium",
    "JsonFileMedium",
    "VersionedStore",
    "StorageKeys",
    "PrizeService",
    "SessionService",
]
