from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

DEFAULT_BGM_VOLUME = 0.5


@dataclass(frozen=True)
class DrawHistoryEntry:
    """One recorded draw: the number, its 1-based sequence and when it was drawn."""

    number: int
    sequence: int
    drawn_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {"number": self.number, "sequence": self.sequence, "drawnAt": self.drawn_at}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "DrawHistoryEntry":
        return DrawHistoryEntry(
            number=int(data["number"]),
            sequence=int(data["sequence"]),
            drawn_at=str(data["drawnAt"]),
        )


@dataclass(frozen=True)
class GameState:
    """Snapshot of a running game.

    ``draw_history`` is a tuple so a snapshot handed to a caller can never be
    extended in place; the engine always builds a new state.
    """

    current_number: Optional[int]
    draw_history: tuple
    is_drawing: bool
    created_at: str
    updated_at: str

    @classmethod
    def new(cls, now: str) -> "GameState":
        return cls(
            current_number=None,
            draw_history=(),
            is_drawing=False,
            created_at=now,
            updated_at=now,
        )

    @property
    def drawn_numbers(self) -> List[int]:
        return [entry.number for entry in self.draw_history]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentNumber": self.current_number,
            "drawHistory": [entry.to_dict() for entry in self.draw_history],
            "isDrawing": self.is_drawing,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "GameState":
        current = data.get("currentNumber")
        return GameState(
            current_number=int(current) if current is not None else None,
            draw_history=tuple(DrawHistoryEntry.from_dict(e) for e in data.get("drawHistory", [])),
            is_drawing=bool(data.get("isDrawing", False)),
            created_at=str(data["createdAt"]),
            updated_at=str(data["updatedAt"]),
        )


@dataclass(frozen=True)
class Prize:
    id: str
    order: int
    prize_name: str
    item_name: str
    image_path: Optional[str] = None
    selected: bool = False
    memo: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "order": self.order,
            "prizeName": self.prize_name,
            "itemName": self.item_name,
            "imagePath": self.image_path,
            "selected": self.selected,
            "memo": self.memo,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Prize":
        return Prize(
            id=str(data["id"]),
            order=int(data["order"]),
            prize_name=str(data["prizeName"]),
            item_name=str(data["itemName"]),
            image_path=data.get("imagePath"),
            selected=bool(data.get("selected", False)),
            memo=data.get("memo"),
        )


def prizes_to_list(prizes) -> List[Dict[str, Any]]:
    return [p.to_dict() for p in prizes]


def prizes_from_list(data) -> List[Prize]:
    return [Prize.from_dict(item) for item in data]


def normalize_prize_order(prizes) -> List[Prize]:
    """Sort by ``order`` (stable) and renumber to a contiguous 0..n-1 range."""
    ordered = sorted(prizes, key=lambda p: p.order)
    return [replace(prize, order=index) for index, prize in enumerate(ordered)]


def _clamp(val: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(val)))


@dataclass(frozen=True)
class BgmPreference:
    enabled: bool
    volume: float
    updated_at: str

    @classmethod
    def default(cls, now: str, volume: float = DEFAULT_BGM_VOLUME) -> "BgmPreference":
        return cls(enabled=True, volume=_clamp(volume, 0.0, 1.0), updated_at=now)

    def with_volume(self, volume: float, now: str) -> "BgmPreference":
        return replace(self, volume=_clamp(volume, 0.0, 1.0), updated_at=now)

    def toggled(self, now: str) -> "BgmPreference":
        return replace(self, enabled=not self.enabled, updated_at=now)

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "volume": self.volume, "updatedAt": self.updated_at}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "BgmPreference":
        return BgmPreference(
            enabled=bool(data["enabled"]),
            volume=data["volume"],
            updated_at=str(data["updatedAt"]),
        )


@dataclass(frozen=True)
class GameStateEnvelope:
    """Game state, prize list and BGM preference persisted and restored together."""

    game_state: GameState
    prizes: tuple
    bgm: BgmPreference

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gameState": self.game_state.to_dict(),
            "prizes": prizes_to_list(self.prizes),
            "bgm": self.bgm.to_dict(),
        }


@dataclass(frozen=True)
class SkipRecord:
    id: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "reason": self.reason}


@dataclass
class CsvParseResult:
    prizes: List[Prize] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)


@dataclass
class CsvImportResult:
    source_name: str
    added_count: int
    skipped: List[SkipRecord]
    processed_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceName": self.source_name,
            "addedCount": self.added_count,
            "skipped": [s.to_dict() for s in self.skipped],
            "processedAt": self.processed_at,
        }
