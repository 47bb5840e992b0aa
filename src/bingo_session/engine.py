"""Number draw engine.

Pure functions over immutable :class:`GameState` snapshots. Nothing here
touches storage; callers persist the returned state themselves and must
always draw from the latest persisted snapshot.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Protocol, Union

from .clock import utc_now_iso
from .errors import NoAvailableNumbersError
from .models import DrawHistoryEntry, GameState
from .rng import RNG

logger = logging.getLogger(__name__)

BINGO_MIN = 1
BINGO_MAX = 75

# Column letters and their inclusive number ranges
BINGO_COLUMNS = (
    ("B", 1, 15),
    ("I", 16, 30),
    ("N", 31, 45),
    ("G", 46, 60),
    ("O", 61, 75),
)


class RandomSource(Protocol):
    def random(self) -> float: ...


_default_rng = RNG()


@dataclass(frozen=True)
class DrawOptions:
    seed: Optional[Union[int, float]] = None
    timestamp: Optional[str] = None


def number_range() -> List[int]:
    return list(range(BINGO_MIN, BINGO_MAX + 1))


def available_numbers(history: Iterable[DrawHistoryEntry]) -> List[int]:
    """Return the undrawn numbers of the domain in ascending order."""
    used = {entry.number for entry in history}
    return [candidate for candidate in number_range() if candidate not in used]


def _usable_seed(seed) -> bool:
    if isinstance(seed, bool) or not isinstance(seed, (int, float)):
        return False
    return math.isfinite(seed)


def choose_number(available: List[int], seed=None, rng: Optional[RandomSource] = None) -> int:
    """Pick one number from ``available``.

    A finite numeric seed selects ``available[abs(trunc(seed)) % len]``;
    otherwise the index comes from ``rng.random()``.
    """
    if not available:
        raise NoAvailableNumbersError()

    if _usable_seed(seed):
        index = abs(math.trunc(seed)) % len(available)
        return available[index]

    source = rng if rng is not None else _default_rng
    index = min(len(available) - 1, math.floor(source.random() * len(available)))
    return available[index]


def draw_next(
    state: GameState,
    options: Optional[DrawOptions] = None,
    rng: Optional[RandomSource] = None,
) -> GameState:
    """Draw the next number and return a new state; ``state`` is left untouched."""
    options = options or DrawOptions()
    available = available_numbers(state.draw_history)
    if not available:
        logger.info("Draw requested with every number already drawn")
        raise NoAvailableNumbersError()

    timestamp = options.timestamp if options.timestamp is not None else utc_now_iso()
    number = choose_number(available, options.seed, rng)
    entry = DrawHistoryEntry(
        number=number,
        sequence=len(state.draw_history) + 1,
        drawn_at=timestamp,
    )
    logger.debug("Drew %s (sequence %s, %d left)", number, entry.sequence, len(available) - 1)
    return replace(
        state,
        current_number=number,
        draw_history=tuple(state.draw_history) + (entry,),
        is_drawing=False,
        updated_at=timestamp,
    )


def reset_game(state: GameState, timestamp: Optional[str] = None) -> GameState:
    """Clear the history and current number, keeping ``created_at``."""
    return replace(
        state,
        current_number=None,
        draw_history=(),
        is_drawing=False,
        updated_at=timestamp or utc_now_iso(),
    )


def history_view(state: GameState) -> List[DrawHistoryEntry]:
    """History ordered newest first."""
    return sorted(state.draw_history, key=lambda entry: entry.sequence, reverse=True)


def letter_for(number: int) -> Optional[str]:
    for letter, low, high in BINGO_COLUMNS:
        if low <= number <= high:
            return letter
    return None
