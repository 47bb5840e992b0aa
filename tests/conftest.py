import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from bingo_session.clock import fixed_clock  # noqa: E402
from bingo_session.persistence import MemoryMedium, VersionedStore  # noqa: E402

NOW = "2025-01-01T00:00:00.000Z"


@pytest.fixture()
def medium() -> MemoryMedium:
    return MemoryMedium()


@pytest.fixture()
def store(medium: MemoryMedium) -> VersionedStore:
    return VersionedStore(medium)


@pytest.fixture()
def clock():
    return fixed_clock(NOW)
