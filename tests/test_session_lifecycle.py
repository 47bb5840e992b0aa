import json

import pytest

from bingo_session.clock import fixed_clock
from bingo_session.engine import DrawOptions
from bingo_session.errors import NoAvailableNumbersError
from bingo_session.models import BgmPreference, DrawHistoryEntry, GameState, GameStateEnvelope, Prize
from bingo_session.observable import StateHolder
from bingo_session.persistence import MemoryMedium, VersionedStore
from bingo_session.persistence.documents import write_bgm, write_game_state, write_prizes
from bingo_session.session import SessionService

NOW = "2025-01-01T00:00:00.000Z"

GAME_KEY = "bingo.v1.gameState"
PRIZES_KEY = "bingo.v1.prizes"
BGM_KEY = "bingo.v1.bgm"


class CountingMedium(MemoryMedium):
    def __init__(self, initial=None) -> None:
        super().__init__(initial)
        self.writes = []
        self.removals = []

    def set_item(self, key: str, value: str) -> None:
        self.writes.append(key)
        super().set_item(key, value)

    def remove_item(self, key: str) -> None:
        self.removals.append(key)
        super().remove_item(key)


class FailingPrizesMedium(MemoryMedium):
    """Accepts every write except the prize list."""

    def set_item(self, key: str, value: str) -> None:
        if key.endswith("prizes"):
            raise OSError("quota exceeded")
        super().set_item(key, value)


def sample_prizes():
    return [
        Prize(id="p-1", order=0, prize_name="一等", item_name="Switch", selected=True),
        Prize(id="p-2", order=1, prize_name="二等", item_name="Gift card", selected=False),
    ]


def drawn_state(*numbers: int) -> GameState:
    history = tuple(
        DrawHistoryEntry(number=n, sequence=i + 1, drawn_at=NOW) for i, n in enumerate(numbers)
    )
    return GameState(
        current_number=numbers[-1] if numbers else None,
        draw_history=history,
        is_drawing=False,
        created_at=NOW,
        updated_at=NOW,
    )


def stored(medium: MemoryMedium, key: str):
    return json.loads(medium.get_item(key))


def test_start_session_resets_selection_and_keeps_bgm(store, medium, clock):
    write_prizes(store, sample_prizes())
    saved_bgm = BgmPreference(enabled=False, volume=0.2, updated_at="2024-12-31T00:00:00.000Z")
    write_bgm(store, saved_bgm)

    envelope = SessionService(store, clock=clock).start_session()

    assert envelope.game_state == GameState.new(NOW)
    assert [p.selected for p in envelope.prizes] == [False, False]
    assert [p.id for p in envelope.prizes] == ["p-1", "p-2"]
    assert envelope.bgm == saved_bgm

    # Everything is persisted
    assert stored(medium, GAME_KEY) == envelope.game_state.to_dict()
    assert [p["selected"] for p in stored(medium, PRIZES_KEY)] == [False, False]
    assert stored(medium, BGM_KEY)["volume"] == 0.2


def test_start_session_can_keep_selection(store, clock):
    write_prizes(store, sample_prizes())
    envelope = SessionService(store, clock=clock).start_session(reset_prizes=False)
    assert [p.selected for p in envelope.prizes] == [True, False]


def test_start_session_defaults_bgm_when_missing(store, clock):
    envelope = SessionService(store, clock=clock).start_session()

    assert envelope.bgm == BgmPreference(enabled=True, volume=0.5, updated_at=NOW)
    assert envelope.prizes == ()


def test_start_session_uses_configured_default_volume(store, clock):
    envelope = SessionService(store, clock=clock, default_bgm_volume=0.8).start_session()
    assert envelope.bgm.volume == 0.8


def test_resume_without_game_state_returns_none(store, clock):
    write_prizes(store, sample_prizes())
    assert SessionService(store, clock=clock).resume_session() is None


def test_resume_returns_exactly_what_was_persisted(clock):
    medium = CountingMedium()
    store = VersionedStore(medium)
    sessions = SessionService(store, clock=clock)
    write_prizes(store, sample_prizes())
    envelope = sessions.draw(sessions.start_session(reset_prizes=False), DrawOptions(seed=3))
    medium.writes.clear()

    resumed = SessionService(store, clock=fixed_clock("2030-01-01T00:00:00.000Z")).resume_session()

    assert resumed == envelope
    assert medium.writes == []
    assert medium.removals == []


def test_resume_defaults_missing_bgm_without_writing(clock):
    medium = CountingMedium()
    store = VersionedStore(medium)
    write_game_state(store, drawn_state(5, 10))
    medium.writes.clear()

    resumed = SessionService(store, clock=clock).resume_session()

    assert resumed is not None
    assert resumed.bgm == BgmPreference(enabled=True, volume=0.5, updated_at=NOW)
    assert resumed.game_state.drawn_numbers == [5, 10]
    assert medium.get_item(BGM_KEY) is None
    assert medium.writes == []


def test_resume_treats_corrupted_game_state_as_absent(store, medium, clock):
    medium.set_item(GAME_KEY, "{not json")

    assert SessionService(store, clock=clock).resume_session() is None
    assert medium.get_item(GAME_KEY) is None


def test_resume_treats_wrongly_shaped_game_state_as_absent(store, medium, clock):
    medium.set_item(GAME_KEY, json.dumps({"currentNumber": "seven"}))

    assert SessionService(store, clock=clock).resume_session() is None
    # Valid JSON is left in place
    assert medium.get_item(GAME_KEY) is not None


def test_ensure_session_prefers_stored_state(store, clock):
    write_game_state(store, drawn_state(42))
    sessions = SessionService(store, clock=clock)

    assert sessions.ensure_session().game_state.current_number == 42


def test_ensure_session_starts_when_nothing_stored(store, medium, clock):
    envelope = SessionService(store, clock=clock).ensure_session()

    assert envelope.game_state == GameState.new(NOW)
    assert medium.get_item(GAME_KEY) is not None


def test_stored_state_predicates(store, medium, clock):
    sessions = SessionService(store, clock=clock)
    assert sessions.has_stored_game_state() is False
    assert sessions.has_stored_draw_history() is False
    assert sessions.has_stored_prize_selection() is False

    write_game_state(store, GameState.new(NOW))
    assert sessions.has_stored_game_state() is True
    assert sessions.has_stored_draw_history() is False

    write_game_state(store, drawn_state(7))
    write_prizes(store, sample_prizes())
    assert sessions.has_stored_draw_history() is True
    assert sessions.has_stored_prize_selection() is True

    # A corrupted key still counts as stored until a read removes it
    medium.set_item(GAME_KEY, "garbage")
    assert sessions.has_stored_game_state() is True
    assert sessions.has_stored_draw_history() is False
    assert medium.get_item(GAME_KEY) is None
    assert sessions.has_stored_game_state() is False


def test_draw_persists_new_state(store, medium, clock):
    sessions = SessionService(store, clock=clock)
    envelope = sessions.start_session()

    updated = sessions.draw(envelope, DrawOptions(seed=0))

    assert updated.game_state.current_number == 1
    assert updated.game_state.draw_history == (DrawHistoryEntry(number=1, sequence=1, drawn_at=NOW),)
    assert envelope.game_state.draw_history == ()
    assert stored(medium, GAME_KEY)["drawHistory"] == [{"number": 1, "sequence": 1, "drawnAt": NOW}]


def test_draw_keeps_explicit_timestamp(store, clock):
    sessions = SessionService(store, clock=clock)
    updated = sessions.draw(sessions.start_session(), DrawOptions(seed=0, timestamp="2025-06-01T12:00:00.000Z"))
    assert updated.game_state.updated_at == "2025-06-01T12:00:00.000Z"


def test_draw_on_exhausted_domain_writes_nothing(clock):
    medium = CountingMedium()
    store = VersionedStore(medium)
    sessions = SessionService(store, clock=clock)
    envelope = sessions.start_session()
    full = GameStateEnvelope(game_state=drawn_state(*range(1, 76)), prizes=(), bgm=envelope.bgm)
    medium.writes.clear()

    with pytest.raises(NoAvailableNumbersError):
        sessions.draw(full)
    assert medium.writes == []


def test_reset_game_keeps_prizes_and_bgm(store, clock):
    write_prizes(store, sample_prizes())
    sessions = SessionService(store, clock=clock)
    envelope = sessions.draw(sessions.start_session(reset_prizes=False), DrawOptions(seed=9))

    reset = sessions.reset_game(envelope)

    assert reset.game_state.draw_history == ()
    assert reset.game_state.current_number is None
    assert reset.prizes == envelope.prizes
    assert reset.bgm == envelope.bgm
    assert sessions.resume_session() == reset


def test_partial_write_failure_leaves_earlier_writes_committed(clock):
    medium = FailingPrizesMedium()
    store = VersionedStore(medium)
    sessions = SessionService(store, clock=clock)

    with pytest.raises(OSError):
        sessions.start_session()

    # Game state was written before the prize list failed; BGM never was
    assert medium.get_item(GAME_KEY) is not None
    assert medium.get_item(PRIZES_KEY) is None
    assert medium.get_item(BGM_KEY) is None


def test_unavailable_storage_still_runs_a_session(clock):
    sessions = SessionService(VersionedStore(None), clock=clock)

    envelope = sessions.draw(sessions.start_session(), DrawOptions(seed=74))

    assert envelope.game_state.current_number == 75
    assert sessions.resume_session() is None


def test_holder_receives_persisted_and_resumed_envelopes(store, clock):
    holder = StateHolder(None)
    seen = []
    holder.subscribe(seen.append)
    sessions = SessionService(store, clock=clock, holder=holder)

    started = sessions.start_session()
    drawn = sessions.draw(started, DrawOptions(seed=1))

    assert seen == [started, drawn]
    assert holder.get() is drawn

    fresh_holder = StateHolder(None)
    SessionService(store, clock=clock, holder=fresh_holder).resume_session()
    assert fresh_holder.get() == drawn


def test_clear_all_removes_versioned_keys_only(store, medium, clock):
    medium.set_item("other.app", "keep")
    sessions = SessionService(store, clock=clock)
    sessions.start_session()

    assert sessions.clear_all() == 3
    assert medium.keys() == ["other.app"]


def test_toggle_bgm_and_set_volume(store, clock):
    sessions = SessionService(store, clock=clock)

    toggled = sessions.toggle_bgm()
    assert toggled.enabled is False
    assert sessions.get_bgm_preference() == toggled

    louder = sessions.set_bgm_volume(1.7)
    assert louder.volume == 1.0
    assert louder.enabled is False
    assert sessions.get_bgm_preference().volume == 1.0


def test_out_of_range_stored_volume_is_ignored(store, medium, clock):
    medium.set_item(BGM_KEY, json.dumps({"enabled": False, "volume": 3, "updatedAt": NOW}))

    preference = SessionService(store, clock=clock).get_bgm_preference()

    assert preference == BgmPreference(enabled=True, volume=0.5, updated_at=NOW)


def test_malformed_prize_entry_does_not_wipe_the_others(store, medium, clock, caplog):
    good = [p.to_dict() for p in sample_prizes()]
    bad = dict(good[1], id="p-3", order=2, memo=7)
    medium.set_item(PRIZES_KEY, json.dumps([good[0], bad, good[1]]))

    envelope = SessionService(store, clock=clock).start_session()

    assert [p.id for p in envelope.prizes] == ["p-1", "p-2"]
    assert [p["id"] for p in stored(medium, PRIZES_KEY)] == ["p-1", "p-2"]
    assert "prize #1" in caplog.text
