from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .clock import Clock, utc_now_iso
from .engine import DrawOptions, RandomSource, draw_next, reset_game
from .models import DEFAULT_BGM_VOLUME, BgmPreference, GameState, GameStateEnvelope
from .observable import StateHolder
from .persistence.documents import (
    read_bgm,
    read_game_state,
    read_prizes,
    write_bgm,
    write_game_state,
    write_prizes,
)
from .persistence.store import StorageKeys, VersionedStore

logger = logging.getLogger(__name__)


class SessionService:
    """Start, resume and persist a game session.

    The session is persisted as three independent documents (game state,
    prizes, BGM preference). Writes are not transactional: if a later write
    fails, the earlier ones in the same call stay committed. Concurrent
    writers are last-write-wins per document.

    When a ``holder`` is given, every persisted or resumed envelope is
    published to it.
    """

    def __init__(
        self,
        store: VersionedStore,
        clock: Optional[Clock] = None,
        default_bgm_volume: float = DEFAULT_BGM_VOLUME,
        holder: Optional[StateHolder] = None,
    ) -> None:
        self._store = store
        self._holder = holder
        self._clock = clock or utc_now_iso
        self._default_bgm_volume = default_bgm_volume

    @property
    def store(self) -> VersionedStore:
        return self._store

    # Lifecycle

    def start_session(self, reset_prizes: bool = True) -> GameStateEnvelope:
        """Begin a fresh game, keeping the stored prize list and BGM preference.

        With ``reset_prizes`` every prize's ``selected`` flag is cleared.
        """
        prizes = read_prizes(self._store)
        if reset_prizes:
            prizes = [replace(prize, selected=False) for prize in prizes]
        now = self._clock()
        envelope = GameStateEnvelope(
            game_state=GameState.new(now),
            prizes=tuple(prizes),
            bgm=self._stored_or_default_bgm(),
        )
        self.persist_session_state(envelope)
        logger.info("Session started (%d prizes, reset_prizes=%s)", len(prizes), reset_prizes)
        return envelope

    def resume_session(self) -> Optional[GameStateEnvelope]:
        """Return the stored session, or None when no game state is stored.

        Read-only: nothing is written, even when the BGM preference is defaulted.
        """
        game_state = read_game_state(self._store)
        if game_state is None:
            logger.info("No stored game state to resume")
            return None
        envelope = GameStateEnvelope(
            game_state=game_state,
            prizes=tuple(read_prizes(self._store)),
            bgm=self._stored_or_default_bgm(),
        )
        logger.info("Session resumed with %d draws", len(game_state.draw_history))
        if self._holder is not None:
            self._holder.set(envelope)
        return envelope

    def ensure_session(self) -> GameStateEnvelope:
        resumed = self.resume_session()
        if resumed is not None:
            return resumed
        return self.start_session()

    def persist_session_state(self, envelope: GameStateEnvelope) -> None:
        write_game_state(self._store, envelope.game_state)
        write_prizes(self._store, envelope.prizes)
        write_bgm(self._store, envelope.bgm)
        logger.debug("Session state persisted (updatedAt=%s)", envelope.game_state.updated_at)
        if self._holder is not None:
            self._holder.set(envelope)

    # Game mutations

    def draw(
        self,
        envelope: GameStateEnvelope,
        options: Optional[DrawOptions] = None,
        rng: Optional[RandomSource] = None,
    ) -> GameStateEnvelope:
        """Draw the next number and persist the resulting envelope.

        Raises NoAvailableNumbersError before anything is written when the
        domain is exhausted.
        """
        options = options or DrawOptions()
        if options.timestamp is None:
            options = replace(options, timestamp=self._clock())
        updated = replace(envelope, game_state=draw_next(envelope.game_state, options, rng))
        self.persist_session_state(updated)
        logger.info("Drew number %s", updated.game_state.current_number)
        return updated

    def reset_game(self, envelope: GameStateEnvelope) -> GameStateEnvelope:
        """Clear the draw history; prizes and BGM preference are kept."""
        updated = replace(envelope, game_state=reset_game(envelope.game_state, self._clock()))
        self.persist_session_state(updated)
        logger.info("Game reset")
        return updated

    def clear_all(self) -> int:
        return self._store.clear_versioned()

    # BGM preference

    def get_bgm_preference(self) -> BgmPreference:
        return self._stored_or_default_bgm()

    def save_bgm_preference(self, preference: BgmPreference) -> None:
        write_bgm(self._store, preference)

    def toggle_bgm(self) -> BgmPreference:
        toggled = self.get_bgm_preference().toggled(self._clock())
        self.save_bgm_preference(toggled)
        logger.info("BGM %s", "enabled" if toggled.enabled else "disabled")
        return toggled

    def set_bgm_volume(self, volume: float) -> BgmPreference:
        updated = self.get_bgm_preference().with_volume(volume, self._clock())
        self.save_bgm_preference(updated)
        return updated

    # Predicates for confirming destructive actions

    def has_stored_game_state(self) -> bool:
        return self._store.has_key(self._store.key(StorageKeys.GAME_STATE))

    def has_stored_draw_history(self) -> bool:
        game_state = read_game_state(self._store)
        return game_state is not None and len(game_state.draw_history) > 0

    def has_stored_prize_selection(self) -> bool:
        return any(prize.selected for prize in read_prizes(self._store))

    # Internal helpers

    def _stored_or_default_bgm(self) -> BgmPreference:
        stored = read_bgm(self._store)
        if stored is not None:
            return stored
        return BgmPreference.default(self._clock(), self._default_bgm_volume)
