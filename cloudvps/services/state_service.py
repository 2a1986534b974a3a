"""
State container service.
Owns the single AppState value and the session-earned counter, loads them from
storage at start, persists them after each mutation and resets them on demand.
"""
import logging

from pydantic import ValidationError

from cloudvps.config import EngineConfig
from cloudvps.constants import KEY_APP_STATE, KEY_SESSION_EARNED, TASK_DAILY
from cloudvps.schemas import AppState, DailyWindow, LeaseState, TaskCooldown
from cloudvps.services.clock_service import ClockService

logger = logging.getLogger("cloudvps.engine")


class StateContainer:
    """Explicitly owned engine state, injected into every component"""

    def __init__(self, config: EngineConfig, clock: ClockService, store, session_store):
        self.config = config
        self.clock = clock
        self.store = store
        self.session_store = session_store
        self.state: AppState = self._initial_state()
        self.session_earned: int = 0

    def _initial_state(self) -> AppState:
        """First-run defaults: zero balance, stopped lease, today's window"""
        now = self.clock.now()
        state = AppState(
            daily=DailyWindow(utc_date=self.clock.utc_date_key(now)),
            lease=LeaseState(last_reconcile_at=now),
        )
        self._ensure_task_slots(state)
        return state

    def _ensure_task_slots(self, state: AppState) -> None:
        # Daily bonus is gated by the date key, not a cooldown slot
        for task_type in self.config.tasks:
            if task_type != TASK_DAILY:
                state.tasks.setdefault(task_type, TaskCooldown())

    def load(self) -> None:
        """
        Load state from storage, falling back to defaults for missing or invalid data.
        """
        raw = self.store.load(KEY_APP_STATE, None)
        if raw is None:
            self.state = self._initial_state()
        else:
            try:
                self.state = AppState.model_validate(raw)
                self._ensure_task_slots(self.state)
            except ValidationError as e:
                logger.warning(f"Stored state is invalid, starting fresh: {e}")
                self.state = self._initial_state()

        earned = self.session_store.load(KEY_SESSION_EARNED, 0)
        self.session_earned = earned if isinstance(earned, int) and earned >= 0 else 0

    def persist(self) -> bool:
        """
        Save state and session counter.

        Returns:
            False if durable storage failed; the in-memory state is kept either way
        """
        saved = self.store.save(KEY_APP_STATE, self.state.model_dump(mode="json"))
        self.session_store.save(KEY_SESSION_EARNED, self.session_earned)
        return saved

    def reset(self) -> None:
        """Factory reset: delete the stored state and session counter, return to first-run defaults"""
        self.store.delete(KEY_APP_STATE)
        self.session_store.delete(KEY_SESSION_EARNED)
        self.state = self._initial_state()
        self.session_earned = 0
        logger.info("State reset to defaults")

    def add_session_earned(self, amount: int) -> None:
        self.session_earned += amount

    def snapshot_state(self) -> AppState:
        return self.state.model_copy(deep=True)
