"""
Reward ledger service.
Handles the points balance, daily earnings, the bounded activity log and
per-task claim gates (duration cooldowns and the UTC-day daily bonus).
"""
import logging
from datetime import timedelta

from cloudvps.constants import TASK_DAILY
from cloudvps.exceptions import (
    InsufficientFundsException,
    OnCooldownException,
    AlreadyClaimedTodayException,
    UnknownTaskException,
)
from cloudvps.schemas import ActivityEntry, TaskCooldown
from cloudvps.services.daily_gate import DailyGate
from cloudvps.services.state_service import StateContainer

logger = logging.getLogger("cloudvps.engine")


class LedgerService:
    """Service for points accrual, spending and task gating"""

    def __init__(self, container: StateContainer):
        self.container = container
        self.config = container.config
        self.clock = container.clock
        self.daily_gate = DailyGate()

    @property
    def balance(self) -> int:
        return self.container.state.points_balance

    def _push_activity(self, label: str, delta: int) -> None:
        """Prepend an activity entry and drop the oldest beyond retention"""
        state = self.container.state
        entry = ActivityEntry(label=label, delta=delta, timestamp=self.clock.now())
        state.activity = [entry] + state.activity[: self.config.activity_max - 1]

    def credit(self, amount: int, label: str) -> None:
        """
        Add points to the balance and to today's earnings.

        Args:
            amount: Positive number of points (validated by the caller)
            label: Activity log label
        """
        state = self.container.state
        state.points_balance += amount
        state.daily.earned += amount
        self._push_activity(label, amount)
        self.container.persist()

    def debit(self, amount: int, label: str) -> None:
        """
        Spend points.

        Raises:
            InsufficientFundsException: If balance < amount (nothing is changed)
        """
        state = self.container.state
        if state.points_balance < amount:
            raise InsufficientFundsException(required=amount, balance=state.points_balance)

        state.points_balance -= amount
        self._push_activity(label, -amount)
        self.container.persist()

    def check_task_available(self, task_type: str) -> None:
        """
        Verify that a task can be claimed right now without changing anything.

        Raises:
            UnknownTaskException: Task type is not configured
            AlreadyClaimedTodayException: Daily bonus already claimed for today's UTC date
            OnCooldownException: Cooldown has not elapsed
        """
        if task_type not in self.config.tasks:
            raise UnknownTaskException(task_type)

        now = self.clock.now()
        today = self.clock.utc_date_key(now)

        if task_type == TASK_DAILY:
            if self.daily_gate.is_daily_claimed(self.container.state.daily, today):
                raise AlreadyClaimedTodayException(today)
            return

        slot = self.container.state.tasks.get(task_type)
        cooldown_until = slot.cooldown_until if slot else None
        if cooldown_until is not None and now < cooldown_until:
            raise OnCooldownException(
                task_type, self.clock.seconds_until(cooldown_until, now)
            )

    def claim_task(self, task_type: str) -> int:
        """
        Claim a task, arming its gate.

        Duration tasks get cooldown_until = now + cooldown; the daily bonus
        records today's date key instead. The reward is not credited here.

        Args:
            task_type: Configured task type

        Returns:
            Reward amount for the caller to credit
        """
        self.check_task_available(task_type)

        task_cfg = self.config.tasks[task_type]
        now = self.clock.now()
        state = self.container.state

        if task_type == TASK_DAILY:
            state.daily.daily_claimed_date = self.clock.utc_date_key(now)
        else:
            state.tasks[task_type] = TaskCooldown(
                cooldown_until=now + timedelta(seconds=task_cfg.cooldown_seconds)
            )

        self.container.persist()
        logger.info(f"Task claimed: {task_type} (+{task_cfg.reward})")
        return task_cfg.reward
