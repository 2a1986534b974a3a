"""
Engine facade.
The only mutation entry point for the UI layer: composes the daily gate, the
reward ledger and the lease engine over one StateContainer, serializes every
operation, and exposes read-only snapshots.
"""
import asyncio
import logging
import random
import threading
from typing import Callable, List, Optional

from cloudvps.config import EngineConfig
from cloudvps.constants import TASK_DAILY
from cloudvps.exceptions import CloudVPSException, NotRunningException
from cloudvps.schemas import (
    EngineEvent, EngineSnapshot, LeaseStatus, OperationResult, TaskAvailability
)
from cloudvps.services.clock_service import ClockService
from cloudvps.services.daily_gate import DailyGate
from cloudvps.services.lease_service import LeaseService
from cloudvps.services.ledger_service import LedgerService
from cloudvps.services.state_service import StateContainer

logger = logging.getLogger("cloudvps.engine")

EventListener = Callable[[EngineEvent], None]


class EngineService:
    """Facade over the rewards and lease engine"""

    def __init__(
        self,
        config: EngineConfig,
        clock: ClockService,
        store,
        session_store,
    ):
        self.config = config
        self.clock = clock
        self.container = StateContainer(config, clock, store, session_store)
        self.container.load()
        self.daily_gate = DailyGate()
        self.ledger = LedgerService(self.container)
        self.lease = LeaseService(self.container, self.ledger)
        self._lock = threading.RLock()
        self._listeners: List[EventListener] = []

    # ---------------------------
    # Events
    # ---------------------------

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def _emit(self, events: List[EngineEvent]) -> None:
        for event in events:
            logger.info(f"Event: {event.value}")
            for listener in self._listeners:
                try:
                    listener(event)
                except Exception as e:
                    logger.error(f"Event listener failed on {event.value}: {e}")

    # ---------------------------
    # Reconciliation
    # ---------------------------

    def _reconcile_daily(self) -> Optional[EngineEvent]:
        """Re-derive today from the clock and roll the daily window if needed"""
        state = self.container.state
        window, refreshed = self.daily_gate.reconcile(state.daily, self.clock.utc_date_key())
        if window is not state.daily:
            state.daily = window
            self.container.persist()
        return EngineEvent.DAILY_REFRESHED if refreshed else None

    def _reconcile(self) -> List[EngineEvent]:
        events = [self._reconcile_daily(), self.lease.reconcile_tick()]
        return [e for e in events if e is not None]

    def tick(self) -> List[EngineEvent]:
        """
        Periodic reconciliation: daily rollover and lease countdown.

        Safe to call at any rate; elapsed time comes from the clock, not from
        the number of calls.

        Returns:
            Events produced by this tick
        """
        with self._lock:
            events = self._reconcile()
            self._emit(events)
            return events

    # ---------------------------
    # Operations
    # ---------------------------

    def _run(self, name: str, operation: Callable[[], int]) -> OperationResult:
        """
        Run one mutation atomically and turn expected failures into a result.

        Args:
            name: Operation name for logging
            operation: Callable returning the balance delta

        Returns:
            OperationResult with a fresh snapshot
        """
        with self._lock:
            events = self._reconcile()
            try:
                delta = operation()
                result = OperationResult(ok=True, points_delta=delta)
            except CloudVPSException as e:
                logger.info(f"{name} rejected: {e.code.value}")
                result = OperationResult(ok=False, error=e.code, message=e.message)
            self._emit(events)
            result.snapshot = self._build_snapshot()
            return result

    def claim_task(self, task_type: str) -> OperationResult:
        """Claim a task and credit its reward"""
        def operation() -> int:
            reward = self.ledger.claim_task(task_type)
            self.container.add_session_earned(reward)
            self.ledger.credit(reward, self.config.tasks[task_type].label)
            return reward

        result = self._run("claim_task", operation)
        if result.ok:
            result.message = f"+{result.points_delta} points earned."
        return result

    def create_lease(self) -> OperationResult:
        """Pay for a lease and enter provisioning (see complete_provisioning)"""
        def operation() -> int:
            self.lease.create()
            return -self.config.lease_create_cost

        result = self._run("create_lease", operation)
        if result.ok:
            result.message = "Provisioning VPS…"
        return result

    def complete_provisioning(self) -> OperationResult:
        """
        Finish provisioning. Succeeds if the lease is running afterwards, including
        when a tick already completed it; fails with NOT_RUNNING if the lease was
        reset or stopped in the meantime.
        """
        with self._lock:
            events = self._reconcile()
            if self.lease.complete_provisioning():
                events.append(EngineEvent.LEASE_RUNNING)
            self._emit(events)

            lease_status = self.container.state.lease.status
            if lease_status != LeaseStatus.RUNNING:
                error = NotRunningException(lease_status.value)
                logger.info(f"complete_provisioning rejected: {error.code.value}")
                return OperationResult(
                    ok=False,
                    error=error.code,
                    message=error.message,
                    snapshot=self._build_snapshot(),
                )

            return OperationResult(
                ok=True,
                message="VPS is running. Countdown started.",
                snapshot=self._build_snapshot(),
            )

    def stop_lease(self) -> OperationResult:
        """
        Pause the running lease. The caller must obtain user confirmation first.
        """
        def operation() -> int:
            self.lease.stop()
            return 0

        result = self._run("stop_lease", operation)
        if result.ok:
            result.message = "VPS stopped (timer paused)."
        return result

    def extend_lease(self) -> OperationResult:
        def operation() -> int:
            self.lease.extend()
            return -self.config.lease_extend_cost

        result = self._run("extend_lease", operation)
        if result.ok:
            hours = self.config.lease_extend_seconds // 3600
            result.message = f"Extended +{hours}h for {self.config.lease_extend_cost} pts."
        return result

    def reset(self) -> EngineSnapshot:
        """Factory reset: clear all storage and start over from first-run defaults"""
        with self._lock:
            self.container.reset()
            return self._build_snapshot()

    # ---------------------------
    # Flows with simulated latency
    # ---------------------------

    async def _simulate_latency(self) -> None:
        delay_ms = random.randint(self.config.latency_min_ms, self.config.latency_max_ms)
        await asyncio.sleep(delay_ms / 1000)

    async def run_task(self, task_type: str) -> OperationResult:
        """
        Check availability, wait the simulated latency, then claim.

        Nothing is applied before the delay, so an abandoned flow changes
        nothing. The claim re-checks the gate.
        """
        with self._lock:
            self._emit(self._reconcile())
            try:
                self.ledger.check_task_available(task_type)
            except CloudVPSException as e:
                return OperationResult(
                    ok=False, error=e.code, message=e.message, snapshot=self._build_snapshot()
                )

        await self._simulate_latency()
        return self.claim_task(task_type)

    async def provision_lease(self) -> OperationResult:
        """
        Create a lease, wait the simulated provisioning delay, then start it.

        The debit is applied before the delay and stays applied if the flow is
        abandoned; the next tick after the deadline completes provisioning.
        """
        result = self.create_lease()
        if not result.ok:
            return result

        await self._simulate_latency()
        completed = self.complete_provisioning()
        if completed.ok:
            completed.points_delta = result.points_delta
        return completed

    # ---------------------------
    # Read-only views
    # ---------------------------

    def get_snapshot(self) -> EngineSnapshot:
        with self._lock:
            self._emit(self._reconcile())
            return self._build_snapshot()

    def _task_availability(self) -> List[TaskAvailability]:
        state = self.container.state
        now = self.clock.now()
        today = self.clock.utc_date_key(now)
        items = []

        for task_type, task_cfg in self.config.tasks.items():
            if task_type == TASK_DAILY:
                claimed = self.daily_gate.is_daily_claimed(state.daily, today)
                items.append(TaskAvailability(
                    task_type=task_type,
                    label=task_cfg.label,
                    reward=task_cfg.reward,
                    available=not claimed,
                    status_label="Completed" if claimed else "Active",
                ))
                continue

            slot = state.tasks.get(task_type)
            remaining = self.clock.seconds_until(slot.cooldown_until if slot else None, now)
            items.append(TaskAvailability(
                task_type=task_type,
                label=task_cfg.label,
                reward=task_cfg.reward,
                available=remaining == 0,
                cooldown_remaining_seconds=remaining,
                status_label=f"Cooldown {remaining}s" if remaining > 0 else "Available",
            ))

        return items

    def _build_snapshot(self) -> EngineSnapshot:
        state = self.container.snapshot_state()
        balance = state.points_balance
        lease = state.lease
        target = self.config.lease_create_cost
        earned = self.container.session_earned

        if target > 0:
            progress = max(0.0, min(100.0, earned / target * 100))
        else:
            progress = 100.0

        return EngineSnapshot(
            points_balance=balance,
            daily=state.daily,
            lease=lease,
            time_left_display=self.clock.format_hhmmss(lease.time_left_seconds),
            tasks=self._task_availability(),
            activity=state.activity,
            session_earned=earned,
            session_target=target,
            session_progress_pct=progress,
            can_create=(
                lease.status not in (LeaseStatus.PROVISIONING, LeaseStatus.RUNNING)
                and balance >= self.config.lease_create_cost
            ),
            can_stop=lease.status == LeaseStatus.RUNNING,
            can_extend=(
                lease.time_left_seconds > 0
                and balance >= self.config.lease_extend_cost
            ),
        )
