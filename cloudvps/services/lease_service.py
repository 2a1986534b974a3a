"""
Lease engine service.
State machine for the leased VPS: stopped -> provisioning -> running -> stopped.
Remaining time decays by elapsed wall-clock seconds, so the countdown stays
correct across reloads, sleep and arbitrary gaps between ticks.
"""
import logging
from datetime import timedelta
from typing import Optional

from cloudvps.constants import ACTIVITY_LABEL_CREATE, ACTIVITY_LABEL_EXTEND
from cloudvps.exceptions import (
    AlreadyActiveException,
    NotRunningException,
    NothingToExtendException,
)
from cloudvps.schemas import EngineEvent, LeaseStatus
from cloudvps.services.ledger_service import LedgerService
from cloudvps.services.state_service import StateContainer

logger = logging.getLogger("cloudvps.engine")


class LeaseService:
    """Service for lease lifecycle and countdown reconciliation"""

    def __init__(self, container: StateContainer, ledger: LedgerService):
        self.container = container
        self.config = container.config
        self.clock = container.clock
        self.ledger = ledger

    @property
    def lease(self):
        return self.container.state.lease

    def create(self) -> None:
        """
        Pay for a lease and enter provisioning.

        The debit happens here, before the simulated provisioning delay, and
        is never refunded if the caller abandons the flow.

        Raises:
            AlreadyActiveException: Lease is provisioning or running
            InsufficientFundsException: Balance below the create cost
        """
        if self.lease.status in (LeaseStatus.PROVISIONING, LeaseStatus.RUNNING):
            raise AlreadyActiveException(self.lease.status.value)

        self.ledger.debit(self.config.lease_create_cost, ACTIVITY_LABEL_CREATE)

        now = self.clock.now()
        self.lease.status = LeaseStatus.PROVISIONING
        # A new lease replaces any paused time
        self.lease.time_left_seconds = 0
        self.lease.provisioning_deadline = now + timedelta(milliseconds=self.config.latency_max_ms)
        self.container.persist()
        logger.info("Lease provisioning")

    def complete_provisioning(self) -> bool:
        """
        Move a provisioning lease to running with a fresh base duration.

        Returns:
            True if the transition happened, False if the lease was not provisioning
        """
        if self.lease.status != LeaseStatus.PROVISIONING:
            return False

        self.lease.status = LeaseStatus.RUNNING
        self.lease.time_left_seconds = self.config.lease_base_seconds
        self.lease.last_reconcile_at = self.clock.now()
        self.lease.provisioning_deadline = None
        self.container.persist()
        logger.info(f"Lease running ({self.lease.time_left_seconds}s)")
        return True

    def stop(self) -> None:
        """
        Pause a running lease. Remaining time is frozen, not forfeited.

        Raises:
            NotRunningException: Lease is not running (including expiry found while reconciling)
        """
        if self.lease.status != LeaseStatus.RUNNING:
            raise NotRunningException(self.lease.status.value)

        # Freeze at the reconciled value, not the last ticked one
        if self.reconcile_tick() == EngineEvent.LEASE_EXPIRED:
            raise NotRunningException(self.lease.status.value)

        self.lease.status = LeaseStatus.STOPPED
        self.lease.last_reconcile_at = self.clock.now()
        self.container.persist()
        logger.info(f"Lease stopped with {self.lease.time_left_seconds}s left")

    def extend(self) -> None:
        """
        Buy extra time. Allowed while stopped as long as paused time remains.

        Raises:
            NothingToExtendException: No remaining time
            InsufficientFundsException: Balance below the extend cost
        """
        self.reconcile_tick()
        if self.lease.time_left_seconds <= 0:
            raise NothingToExtendException()

        self.ledger.debit(self.config.lease_extend_cost, ACTIVITY_LABEL_EXTEND)
        self.lease.time_left_seconds += self.config.lease_extend_seconds
        self.container.persist()
        logger.info(f"Lease extended by {self.config.lease_extend_seconds}s")

    def reconcile_tick(self) -> Optional[EngineEvent]:
        """
        Apply elapsed wall-clock time to a running lease.

        Only whole seconds are consumed; last_reconcile_at advances by exactly
        that many seconds so the fractional remainder carries into the next tick.
        An overdue provisioning (e.g. the delay was abandoned by a reload) is
        completed here.

        Returns:
            LEASE_EXPIRED or LEASE_RUNNING when this call changed the status, else None
        """
        now = self.clock.now()
        lease = self.lease

        if lease.status == LeaseStatus.PROVISIONING:
            if lease.provisioning_deadline is None or now >= lease.provisioning_deadline:
                if self.complete_provisioning():
                    return EngineEvent.LEASE_RUNNING
            return None

        if lease.status != LeaseStatus.RUNNING:
            return None

        last = lease.last_reconcile_at or now
        elapsed = self.clock.elapsed_whole_seconds(last, now)
        changed = False

        if elapsed > 0:
            lease.time_left_seconds = max(0, lease.time_left_seconds - elapsed)
            lease.last_reconcile_at = last + timedelta(seconds=elapsed)
            changed = True

        event = None
        if lease.time_left_seconds <= 0:
            lease.time_left_seconds = 0
            lease.status = LeaseStatus.STOPPED
            lease.last_reconcile_at = now
            event = EngineEvent.LEASE_EXPIRED
            changed = True
            logger.info("Lease time ended, stopped")

        if changed:
            self.container.persist()
        return event
