"""
Tests for the scheduled reconcile tick job.
"""
import asyncio
import logging

from cloudvps.schemas import LeaseStatus
from cloudvps.services.scheduler_service import run_reconcile_tick
from cloudvps.tests.conftest import start_running_lease


class TestRunReconcileTick:

    def test_job_expires_lease(self, engine, clock):
        """Should expire a lease whose time ran out"""
        start_running_lease(engine, 5)
        clock.advance(10)

        asyncio.run(run_reconcile_tick(engine))

        assert engine.container.state.lease.status == LeaseStatus.STOPPED
        assert engine.container.state.lease.time_left_seconds == 0

    def test_job_logs_errors_instead_of_raising(self, caplog):
        """Should log job errors instead of raising"""
        class FailingEngine:
            def tick(self):
                raise RuntimeError("storage gone")

        with caplog.at_level(logging.ERROR, logger="cloudvps.scheduler"):
            asyncio.run(run_reconcile_tick(FailingEngine()))

        assert "storage gone" in caplog.text
