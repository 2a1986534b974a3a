"""
Tests for LedgerService.

Tests cover:
1. Credit/debit balance rules
2. Bounded activity log
3. Duration cooldowns
4. Daily bonus gate
"""
import pytest

from cloudvps.exceptions import (
    InsufficientFundsException,
    OnCooldownException,
    AlreadyClaimedTodayException,
    UnknownTaskException,
)
from cloudvps.tests.conftest import give_points


class TestCreditDebit:
    """Tests for credit and debit functions"""

    def test_credit_increases_balance_and_today(self, engine):
        """Should add to the balance and today's earnings"""
        engine.ledger.credit(5, "Watched Ad")

        state = engine.container.state
        assert state.points_balance == 5
        assert state.daily.earned == 5
        assert state.activity[0].label == "Watched Ad"
        assert state.activity[0].delta == 5

    def test_debit_decreases_balance(self, engine):
        """Should subtract from the balance"""
        give_points(engine, 20)

        engine.ledger.debit(10, "Redeemed VPS 6H")

        state = engine.container.state
        assert state.points_balance == 10
        assert state.activity[0].delta == -10

    def test_debit_does_not_touch_today_earnings(self, engine):
        """Should not reduce today's earnings"""
        engine.ledger.credit(10, "x")
        engine.ledger.debit(4, "y")

        assert engine.container.state.daily.earned == 10

    def test_debit_exact_balance_allowed(self, engine):
        """Should allow spending the whole balance"""
        give_points(engine, 10)

        engine.ledger.debit(10, "spend")

        assert engine.container.state.points_balance == 0

    def test_debit_over_balance_fails_without_change(self, engine):
        """Should fail and leave the balance unchanged"""
        give_points(engine, 9)

        with pytest.raises(InsufficientFundsException) as exc:
            engine.ledger.debit(10, "spend")

        assert exc.value.required == 10
        assert exc.value.balance == 9
        assert "Need 1 more" in exc.value.message
        assert engine.container.state.points_balance == 9
        assert engine.container.state.activity == []

    def test_balance_never_negative(self, engine):
        """Mixed sequence: debit fails exactly when amount > balance"""
        operations = [("c", 5), ("d", 3), ("d", 3), ("c", 2), ("d", 4), ("d", 1)]
        for kind, amount in operations:
            before = engine.ledger.balance
            if kind == "c":
                engine.ledger.credit(amount, "c")
            elif amount > before:
                with pytest.raises(InsufficientFundsException):
                    engine.ledger.debit(amount, "d")
            else:
                engine.ledger.debit(amount, "d")
            assert engine.ledger.balance >= 0

        assert engine.ledger.balance == 0

    def test_credit_is_persisted(self, engine, store):
        """Should persist the new balance"""
        engine.ledger.credit(5, "Watched Ad")

        assert store.load("app-state")["points_balance"] == 5


class TestActivityLog:
    """Tests for activity log retention"""

    def test_keeps_most_recent_newest_first(self, engine, clock):
        """Should keep the newest entries first"""
        for i in range(1, 10):
            engine.ledger.credit(i, f"entry {i}")
            clock.advance(1)

        activity = engine.container.state.activity
        assert len(activity) == 6
        assert [a.label for a in activity] == [f"entry {i}" for i in range(9, 3, -1)]

    def test_bound_follows_config(self, engine):
        """Should cap the log at the configured size"""
        engine.config.activity_max = 2
        for i in range(5):
            engine.ledger.credit(1, f"entry {i}")

        assert len(engine.container.state.activity) == 2


class TestTaskCooldown:
    """Tests for duration-cooldown tasks"""

    def test_short_on_cooldown_immediately_after_claim(self, engine):
        """Should put the short link on cooldown right after a claim"""
        assert engine.ledger.claim_task("short") == 2

        with pytest.raises(OnCooldownException) as exc:
            engine.ledger.claim_task("short")

        assert exc.value.remaining_seconds == 25

    def test_short_available_after_cooldown(self, engine, clock):
        """Should allow the short link once the cooldown passes"""
        engine.ledger.claim_task("short")
        clock.advance(24)

        with pytest.raises(OnCooldownException):
            engine.ledger.claim_task("short")

        clock.advance(1)
        assert engine.ledger.claim_task("short") == 2

    def test_video_has_no_cooldown(self, engine):
        """Should allow videos back to back"""
        assert engine.ledger.claim_task("video") == 5
        assert engine.ledger.claim_task("video") == 5

    def test_cooldown_stored_as_absolute_instant(self, engine, clock):
        """Should store the cooldown end as an instant"""
        start = clock.now()
        engine.ledger.claim_task("short")

        slot = engine.container.state.tasks["short"]
        assert (slot.cooldown_until - start).total_seconds() == 25

    def test_claim_does_not_credit(self, engine):
        """Should return the reward without crediting it"""
        engine.ledger.claim_task("video")

        assert engine.container.state.points_balance == 0

    def test_unknown_task(self, engine):
        """Should reject an unknown task type"""
        with pytest.raises(UnknownTaskException):
            engine.ledger.claim_task("survey")


class TestDailyBonus:
    """Tests for the once-per-UTC-day bonus"""

    def test_claim_once_per_day(self, engine, clock):
        """Should allow one daily claim per day"""
        assert engine.ledger.claim_task("daily") == 10

        with pytest.raises(AlreadyClaimedTodayException):
            engine.ledger.claim_task("daily")

    def test_claim_records_today(self, engine, clock):
        """Should record today as the claim date"""
        engine.ledger.claim_task("daily")

        assert engine.container.state.daily.daily_claimed_date == "2026-01-30"

    def test_daily_has_no_cooldown_slot(self, engine):
        """Should not create a cooldown slot for the daily bonus"""
        engine.ledger.claim_task("daily")

        assert "daily" not in engine.container.state.tasks
