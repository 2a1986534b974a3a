"""
Clock service.
Supplies the current instant and the UTC calendar-day key used by the daily gate.
"""
import math
from datetime import datetime, timezone
from typing import Optional


class ClockService:
    """Wall clock in UTC. Tests substitute a manually advanced subclass."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def utc_date_key(self, at: Optional[datetime] = None) -> str:
        """
        Get a key identifying the UTC calendar day.

        The key is "YYYY-MM-DD" so it sorts lexically with real dates and does
        not depend on the host timezone.

        Args:
            at: Instant to derive the key from (defaults to now)

        Returns:
            Date key string
        """
        at = at or self.now()
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        return at.astimezone(timezone.utc).strftime("%Y-%m-%d")

    @staticmethod
    def elapsed_whole_seconds(since: datetime, until: datetime) -> int:
        """Whole seconds between two instants, floored (negative if until < since)"""
        return math.floor((until - since).total_seconds())

    @staticmethod
    def seconds_until(deadline: Optional[datetime], now: datetime) -> int:
        """Seconds remaining until deadline, rounded up, never negative"""
        if deadline is None:
            return 0
        return max(0, math.ceil((deadline - now).total_seconds()))

    @staticmethod
    def format_hhmmss(total_seconds: int) -> str:
        """Format seconds as HH:MM:SS (hours may exceed 24)"""
        s = max(0, int(total_seconds))
        hours, rem = divmod(s, 3600)
        minutes, seconds = divmod(rem, 60)
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
