"""
Daily gate service.
Keeps the DailyWindow aligned with the current UTC calendar day.
"""
from typing import Tuple

from cloudvps.schemas import DailyWindow


class DailyGate:
    """Once-per-UTC-day accounting, corrected lazily on every check"""

    @staticmethod
    def reconcile(window: DailyWindow, today: str) -> Tuple[DailyWindow, bool]:
        """
        Align a daily window with today's date key.

        When the window belongs to another day, earnings and the daily-bonus
        claim are reset. The points balance lives elsewhere and is untouched.
        Calling this again with the same key changes nothing.

        Args:
            window: Current daily window
            today: UTC date key from the clock

        Returns:
            Tuple of (window for today, refreshed flag)
        """
        if window.utc_date != today:
            return DailyWindow(utc_date=today, earned=0, daily_claimed_date=""), True

        # Stale claim from another day (clock skew or an old blob)
        if window.daily_claimed_date and window.daily_claimed_date != today:
            return window.model_copy(update={"daily_claimed_date": ""}), False

        return window, False

    @staticmethod
    def is_daily_claimed(window: DailyWindow, today: str) -> bool:
        return window.daily_claimed_date == today
