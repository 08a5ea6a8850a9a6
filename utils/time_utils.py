import logging
import re
from datetime import date
from typing import Optional


class TimeUtils:
    """Compact duration tokens used by /mute"""

    DURATION_PATTERN = re.compile(r'^(\d+)([hdm])$')

    UNIT_SECONDS = {
        'm': 60,
        'h': 3600,
        'd': 86400,
    }

    @classmethod
    def parse_duration(cls, duration_str: Optional[str]) -> int:
        """
        Parse a duration token into seconds.
        Examples: "1h" -> 3600, "7d" -> 604800, "30m" -> 1800.
        Anything else ("", "abc", "5x", "1h30m") -> 0, which callers treat as invalid.
        """
        if not duration_str:
            logging.debug("parse_duration called with empty input")
            return 0

        match = cls.DURATION_PATTERN.match(duration_str)
        if not match:
            logging.debug("Duration '%s' does not match <digits><h|d|m>", duration_str)
            return 0

        amount, unit = match.groups()
        seconds = int(amount) * cls.UNIT_SECONDS[unit]
        logging.debug("Duration '%s' parsed as %s seconds", duration_str, seconds)
        return seconds

    @classmethod
    def format_duration(cls, seconds: int) -> str:
        """Format a mute duration for the confirmation message"""
        if seconds >= 86400:
            return f"{seconds // 86400} days"
        if seconds >= 3600:
            return f"{seconds // 3600} hours"
        return f"{seconds // 60} minutes"

    @staticmethod
    def parse_calendar_date(value: str) -> Optional[date]:
        """Parse an ISO calendar date (YYYY-MM-DD); None when malformed."""
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            logging.debug("Value '%s' is not an ISO calendar date", value)
            return None
