"""
Time-of-day helpers for HH:MM strings.
"""

import math

from daylog.constants import MINUTES_PER_DAY, MINUTES_PER_HOUR


def to_minutes(time_str: str) -> int:
    """
    Convert an HH:MM string to minutes since midnight.

    Args:
        time_str: Time of day, e.g. "09:30"

    Returns:
        Minutes since 00:00

    Raises:
        ValueError: if the string is not in HH:MM form or is not a time of day
    """
    hours, _, minutes = time_str.partition(":")
    if not (hours.isdigit() and minutes.isdigit()):
        raise ValueError(f"Invalid time: {time_str!r}. Use HH:MM.")

    total = int(hours) * MINUTES_PER_HOUR + int(minutes)
    if int(minutes) >= MINUTES_PER_HOUR or total >= MINUTES_PER_DAY:
        raise ValueError(f"Invalid time: {time_str!r}. Must be between 00:00 and 23:59.")
    return total

def calculate_duration(start: str, end: str) -> int:
    """
    Calculate duration in minutes between two times of day.

    An end earlier than the start means the block crosses midnight.
    Equal times are a zero-length block, not a full day.

    Args:
        start: Start time (HH:MM)
        end: End time (HH:MM)

    Returns:
        Duration in minutes, in the range 0..1439 for valid times
    """
    minutes = to_minutes(end) - to_minutes(start)

    # Handle overnight entries
    if minutes < 0:
        minutes += MINUTES_PER_DAY

    return minutes

def start_hour(time_str: str) -> int:
    """Hour component of an HH:MM string."""
    return to_minutes(time_str) // MINUTES_PER_HOUR

def format_hours(minutes: int) -> str:
    """Format minutes as hours with one decimal, e.g. 90 -> "1.5h"."""
    return f"{minutes / MINUTES_PER_HOUR:.1f}h"


def round_half_up(value: float, digits: int = 1) -> float:
    """
    Round like a calculator rather than banker's rounding.

    Args:
        value: Non-negative number to round
        digits: Decimal places to keep

    Returns:
        Rounded float, e.g. round_half_up(1.15) -> 1.2
    """
    factor = 10 ** digits
    # Nudge past float representation error (1.15 * 10 == 11.4999...)
    return math.floor(value * factor + 0.5 + 1e-9) / factor
