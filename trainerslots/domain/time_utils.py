"""
Time and calendar-date helpers shared by the slot calculator.

Dates are handled as naive calendar dates: a ``YYYY-MM-DD`` string is split
into its components and turned into a date directly, so the weekday a caller
gets back never depends on the host's configured time zone.
"""

import re
from datetime import date
from typing import Any

import pendulum

from .exceptions import InvalidDateError, MalformedTimeInput

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_TIME_24H_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")
_TIME_12H_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})\s+(AM|PM)$", re.IGNORECASE)
_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def parse_time(time24h: str) -> tuple[int, int]:
    """
    Split a 24-hour ``HH:MM`` string into hour and minute.

    Raises:
        MalformedTimeInput: If the value is not zero-padded ``HH:MM`` with
            hour in [0, 23] and minute in [0, 59]
    """
    if not isinstance(time24h, str):
        raise MalformedTimeInput(f"Expected a HH:MM string, got {time24h!r}")

    match = _TIME_24H_PATTERN.match(time24h.strip())
    if not match:
        raise MalformedTimeInput(f"Time must be in HH:MM format, got {time24h!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
        raise MalformedTimeInput(f"Time out of range: {time24h!r}")

    return hours, minutes


def time_to_minutes(time24h: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight."""
    hours, minutes = parse_time(time24h)
    return hours * 60 + minutes


def minutes_to_time(total_minutes: int) -> str:
    """Convert minutes since midnight back to ``HH:MM``."""
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def format_time_12_hour(time24h: str) -> str:
    """
    Convert a 24-hour time to the 12-hour display form.

    "00:15" -> "12:15 AM", "07:05" -> "7:05 AM", "13:30" -> "1:30 PM"
    """
    hours, minutes = parse_time(time24h)
    hour12 = 12 if hours in (0, 12) else hours % 12
    period = "PM" if hours >= 12 else "AM"
    return f"{hour12}:{minutes:02d} {period}"


def convert_to_24_hour(time12h: str) -> str:
    """
    Convert a 12-hour display time ("h:MM AM/PM") back to ``HH:MM``.

    Raises:
        MalformedTimeInput: If the value is not a valid 12-hour time
    """
    if not isinstance(time12h, str):
        raise MalformedTimeInput(f"Expected a 12-hour time string, got {time12h!r}")

    match = _TIME_12H_PATTERN.match(time12h.strip())
    if not match:
        raise MalformedTimeInput(f"Time must be in 'h:MM AM/PM' format, got {time12h!r}")

    hour12, minutes = int(match.group(1)), int(match.group(2))
    period = match.group(3).upper()
    if not 1 <= hour12 <= 12 or not 0 <= minutes <= 59:
        raise MalformedTimeInput(f"Time out of range: {time12h!r}")

    hour24 = hour12 % 12
    if period == "PM":
        hour24 += 12
    return f"{hour24:02d}:{minutes:02d}"


def parse_date(date_string: str) -> date:
    """
    Parse a ``YYYY-MM-DD`` string into a naive calendar date.

    Raises:
        InvalidDateError: If the string is missing, malformed or names a day
            that does not exist
    """
    if not isinstance(date_string, str):
        raise InvalidDateError(f"Expected a YYYY-MM-DD string, got {date_string!r}")

    match = _DATE_PATTERN.match(date_string.strip())
    if not match:
        raise InvalidDateError(f"Date must be in YYYY-MM-DD format, got {date_string!r}")

    year, month, day = (int(part) for part in match.groups())
    try:
        return pendulum.date(year, month, day)
    except ValueError as exc:
        raise InvalidDateError(f"Not a calendar date: {date_string!r}") from exc


def get_day_name(date_string: str) -> str:
    """Return the English weekday name for a ``YYYY-MM-DD`` date."""
    return WEEKDAY_NAMES[parse_date(date_string).isoweekday() - 1]


def date_to_local_string(value: Any) -> str:
    """
    Format a date as ``YYYY-MM-DD`` using its own calendar fields.

    Accepts stdlib or pendulum dates and datetimes. Strings are parsed first,
    so an unparseable string fails the same way a missing value does.

    Raises:
        InvalidDateError: If the value is missing or not a valid date
    """
    if value is None:
        raise InvalidDateError("Invalid date provided to date_to_local_string")

    if isinstance(value, str):
        try:
            value = pendulum.parse(value, exact=True)
        except ValueError as exc:
            raise InvalidDateError(f"Invalid date provided to date_to_local_string: {exc}") from exc

    if not isinstance(value, date):
        raise InvalidDateError(f"Invalid date provided to date_to_local_string: {value!r}")

    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
