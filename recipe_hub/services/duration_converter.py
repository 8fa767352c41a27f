"""
Duration arithmetic for recipe timing fields.

This module provides:
- Parsing of ISO-8601 day-time durations (``PnDTnHnMn.nS``)
- Checked addition of durations
- Canonical formatting used for the derived total time

Parsing Rules:
- Optional leading sign, then ``P``; each component may carry its own sign
- Days are the only date-part component; hours, minutes and seconds follow ``T``
- Seconds may carry up to nine fractional digits (``.`` or ``,`` separator)
- Letters are case-insensitive
- At least one component is required and ``T`` must be followed by one
- Results are timedeltas; anything negative or beyond the timedelta range is
  rejected. Sub-microsecond digits are truncated.

Canonical Form:
- Days fold into hours (``P2D`` formats as ``PT48H``)
- Zero components are omitted; an empty duration formats as ``PT0S``
"""

import re
from datetime import timedelta
from typing import Optional

from recipe_hub.services.exceptions import InvalidDuration


# ============================================================================
# Grammar
# ============================================================================

_DURATION_PATTERN = re.compile(
    r"""
    (?P<sign>[-+]?)P
    (?:(?P<days>[-+]?\d+)D)?
    (?P<time>T
        (?:(?P<hours>[-+]?\d+)H)?
        (?:(?P<minutes>[-+]?\d+)M)?
        (?:(?P<seconds>[-+]?\d+)(?:[.,](?P<fraction>\d{0,9}))?S)?
    )?
    """,
    re.IGNORECASE | re.VERBOSE,
)

MICROS_PER_SECOND = 1_000_000
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


# ============================================================================
# Parsing
# ============================================================================


def _component_micros(text: Optional[str], unit_seconds: int) -> int:
    if text is None:
        return 0
    return int(text) * unit_seconds * MICROS_PER_SECOND


def _fraction_micros(seconds_text: Optional[str], fraction: Optional[str]) -> int:
    if not fraction:
        return 0
    micros = int(fraction.ljust(6, "0")[:6])
    return -micros if seconds_text.startswith("-") else micros


def parse_duration(text: Optional[str]) -> timedelta:
    """
    Parse an ISO-8601 duration string into a non-negative timedelta.

    Args:
        text: Duration string such as "PT1H30M" or "P1DT2H"

    Returns:
        Parsed timedelta

    Raises:
        InvalidDuration: If the text is blank, malformed, negative, or out of range

    Examples:
        >>> parse_duration("PT1H30M")
        datetime.timedelta(seconds=5400)
        >>> parse_duration("pt90m") == parse_duration("PT1H30M")
        True
    """
    if text is None or not isinstance(text, str) or not text.strip():
        raise InvalidDuration(text, "blank")

    match = _DURATION_PATTERN.fullmatch(text.strip())
    if match is None:
        raise InvalidDuration(text, "malformed")

    days, hours, minutes, seconds = match.group("days", "hours", "minutes", "seconds")
    if days is None and hours is None and minutes is None and seconds is None:
        raise InvalidDuration(text, "no components")
    if match.group("time") is not None and hours is None and minutes is None and seconds is None:
        raise InvalidDuration(text, "empty time part")

    total_micros = (
        _component_micros(days, SECONDS_PER_DAY)
        + _component_micros(hours, SECONDS_PER_HOUR)
        + _component_micros(minutes, SECONDS_PER_MINUTE)
        + _component_micros(seconds, 1)
        + _fraction_micros(seconds, match.group("fraction"))
    )
    if match.group("sign") == "-":
        total_micros = -total_micros

    if total_micros < 0:
        raise InvalidDuration(text, "negative")
    try:
        return timedelta(microseconds=total_micros)
    except OverflowError:
        raise InvalidDuration(text, "out of range")


# ============================================================================
# Arithmetic
# ============================================================================


def add_durations(first: Optional[timedelta], second: Optional[timedelta]) -> timedelta:
    """
    Add two durations, treating None as zero.

    Args:
        first: First duration (or None)
        second: Second duration (or None)

    Returns:
        The sum

    Raises:
        InvalidDuration: If the sum is negative or exceeds the timedelta range
    """
    first = first if first is not None else timedelta(0)
    second = second if second is not None else timedelta(0)
    try:
        total = first + second
    except OverflowError:
        raise InvalidDuration(f"{first} + {second}", "out of range")
    if total < timedelta(0):
        raise InvalidDuration(f"{first} + {second}", "negative")
    return total


# ============================================================================
# Formatting
# ============================================================================


def format_duration(value: timedelta) -> str:
    """
    Format a non-negative timedelta in canonical ISO-8601 form.

    Args:
        value: Duration to format

    Returns:
        Canonical string, e.g. "PT0S", "PT1H30M", "PT48H", "PT1.5S"

    Raises:
        InvalidDuration: If value is negative

    Examples:
        >>> format_duration(timedelta(days=2))
        'PT48H'
        >>> format_duration(timedelta(seconds=1, microseconds=500000))
        'PT1.5S'
    """
    if value < timedelta(0):
        raise InvalidDuration(str(value), "negative")
    if value == timedelta(0):
        return "PT0S"

    total_seconds = value.days * SECONDS_PER_DAY + value.seconds
    hours, remainder = divmod(total_seconds, SECONDS_PER_HOUR)
    minutes, seconds = divmod(remainder, SECONDS_PER_MINUTE)
    micros = value.microseconds

    parts = ["PT"]
    if hours:
        parts.append(f"{hours}H")
    if minutes:
        parts.append(f"{minutes}M")
    if seconds or micros:
        parts.append(str(seconds))
        if micros:
            parts.append("." + f"{micros:06d}".rstrip("0"))
        parts.append("S")
    return "".join(parts)


def derive_total(cook_time: Optional[str], prep_time: Optional[str]) -> Optional[str]:
    """
    Derive the canonical total time from cook and prep durations.

    Args:
        cook_time: Cook duration string (or None)
        prep_time: Prep duration string (or None)

    Returns:
        Canonical string of cook + prep, or None when both are absent

    Raises:
        InvalidDuration: If either input is invalid or the sum is out of range

    Examples:
        >>> derive_total("PT1H", "PT30M")
        'PT1H30M'
        >>> derive_total(None, "PT15M")
        'PT15M'
        >>> derive_total(None, None) is None
        True
    """
    if cook_time is None and prep_time is None:
        return None
    cook = parse_duration(cook_time) if cook_time is not None else None
    prep = parse_duration(prep_time) if prep_time is not None else None
    return format_duration(add_durations(cook, prep))


def normalize_duration(text: Optional[str]) -> Optional[str]:
    """
    Validate a duration string and return it trimmed for storage.

    None passes through unchanged.

    Raises:
        InvalidDuration: If text is not None and not a valid duration
    """
    if text is None:
        return None
    parse_duration(text)
    return text.strip()
