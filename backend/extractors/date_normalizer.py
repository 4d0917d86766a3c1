"""
Date Normalizer Module
Converts the receipt's "Payment Date & Time" value into a canonical date and time.
"""

import re
import logging
from datetime import date
from typing import NamedTuple, Optional

logger = logging.getLogger(__name__)


class NormalizedDateTime(NamedTuple):
    """Canonical date/time pair. Both parts are None when the input is unusable."""
    date: Optional[str]
    time: Optional[str]
    error: Optional[str] = None


# "3/4/2024, 10:15:00 AM" - the first component is read as the month and
# the second as the day. The receipt locale is not checked.
DATE_TIME_PATTERN = re.compile(
    r'^\s*(\S+?)/(\S+?)/(\S+?)\s*,\s*(\d{1,2}):(\d{2}):(\d{2})\s*([AaPp][Mm])\b'
)
NUMERIC_COMPONENT = re.compile(r'^\d{1,4}$')


def normalize_date_time(raw: Optional[str]) -> NormalizedDateTime:
    """
    Normalize a raw receipt date/time value.

    Args:
        raw: Value captured after the "Payment Date & Time" label,
             e.g. "3/4/2024, 10:15:00 AM"

    Returns:
        NormalizedDateTime with date "YYYY-MM-DD" and time "HH:MM:SS AM/PM",
        or both None plus an error description
    """
    if raw is None:
        return NormalizedDateTime(None, None)

    match = DATE_TIME_PATTERN.match(raw)
    if not match:
        return _failure(raw, "does not match 'M/D/YYYY, H:MM:SS AM' shape")

    first, second, year, hour, minute, second_of_minute, meridiem = match.groups()

    if not all(NUMERIC_COMPONENT.match(part) for part in (first, second, year)):
        return _failure(raw, "date is not three numeric components")

    if len(year) != 4:
        return _failure(raw, f"year '{year}' is not four digits")

    month = int(first)
    day = int(second)

    try:
        date(int(year), month, day)
    except ValueError as e:
        return _failure(raw, f"not a calendar date ({e})")

    if not 1 <= int(hour) <= 12 or int(minute) > 59 or int(second_of_minute) > 59:
        return _failure(raw, "time of day out of range")

    canonical_date = f"{year}-{month:02d}-{day:02d}"
    canonical_time = f"{int(hour):02d}:{minute}:{second_of_minute} {meridiem.upper()}"

    logger.debug(f"Normalized '{raw.strip()}' -> {canonical_date} {canonical_time}")
    return NormalizedDateTime(canonical_date, canonical_time)


def _failure(raw: str, reason: str) -> NormalizedDateTime:
    message = f"Unrecognized payment date '{raw.strip()[:40]}': {reason}"
    logger.warning(message)
    return NormalizedDateTime(None, None, message)
