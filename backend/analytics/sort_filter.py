"""
Sort/Filter Module
Generic ordering and date-range filtering for any homogeneous record collection:
transactions, aggregation rows, or plain dictionaries.
"""

import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional, Union

logger = logging.getLogger(__name__)


DateBound = Union[str, date, None]

ASCENDING = "asc"
DESCENDING = "desc"

# Canonical first, then the month-first receipt form
DATE_FORMATS = [
    '%Y-%m-%d',    # YYYY-MM-DD
    '%m/%d/%Y',    # MM/DD/YYYY
]


def get_field(record: Any, key: str) -> Any:
    """Read ``key`` from a mapping or an attribute-style record."""
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def parse_record_date(value: Any) -> Optional[date]:
    """
    Parse a record's date value into a calendar date.

    Args:
        value: "YYYY-MM-DD" / "MM/DD/YYYY" string, date, or datetime

    Returns:
        date, or None if the value is missing or unparsable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


class SortFilter:
    """Sorts and filters record collections without mutating them."""

    @staticmethod
    def sort(records: Iterable[Any], key: str, direction: str = ASCENDING) -> list:
        """
        Sort records by one field.

        The sort is stable. Dates are compared as calendar dates; every other
        key uses the values' natural ordering. Missing or unparsable values
        rank lowest: first when ascending, last when descending.

        Args:
            records: Records to sort (left untouched)
            key: Field name, e.g. "date", "amount", "receiver"
            direction: "asc" or "desc"

        Returns:
            New sorted list

        Raises:
            ValueError: If direction is not "asc" or "desc"
        """
        if direction not in (ASCENDING, DESCENDING):
            raise ValueError(f"direction must be '{ASCENDING}' or '{DESCENDING}', got '{direction}'")

        if key == "date":
            def sort_key(record):
                parsed = parse_record_date(get_field(record, key))
                return (0,) if parsed is None else (1, parsed)
        else:
            def sort_key(record):
                value = get_field(record, key)
                return (0,) if value is None else (1, value)

        return sorted(records, key=sort_key, reverse=(direction == DESCENDING))

    @staticmethod
    def filter_by_date_range(
        records: Iterable[Any],
        start: DateBound = None,
        end: DateBound = None,
        key: str = "date"
    ) -> list:
        """
        Keep records whose date lies within inclusive bounds.

        Args:
            records: Records to filter
            start: Inclusive lower bound (None for open)
            end: Inclusive upper bound (None for open)
            key: Name of the date field

        Returns:
            Filtered list. With any bound set, records without a parsable
            date are dropped.

        Raises:
            ValueError: If a bound cannot be parsed as a date
        """
        records = list(records)
        start_date = SortFilter._parse_bound(start, "start")
        end_date = SortFilter._parse_bound(end, "end")

        if start_date is None and end_date is None:
            return records

        filtered = []
        for record in records:
            record_date = parse_record_date(get_field(record, key))
            if record_date is None:
                continue
            if start_date and record_date < start_date:
                continue
            if end_date and record_date > end_date:
                continue
            filtered.append(record)

        logger.info(
            f"Date range filter ({start_date or '*'} to {end_date or '*'}): "
            f"{len(filtered)}/{len(records)} records matched"
        )
        return filtered

    @staticmethod
    def sort_and_filter(
        records: Iterable[Any],
        key: Optional[str] = None,
        direction: str = ASCENDING,
        start: DateBound = None,
        end: DateBound = None
    ) -> list:
        """
        Filter by date range, then sort. With no key the filtered order is kept.

        Args:
            records: Records to process
            key: Sort field or None
            direction: "asc" or "desc"
            start: Inclusive lower date bound
            end: Inclusive upper date bound

        Returns:
            New list
        """
        filtered = SortFilter.filter_by_date_range(records, start, end)
        if not key:
            return filtered
        return SortFilter.sort(filtered, key, direction)

    @staticmethod
    def _parse_bound(bound: DateBound, name: str) -> Optional[date]:
        if bound is None or bound == "":
            return None
        parsed = parse_record_date(bound)
        if parsed is None:
            raise ValueError(f"Invalid {name} date '{bound}'. Use YYYY-MM-DD")
        return parsed


def sort_records(records: Iterable[Any], key: str, direction: str = ASCENDING) -> list:
    """Convenience wrapper around SortFilter.sort."""
    return SortFilter.sort(records, key, direction)


def filter_by_date_range(records: Iterable[Any], start: DateBound = None, end: DateBound = None) -> list:
    """Convenience wrapper around SortFilter.filter_by_date_range."""
    return SortFilter.filter_by_date_range(records, start, end)


def sort_and_filter(
    records: Iterable[Any],
    key: Optional[str] = None,
    direction: str = ASCENDING,
    start: DateBound = None,
    end: DateBound = None
) -> list:
    """Convenience wrapper around SortFilter.sort_and_filter."""
    return SortFilter.sort_and_filter(records, key, direction, start, end)
