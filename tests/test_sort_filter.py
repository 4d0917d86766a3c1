from datetime import date

import pytest

from analytics.sort_filter import (
    filter_by_date_range,
    parse_record_date,
    sort_and_filter,
    sort_records,
)
from extractors.transaction_assembler import Transaction


@pytest.fixture
def records():
    return [
        Transaction(amount=50.0, date="2024-02-10", receiver="Beta"),
        Transaction(amount=10.0, date="2024-01-05", receiver="Alpha"),
        Transaction(amount=None, date=None, receiver="Gamma"),
        Transaction(amount=30.0, date="2024-03-01", receiver="Delta"),
    ]


def test_sort_by_date_descending_puts_missing_dates_last(records):
    result = sort_records(records, "date", "desc")

    assert [t.receiver for t in result] == ["Delta", "Beta", "Alpha", "Gamma"]


def test_sort_by_date_ascending_puts_missing_dates_first(records):
    result = sort_records(records, "date", "asc")

    assert [t.receiver for t in result] == ["Gamma", "Alpha", "Beta", "Delta"]


def test_sort_by_amount(records):
    result = sort_records(records, "amount", "desc")

    assert [t.amount for t in result] == [50.0, 30.0, 10.0, None]


def test_sort_does_not_mutate_input(records):
    original = list(records)
    sort_records(records, "receiver")

    assert records == original


def test_sort_is_idempotent(records):
    once = sort_records(records, "date", "desc")

    assert sort_records(once, "date", "desc") == once


def test_reversing_direction_reverses_strict_order():
    rows = [{"amount": 3}, {"amount": 1}, {"amount": 2}]

    ascending = sort_records(rows, "amount", "asc")
    descending = sort_records(rows, "amount", "desc")

    assert descending == list(reversed(ascending))


def test_sort_is_stable_for_equal_keys():
    rows = [{"k": 1, "id": "a"}, {"k": 0, "id": "b"}, {"k": 1, "id": "c"}]

    assert [r["id"] for r in sort_records(rows, "k", "desc")] == ["a", "c", "b"]


def test_invalid_direction():
    with pytest.raises(ValueError):
        sort_records([], "date", "sideways")


def test_filter_inclusive_bounds(records):
    result = filter_by_date_range(records, "2024-01-05", "2024-02-10")

    assert [t.receiver for t in result] == ["Beta", "Alpha"]


def test_filter_open_bounds(records):
    assert [t.receiver for t in filter_by_date_range(records, start="2024-02-01")] == ["Beta", "Delta"]
    assert [t.receiver for t in filter_by_date_range(records, end=date(2024, 1, 31))] == ["Alpha"]


def test_filter_without_bounds_keeps_everything(records):
    assert filter_by_date_range(records) == records


def test_filter_rejects_invalid_bound(records):
    with pytest.raises(ValueError, match="Invalid start date"):
        filter_by_date_range(records, start="last week")


def test_sort_and_filter(records):
    result = sort_and_filter(records, key="amount", direction="asc", start="2024-01-01")

    assert [t.amount for t in result] == [10.0, 30.0, 50.0]


def test_parse_record_date():
    assert parse_record_date("2024-03-04") == date(2024, 3, 4)
    assert parse_record_date("3/4/2024") == date(2024, 3, 4)
    assert parse_record_date("2024-02-30") is None
    assert parse_record_date(None) is None
