import pytest

from analytics.aggregation import (
    AggregationRow,
    DistributionSlice,
    MonthlyRollup,
    build_report,
    category_distribution,
    distribution_with_tail,
    monthly_rollup,
    summarize,
    top_n,
    top_recipients,
    top_senders,
)
from extractors.transaction_assembler import Transaction


def txn(**kwargs):
    return Transaction(**kwargs)


def test_top_recipients_sums_absolute_amounts():
    transactions = [
        txn(receiver="A", amount=10.0),
        txn(receiver="A", amount=5.0),
        txn(receiver="B", amount=20.0),
    ]

    assert top_recipients(transactions) == [
        AggregationRow("B", 20.0, 1),
        AggregationRow("A", 15.0, 2),
    ]


def test_top_n_tie_breaks_by_count_then_key():
    transactions = [
        txn(payer="Zed", amount=-10.0),
        txn(payer="Amy", amount=10.0),
        txn(payer="Bob", amount=4.0),
        txn(payer="Bob", amount=6.0),
        txn(payer=None, amount=100.0),
        txn(payer="Cal", amount=None),
    ]

    result = top_senders(transactions)

    assert [row.key for row in result] == ["Bob", "Amy", "Zed", "Cal"]
    assert result[-1] == AggregationRow("Cal", 0.0, 1)


def test_top_n_truncates():
    transactions = [txn(reason=f"r{i}", amount=float(i)) for i in range(30)]

    result = top_n(transactions, "reason", 25)

    assert len(result) == 25
    assert result[0].key == "r29"


def test_top_n_rejects_unknown_attribute():
    with pytest.raises(ValueError):
        top_n([], "date")


def test_category_distribution():
    transactions = [txn(reason="rent"), txn(reason=None), txn(reason="rent"), txn(reason="")]

    assert category_distribution(transactions) == [
        DistributionSlice("rent", 2),
        DistributionSlice("Uncategorized", 2),
    ]


def test_distribution_collapses_small_groups():
    transactions = (
        [txn(receiver="A")] * 50
        + [txn(receiver=None)] * 9
        + [txn(receiver="C")]
    )

    assert distribution_with_tail(transactions) == [
        DistributionSlice("A", 50),
        DistributionSlice("Unknown Recipient", 9),
        DistributionSlice("Others", 1),
    ]


def test_distribution_without_tail():
    transactions = [txn(receiver="A"), txn(receiver="B"), txn(receiver="B")]

    assert distribution_with_tail(transactions) == [
        DistributionSlice("B", 2),
        DistributionSlice("A", 1),
    ]
    assert distribution_with_tail([]) == []


def test_distribution_ties_keep_first_seen_order():
    transactions = [txn(receiver="C"), txn(receiver="A"), txn(receiver="C"), txn(receiver="A"), txn(receiver="B")]

    assert [s.name for s in distribution_with_tail(transactions)] == ["C", "A", "B"]


def test_monthly_balance_comes_from_newest_transaction():
    # canonical order: newest first
    transactions = [
        txn(amount=100.0, date="2024-03-20", current_balance=500.0),
        txn(amount=-30.0, date="2024-03-02", current_balance=480.0),
    ]

    assert monthly_rollup(transactions) == [MonthlyRollup("2024-03", 100.0, 500.0)]


def test_monthly_rollup_is_chronological_and_skips_bad_dates():
    transactions = [
        txn(amount=40.0, date="2024-02-01", current_balance=None),
        txn(amount=25.0, date=None, current_balance=999.0),
        txn(amount=10.0, date="2024-01-15", current_balance=300.0),
        txn(amount=5.0, date="2024-01-03", current_balance=310.0),
    ]

    assert monthly_rollup(transactions) == [
        MonthlyRollup("2024-01", 15.0, 300.0),
        MonthlyRollup("2024-02", 40.0, None),
    ]


def test_summarize():
    transactions = [
        txn(amount=100.0, total_amount=102.0, current_balance=None),
        txn(amount=-40.0, current_balance=700.0),
        txn(amount=None, total_amount=3.0, current_balance=650.0),
    ]

    totals = summarize(transactions)

    assert totals.transaction_count == 3
    assert totals.total_income == 100.0
    assert totals.total_expenses == 40.0
    assert totals.net == 60.0
    assert totals.total_debited == 105.0
    assert totals.latest_balance == 700.0


def test_build_report_shape():
    transactions = [txn(amount=10.0, date="2024-01-01", receiver="A", payer="P", reason="fees")]

    report = build_report(transactions, top_n=5)

    assert set(report) == {
        "summary", "top_recipients", "top_senders", "top_reasons",
        "category_distribution", "recipient_distribution", "monthly",
    }
    assert report["top_recipients"] == [{"key": "A", "amount": 10.0, "count": 1}]
    assert report["monthly"] == [{"month": "2024-01", "expenses": 10.0, "balance": None}]
    assert report["summary"]["transaction_count"] == 1
