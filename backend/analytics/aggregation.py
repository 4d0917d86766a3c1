"""
Aggregation Module
Summary views over an ordered transaction list: top-N rankings, category and
recipient distributions, monthly rollups and headline totals.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from extractors.transaction_assembler import Transaction
from .sort_filter import ASCENDING, DESCENDING, SortFilter, parse_record_date

logger = logging.getLogger(__name__)


GROUPABLE_ATTRIBUTES = ("receiver", "payer", "reason")

DEFAULT_TOP_N = 25
DEFAULT_TAIL_THRESHOLD = 0.02

UNKNOWN_RECIPIENT = "Unknown Recipient"
UNCATEGORIZED = "Uncategorized"
OTHERS = "Others"


@dataclass(frozen=True)
class AggregationRow:
    """Absolute amount and transaction count attributed to one key."""
    key: str
    amount: float
    count: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DistributionSlice:
    name: str
    value: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MonthlyRollup:
    """Expenses and closing balance for one calendar month (YYYY-MM)."""
    month: str
    expenses: float
    balance: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SummaryTotals:
    transaction_count: int
    total_income: float
    total_expenses: float
    net: float
    total_debited: float
    latest_balance: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


class AggregationEngine:
    """Groups and totals transactions. All methods are pure."""

    @staticmethod
    def top_n(
        transactions: Iterable[Transaction],
        attribute: str,
        n: int = DEFAULT_TOP_N
    ) -> list[AggregationRow]:
        """
        Rank the values of one attribute by absolute amount.

        Transactions with a missing attribute are skipped. A missing amount
        counts as zero but still increments the count.

        Args:
            transactions: Transactions to rank
            attribute: "receiver", "payer" or "reason"
            n: Maximum number of rows

        Returns:
            Rows ordered by amount desc, then count desc, then key asc
        """
        if attribute not in GROUPABLE_ATTRIBUTES:
            raise ValueError(
                f"Cannot group by '{attribute}'. Expected one of: {', '.join(GROUPABLE_ATTRIBUTES)}"
            )

        totals = defaultdict(float)
        counts = defaultdict(int)

        for txn in transactions:
            key = getattr(txn, attribute)
            if key is None:
                continue
            totals[key] += abs(txn.amount) if txn.amount is not None else 0.0
            counts[key] += 1

        rows = [AggregationRow(key=key, amount=totals[key], count=counts[key]) for key in totals]
        # Stable passes, least significant key first
        rows = SortFilter.sort(rows, "key", ASCENDING)
        rows = SortFilter.sort(rows, "count", DESCENDING)
        rows = SortFilter.sort(rows, "amount", DESCENDING)

        logger.debug(f"Top {n} by {attribute}: {len(rows)} distinct values")
        return rows[:n]

    @staticmethod
    def count_by(
        transactions: Iterable[Transaction],
        attribute: str,
        default: str
    ) -> list[DistributionSlice]:
        """Count transactions per attribute value, in first-seen order."""
        counts = defaultdict(int)
        for txn in transactions:
            counts[getattr(txn, attribute) or default] += 1
        return [DistributionSlice(name=name, value=value) for name, value in counts.items()]

    @staticmethod
    def category_distribution(transactions: Iterable[Transaction]) -> list[DistributionSlice]:
        """Transaction counts per reason; missing reasons fall under "Uncategorized"."""
        return AggregationEngine.count_by(transactions, "reason", UNCATEGORIZED)

    @staticmethod
    def distribution_with_tail(
        transactions: Iterable[Transaction],
        threshold: float = DEFAULT_TAIL_THRESHOLD
    ) -> list[DistributionSlice]:
        """
        Recipient distribution with small groups collapsed.

        Args:
            transactions: Transactions to distribute
            threshold: Share of the total count below which a recipient is
                       merged into "Others"

        Returns:
            Slices sorted by count desc (ties keep first-seen order) with the
            "Others" slice, when present, appended last
        """
        slices = AggregationEngine.count_by(transactions, "receiver", UNKNOWN_RECIPIENT)
        total = sum(s.value for s in slices)
        if total == 0:
            return []

        kept = []
        others = 0
        for s in SortFilter.sort(slices, "value", DESCENDING):
            if s.value / total < threshold:
                others += s.value
            else:
                kept.append(s)

        if others > 0:
            kept.append(DistributionSlice(name=OTHERS, value=others))
        return kept

    @staticmethod
    def monthly_rollup(transactions: Iterable[Transaction]) -> list[MonthlyRollup]:
        """
        Per-month expenses and balance.

        Expects the canonical newest-first order and walks it from oldest to
        newest, so each month's balance is the balance of its newest
        transaction, even when that balance is missing. Expenses sum the
        positive amounts. Transactions without a parsable date are skipped.

        Args:
            transactions: Transactions in canonical order

        Returns:
            One row per month, in chronological order
        """
        expenses = defaultdict(float)
        balances = {}

        for txn in reversed(list(transactions)):
            parsed = parse_record_date(txn.date)
            if parsed is None:
                logger.warning(f"Skipping transaction with unparsable date in monthly rollup: {txn}")
                continue

            month = parsed.strftime("%Y-%m")
            positive = txn.amount is not None and txn.amount > 0
            expenses[month] += txn.amount if positive else 0.0
            balances[month] = txn.current_balance

        return [
            MonthlyRollup(month=month, expenses=expenses[month], balance=balances[month])
            for month in sorted(expenses)
        ]

    @staticmethod
    def summarize(transactions: Iterable[Transaction]) -> SummaryTotals:
        """
        Headline totals.

        Income sums positive amounts, expenses sum the absolute value of
        negative amounts. The latest balance is the first known balance in
        canonical (newest-first) order.
        """
        transactions = list(transactions)

        income = sum(t.amount for t in transactions if t.amount is not None and t.amount > 0)
        expenses = sum(-t.amount for t in transactions if t.amount is not None and t.amount < 0)
        debited = sum(t.total_amount for t in transactions if t.total_amount is not None)
        latest_balance = next(
            (t.current_balance for t in transactions if t.current_balance is not None),
            None
        )

        return SummaryTotals(
            transaction_count=len(transactions),
            total_income=float(income),
            total_expenses=float(expenses),
            net=float(income - expenses),
            total_debited=float(debited),
            latest_balance=latest_balance
        )

    @staticmethod
    def build_report(
        transactions: Iterable[Transaction],
        top_n: int = DEFAULT_TOP_N,
        tail_threshold: float = DEFAULT_TAIL_THRESHOLD
    ) -> dict:
        """
        Compute every aggregation as one JSON-ready dictionary.

        Args:
            transactions: Transactions in canonical order
            top_n: Row limit for the rankings
            tail_threshold: Share threshold for the recipient distribution

        Returns:
            Report dictionary
        """
        transactions = list(transactions)
        engine = AggregationEngine

        report = {
            "summary": engine.summarize(transactions).to_dict(),
            "top_recipients": [r.to_dict() for r in engine.top_n(transactions, "receiver", top_n)],
            "top_senders": [r.to_dict() for r in engine.top_n(transactions, "payer", top_n)],
            "top_reasons": [r.to_dict() for r in engine.top_n(transactions, "reason", top_n)],
            "category_distribution": [s.to_dict() for s in engine.category_distribution(transactions)],
            "recipient_distribution": [
                s.to_dict() for s in engine.distribution_with_tail(transactions, tail_threshold)
            ],
            "monthly": [m.to_dict() for m in engine.monthly_rollup(transactions)],
        }

        logger.info(
            f"Built report over {len(transactions)} transactions "
            f"({len(report['monthly'])} months, {len(report['top_recipients'])} recipients)"
        )
        return report


def top_n(transactions: Iterable[Transaction], attribute: str, n: int = DEFAULT_TOP_N) -> list[AggregationRow]:
    return AggregationEngine.top_n(transactions, attribute, n)


def top_recipients(transactions: Iterable[Transaction], n: int = DEFAULT_TOP_N) -> list[AggregationRow]:
    return AggregationEngine.top_n(transactions, "receiver", n)


def top_senders(transactions: Iterable[Transaction], n: int = DEFAULT_TOP_N) -> list[AggregationRow]:
    return AggregationEngine.top_n(transactions, "payer", n)


def top_reasons(transactions: Iterable[Transaction], n: int = DEFAULT_TOP_N) -> list[AggregationRow]:
    return AggregationEngine.top_n(transactions, "reason", n)


def category_distribution(transactions: Iterable[Transaction]) -> list[DistributionSlice]:
    return AggregationEngine.category_distribution(transactions)


def distribution_with_tail(
    transactions: Iterable[Transaction],
    threshold: float = DEFAULT_TAIL_THRESHOLD
) -> list[DistributionSlice]:
    return AggregationEngine.distribution_with_tail(transactions, threshold)


def monthly_rollup(transactions: Iterable[Transaction]) -> list[MonthlyRollup]:
    return AggregationEngine.monthly_rollup(transactions)


def summarize(transactions: Iterable[Transaction]) -> SummaryTotals:
    return AggregationEngine.summarize(transactions)


def build_report(
    transactions: Iterable[Transaction],
    top_n: int = DEFAULT_TOP_N,
    tail_threshold: float = DEFAULT_TAIL_THRESHOLD
) -> dict:
    """
    Convenience function to build the full aggregation report.

    Args:
        transactions: Transactions in canonical order
        top_n: Row limit for the rankings
        tail_threshold: Share threshold for the recipient distribution

    Returns:
        Report dictionary
    """
    return AggregationEngine.build_report(transactions, top_n, tail_threshold)
