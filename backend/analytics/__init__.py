"""
Analytics Module - Sorting, date filtering and aggregation of transactions.
"""

from .sort_filter import (
    SortFilter,
    sort_records,
    filter_by_date_range,
    sort_and_filter,
    parse_record_date
)

from .aggregation import (
    AggregationEngine,
    AggregationRow,
    DistributionSlice,
    MonthlyRollup,
    SummaryTotals,
    top_n,
    top_recipients,
    top_senders,
    top_reasons,
    category_distribution,
    distribution_with_tail,
    monthly_rollup,
    summarize,
    build_report
)

__all__ = [
    'SortFilter',
    'sort_records',
    'filter_by_date_range',
    'sort_and_filter',
    'parse_record_date',
    'AggregationEngine',
    'AggregationRow',
    'DistributionSlice',
    'MonthlyRollup',
    'SummaryTotals',
    'top_n',
    'top_recipients',
    'top_senders',
    'top_reasons',
    'category_distribution',
    'distribution_with_tail',
    'monthly_rollup',
    'summarize',
    'build_report',
]
