"""
Extractors Module - Message, receipt and date extraction plus transaction assembly.
"""

from .message_extractor import (
    extract_link,
    extract_balance,
    is_qualifying_link
)

from .receipt_extractor import (
    ReceiptExtractor,
    ReceiptFields,
    extract_between,
    extract_labeled_value,
    extract_party,
    extract_from_receipt,
    parse_amount
)

from .date_normalizer import (
    NormalizedDateTime,
    normalize_date_time
)

from .transaction_assembler import (
    Transaction,
    Diagnostic,
    AssemblyOutcome,
    TransactionAssembler
)

__all__ = [
    'extract_link',
    'extract_balance',
    'is_qualifying_link',
    'ReceiptExtractor',
    'ReceiptFields',
    'extract_between',
    'extract_labeled_value',
    'extract_party',
    'extract_from_receipt',
    'parse_amount',
    'NormalizedDateTime',
    'normalize_date_time',
    'Transaction',
    'Diagnostic',
    'AssemblyOutcome',
    'TransactionAssembler',
]
