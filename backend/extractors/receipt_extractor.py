"""
Receipt Extractor Module
Parses CBE transaction receipt text into labeled fields using anchor extraction.
Receipts have no schema, so each field is located by the literal label that
precedes it and, where needed, the label or unit that follows it.
"""

import math
import re
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .date_normalizer import normalize_date_time

logger = logging.getLogger(__name__)


EndMarker = Union[str, Sequence[str], None]

# Amount text after separators are stripped, e.g. "1234.56" or "-30"
NUMBER_PATTERN = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$')


def extract_between(text: str, start_marker: str, end_marker: EndMarker = None) -> Optional[str]:
    """
    Extract the value between two literal markers.

    The value ends at the first end marker found at or after the end of the
    start marker.

    Args:
        text: Receipt text
        start_marker: Label preceding the value
        end_marker: Marker following the value. None reads to end of text.
                    A sequence lists alternatives for different receipt
                    layouts; the nearest one found wins.

    Returns:
        Trimmed value, or None if the start marker is absent or the
        end marker is never found after it
    """
    return _extract_after(text, start_marker, end_marker, skip_leading_space=False)


def extract_labeled_value(text: str, label: str, end_marker: EndMarker = None) -> Optional[str]:
    """
    Like extract_between, but the whitespace run right after the label is
    never taken as an end marker.

    Used where the value may sit on the line after its label and a line
    break is one of the end markers.
    """
    return _extract_after(text, label, end_marker, skip_leading_space=True)


def _extract_after(
    text: str,
    start_marker: str,
    end_marker: EndMarker,
    skip_leading_space: bool
) -> Optional[str]:
    if not text or not start_marker:
        return None

    start = text.find(start_marker)
    if start == -1:
        return None

    value_start = start + len(start_marker)

    if end_marker is None:
        return text[value_start:].strip()

    search_from = value_start
    if skip_leading_space:
        while search_from < len(text) and text[search_from].isspace():
            search_from += 1

    candidates = [end_marker] if isinstance(end_marker, str) else list(end_marker)
    ends = [text.find(candidate, search_from) for candidate in candidates if candidate]
    ends = [end for end in ends if end != -1]
    if not ends:
        return None

    return text[value_start:min(ends)].strip()


def extract_party(text: str, label: str) -> Optional[str]:
    """
    Extract a payer or receiver name.

    The name follows the label and a whitespace run, and ends at the next
    two-space-prefixed "Account" label or, on layouts without one, at the
    next line break, whichever comes first.

    Args:
        text: Receipt text
        label: "Payer" or "Receiver"

    Returns:
        Trimmed name, or None
    """
    if not text:
        return None

    match = re.search(re.escape(label) + r'\s+', text)
    if not match:
        return None

    value_start = match.end()
    ends = [text.find(marker, value_start) for marker in ("  Account", "\n")]
    ends = [end for end in ends if end != -1]
    if not ends:
        return None
    end = min(ends)

    name = text[value_start:end].strip()
    return name or None


def parse_amount(raw: Optional[str]) -> Optional[float]:
    """
    Parse an amount string, stripping thousands separators.

    Args:
        raw: Amount text such as "1,234.56"

    Returns:
        Float value, or None when the text is not a finite number
    """
    if raw is None:
        return None

    clean = raw.replace(',', '').replace(' ', '').strip()
    if not NUMBER_PATTERN.match(clean):
        return None

    value = float(clean)
    if not math.isfinite(value):
        return None
    return value


@dataclass
class ReceiptFields:
    """Fields extracted from one receipt, plus any per-field parse diagnostics."""
    amount: Optional[float] = None
    date: Optional[str] = None
    time: Optional[str] = None
    receiver: Optional[str] = None
    payer: Optional[str] = None
    reason: Optional[str] = None
    total_amount: Optional[float] = None
    current_balance: Optional[float] = None
    errors: list[str] = field(default_factory=list)

    def has_data(self) -> bool:
        """True if at least one receipt field was extracted."""
        return any(
            value is not None
            for value in (
                self.amount, self.date, self.time, self.receiver,
                self.payer, self.reason, self.total_amount, self.current_balance,
            )
        )


class ReceiptExtractor:
    """
    Extracts transaction fields from receipt text.
    Label and unit markers follow the CBE receipt layout.
    """

    AMOUNT_LABEL = "Transferred Amount"
    DATE_LABEL = "Payment Date & Time"
    REASON_LABEL = "Reason / Type of service"
    TOTAL_LABEL = "Total amount debited from customers account"
    BALANCE_LABEL = "Account Balance"
    PAYER_LABEL = "Payer"
    RECEIVER_LABEL = "Receiver"
    CURRENCY = "ETB"

    # Single-line layouts run the reason straight into the amount row
    REASON_END = (AMOUNT_LABEL, "\n")

    def __init__(self):
        """Initialize extractor with empty statistics."""
        self.stats = {
            "receipts_processed": 0,
            "fields_found": 0,
            "fields_missing": 0,
            "parse_failures": 0
        }

    def extract(self, text: str) -> ReceiptFields:
        """
        Extract all known fields from receipt text.

        Args:
            text: Full receipt text

        Returns:
            ReceiptFields; missing fields are None and parse failures are
            listed in ``errors``
        """
        fields = ReceiptFields()
        self.stats["receipts_processed"] += 1

        if not text or not isinstance(text, str) or not text.strip():
            logger.warning("Empty receipt text provided for extraction")
            return fields

        fields.amount = self._extract_number(
            text, self.AMOUNT_LABEL, self.CURRENCY, "amount", fields.errors
        )
        fields.total_amount = self._extract_number(
            text, self.TOTAL_LABEL, self.CURRENCY, "total amount", fields.errors
        )
        fields.current_balance = self._extract_number(
            text, self.BALANCE_LABEL, self.CURRENCY, "balance", fields.errors
        )

        # Read to end of text; the normalizer only consumes the leading date and time
        raw_date = self._track(extract_between(text, self.DATE_LABEL))
        normalized = normalize_date_time(raw_date)
        fields.date = normalized.date
        fields.time = normalized.time
        if normalized.error:
            self.stats["parse_failures"] += 1
            fields.errors.append(normalized.error)

        fields.reason = self._track(extract_labeled_value(text, self.REASON_LABEL, self.REASON_END)) or None
        fields.payer = self._track(extract_party(text, self.PAYER_LABEL))
        fields.receiver = self._track(extract_party(text, self.RECEIVER_LABEL))

        logger.debug(
            f"Receipt fields: amount={fields.amount}, date={fields.date}, "
            f"payer={fields.payer}, receiver={fields.receiver}"
        )
        return fields

    def _extract_number(
        self,
        text: str,
        label: str,
        unit: str,
        name: str,
        errors: list[str]
    ) -> Optional[float]:
        """Extract a numeric field; record a diagnostic if it does not parse."""
        raw = self._track(extract_between(text, label, unit))
        if raw is None:
            return None

        value = parse_amount(raw)
        if value is None:
            self.stats["parse_failures"] += 1
            message = f"Cannot parse {name} '{raw[:40]}'"
            logger.warning(message)
            errors.append(message)
        return value

    def _track(self, value: Optional[str]) -> Optional[str]:
        key = "fields_found" if value is not None else "fields_missing"
        self.stats[key] += 1
        return value

    def get_stats(self) -> dict:
        """Get extraction statistics."""
        return self.stats.copy()


def extract_from_receipt(text: str) -> ReceiptFields:
    """
    Convenience function to extract fields from receipt text.

    Args:
        text: Receipt text

    Returns:
        ReceiptFields
    """
    extractor = ReceiptExtractor()
    return extractor.extract(text)
