"""
Transaction Assembler Module
Turns one notification message into at most one Transaction by following its
receipt link and merging the receipt fields with the balance stated in the message.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Callable, Optional

from loaders.document_fetcher import DocumentText, FetchFailure, FetchResult
from validators.batch_validator import Message
from .message_extractor import extract_balance, extract_link, is_qualifying_link
from .receipt_extractor import ReceiptExtractor, ReceiptFields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transaction:
    """Represents a single transaction assembled from a message and its receipt."""
    amount: Optional[float] = None
    date: Optional[str] = None
    time: Optional[str] = None
    receiver: Optional[str] = None
    payer: Optional[str] = None
    reason: Optional[str] = None
    total_amount: Optional[float] = None
    current_balance: Optional[float] = None

    # Output keys that differ from the attribute names
    KEY_ALIASES = {"totalAmount": "total_amount", "currentBalance": "current_balance"}

    @classmethod
    def field_name(cls, key: str) -> Optional[str]:
        """
        Resolve an output key (camelCase or snake_case) to an attribute name.

        Returns:
            Attribute name, or None if the key names no transaction field
        """
        name = cls.KEY_ALIASES.get(key, key)
        return name if name in cls.__dataclass_fields__ else None

    def to_dict(self) -> dict:
        """Convert transaction to dictionary."""
        return {
            "amount": self.amount,
            "date": self.date,
            "time": self.time,
            "receiver": self.receiver,
            "payer": self.payer,
            "reason": self.reason,
            "totalAmount": self.total_amount,
            "currentBalance": self.current_balance,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        """Build a transaction from either camelCase or snake_case keys."""
        return cls(
            amount=data.get("amount"),
            date=data.get("date"),
            time=data.get("time"),
            receiver=data.get("receiver"),
            payer=data.get("payer"),
            reason=data.get("reason"),
            total_amount=data.get("totalAmount", data.get("total_amount")),
            current_balance=data.get("currentBalance", data.get("current_balance")),
        )

    def __repr__(self) -> str:
        return (
            f"Transaction(date={self.date}, receiver={self.receiver}, "
            f"amount={self.amount}, balance={self.current_balance})"
        )


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while assembling one message."""
    kind: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AssemblyOutcome:
    """Result of assembling one message."""
    transaction: Optional[Transaction] = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    link: Optional[str] = None


DocumentFetch = Callable[[str], FetchResult]


class TransactionAssembler:
    """
    Assembles Transactions from messages.

    The fetch collaborator is called at most once per message and only for
    links on the expected issuing host.
    """

    def __init__(self, fetch_document: DocumentFetch, expected_host: str):
        """
        Initialize assembler.

        Args:
            fetch_document: Callable taking a URL and returning DocumentText
                            or FetchFailure
            expected_host: Issuing domain whose receipt links are followed
        """
        self.fetch_document = fetch_document
        self.expected_host = expected_host
        self.receipt_extractor = ReceiptExtractor()
        self.stats = {
            "messages_seen": 0,
            "links_followed": 0,
            "links_ignored": 0,
            "fetch_failures": 0,
            "transactions_built": 0
        }

    def assemble(self, message: Message) -> AssemblyOutcome:
        """
        Assemble a transaction for one message.

        Args:
            message: The message to process

        Returns:
            AssemblyOutcome holding the transaction (or None) and diagnostics
        """
        self.stats["messages_seen"] += 1
        outcome = AssemblyOutcome()

        balance = extract_balance(message.text)

        link = extract_link(message.text)
        if link is None:
            logger.debug("Message has no link")
            return outcome

        if not is_qualifying_link(link, self.expected_host):
            self.stats["links_ignored"] += 1
            logger.debug(f"Ignoring link to foreign host: {link[:60]}")
            return outcome

        outcome.link = link
        self.stats["links_followed"] += 1

        fields = self._fetch_fields(link, outcome)
        if fields is None:
            return outcome

        outcome.diagnostics.extend(Diagnostic("field_parse", error) for error in fields.errors)

        if not fields.has_data():
            outcome.diagnostics.append(
                Diagnostic("no_fields", f"No receipt fields found in document at {link}")
            )
            logger.warning(f"Receipt at {link} yielded no fields")
            return outcome

        outcome.transaction = Transaction(
            amount=fields.amount,
            date=fields.date,
            time=fields.time,
            receiver=fields.receiver,
            payer=fields.payer,
            reason=fields.reason,
            total_amount=fields.total_amount,
            current_balance=balance if balance is not None else fields.current_balance,
        )
        self.stats["transactions_built"] += 1
        logger.info(f"Created transaction: {outcome.transaction}")
        return outcome

    def _fetch_fields(self, link: str, outcome: AssemblyOutcome) -> Optional[ReceiptFields]:
        """Fetch the receipt and extract its fields; record failures on the outcome."""
        try:
            result = self.fetch_document(link)
        except Exception as e:
            logger.error(f"Document fetch raised for {link}: {e}", exc_info=True)
            result = FetchFailure(f"Error fetching content: {e}")

        if isinstance(result, FetchFailure):
            self.stats["fetch_failures"] += 1
            logger.error(f"Error fetching or parsing receipt {link}: {result.message}")
            outcome.diagnostics.append(
                Diagnostic("fetch_failed", f"Error fetching or parsing receipt: {result.message}")
            )
            return None

        if not isinstance(result, DocumentText):
            self.stats["fetch_failures"] += 1
            outcome.diagnostics.append(
                Diagnostic("fetch_failed", f"Unexpected fetch result type: {type(result).__name__}")
            )
            return None

        if not result.text or not result.text.strip():
            logger.warning(f"Receipt at {link} contained no text")
            outcome.diagnostics.append(
                Diagnostic("empty_document", f"No text could be extracted from receipt at {link}")
            )
            return None

        return self.receipt_extractor.extract(result.text)

    def get_stats(self) -> dict:
        """Get assembly statistics."""
        stats = self.stats.copy()
        stats.update({f"receipt_{k}": v for k, v in self.receipt_extractor.get_stats().items()})
        return stats
