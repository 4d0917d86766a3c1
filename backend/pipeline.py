"""
Batch Pipeline
Runs every message of an exported batch through the transaction assembler,
reports progress, collects per-message errors and returns the transactions in
canonical newest-first order.
"""

import logging
from dataclasses import dataclass, field, asdict
from typing import Callable, Optional

from analytics.sort_filter import sort_records
from config import config
from extractors.transaction_assembler import Transaction, TransactionAssembler
from loaders.document_fetcher import DocumentCache, DocumentFetcher
from loaders.message_loader import load_messages
from validators.batch_validator import BatchValidator

logger = logging.getLogger(__name__)


STAGE_VALIDATING = "validating"
STAGE_PROCESSING = "processing"
STAGE_SORTING = "sorting"
STAGE_COMPLETE = "complete"


@dataclass(frozen=True)
class BatchError:
    """A non-fatal error tied to one message of the batch."""
    index: int
    kind: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    processed: int
    total: int
    fraction: float
    message: str = ""


@dataclass
class BatchResult:
    """Outcome of processing one batch."""
    transactions: list[Transaction] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)
    total_messages: int = 0
    no_data: bool = False

    def to_dict(self) -> dict:
        """Convert result to the batch output dictionary."""
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "errors": [e.to_dict() for e in self.errors],
            "error_count": len(self.errors),
            "no_data": self.no_data,
            "total_messages": self.total_messages,
        }


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressTracker:
    """Emits progress events for one batch."""

    def __init__(self, total: int, callback: Optional[ProgressCallback] = None):
        self.total = total
        self.processed = 0
        self.callback = callback

    def emit(self, stage: str, message: str = ""):
        fraction = self.processed / self.total if self.total else 0.0
        if stage == STAGE_COMPLETE:
            fraction = 1.0
        event = ProgressEvent(
            stage=stage,
            processed=self.processed,
            total=self.total,
            fraction=fraction,
            message=message
        )
        if self.callback:
            self.callback(event)
        else:
            logger.debug(f"Progress [{stage}] {self.processed}/{self.total} {message}")

    def update(self, message: str = ""):
        """Count one processed message and report it."""
        self.processed += 1
        self.emit(STAGE_PROCESSING, message)


class BatchProcessor:
    """
    Sequential batch processor.

    Messages are handled one at a time in input order; the next fetch starts
    only after the previous message is fully assembled. A processor instance
    handles one batch; create a new one per run.
    """

    def __init__(
        self,
        assembler: TransactionAssembler,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Initialize processor.

        Args:
            assembler: Assembler used for each message
            progress_callback: Optional callable receiving ProgressEvent objects
        """
        self.assembler = assembler
        self.progress_callback = progress_callback
        self.validator = BatchValidator()
        self.stats = {
            "total_messages": 0,
            "transactions": 0,
            "errors": 0
        }

    def process(self, payload) -> BatchResult:
        """
        Process a decoded message batch.

        Args:
            payload: Decoded JSON export (a list of message objects)

        Returns:
            BatchResult with transactions newest-first

        Raises:
            MalformedBatchError: If the payload is not a list of message objects
        """
        logger.info("=" * 60)
        logger.info("Starting batch processing")

        tracker = ProgressTracker(0, self.progress_callback)
        tracker.emit(STAGE_VALIDATING, "Validating message batch")

        messages = self.validator.validate(payload)
        tracker.total = len(messages)
        self.stats["total_messages"] = len(messages)

        transactions = []
        errors = []

        for idx, message in enumerate(messages):
            try:
                outcome = self.assembler.assemble(message)
            except Exception as e:
                logger.error(f"Unexpected error processing message {idx}: {e}", exc_info=True)
                errors.append(BatchError(idx, "unexpected", f"Unexpected error: {e}"))
            else:
                errors.extend(BatchError(idx, d.kind, d.message) for d in outcome.diagnostics)
                if outcome.transaction is not None:
                    transactions.append(outcome.transaction)

            tracker.update(f"Processed message {idx + 1} of {len(messages)}")

        tracker.emit(STAGE_SORTING, "Ordering transactions")
        transactions = sort_records(transactions, "date", "desc")

        result = BatchResult(
            transactions=transactions,
            errors=errors,
            total_messages=len(messages),
            no_data=not transactions
        )
        self.stats["transactions"] = len(transactions)
        self.stats["errors"] = len(errors)

        tracker.emit(STAGE_COMPLETE, f"Extracted {len(transactions)} transactions")

        if result.no_data:
            logger.warning("No transaction data found in the uploaded file")
        logger.info(
            f"Batch complete: {len(messages)} messages, {len(transactions)} transactions, "
            f"{len(errors)} errors"
        )
        logger.info("=" * 60)
        return result

    def process_file(self, file_path: str) -> BatchResult:
        """
        Load a JSON export from disk and process it.

        Raises:
            FileNotFoundError: If the file does not exist
            MalformedBatchError: If the file is not a valid message batch
        """
        payload = load_messages(file_path)
        return self.process(payload)

    def get_stats(self) -> dict:
        """Get processing statistics."""
        stats = self.stats.copy()
        stats.update(self.validator.get_stats())
        stats.update(self.assembler.get_stats())
        return stats


def build_processor(
    host: Optional[str] = None,
    timeout: Optional[float] = None,
    cache: Optional[DocumentCache] = None,
    fetch_document=None,
    progress_callback: Optional[ProgressCallback] = None
) -> BatchProcessor:
    """
    Wire a BatchProcessor from configuration.

    Args:
        host: Issuing host (defaults to config.DOCUMENT_HOST)
        timeout: Fetch timeout in seconds (defaults to config.FETCH_TIMEOUT_SECONDS)
        cache: Optional document cache for the default fetcher
        fetch_document: Fetch callable replacing the default DocumentFetcher
        progress_callback: Optional progress callback

    Returns:
        Configured BatchProcessor
    """
    if fetch_document is None:
        fetch_document = DocumentFetcher(
            timeout=timeout if timeout is not None else config.FETCH_TIMEOUT_SECONDS,
            cache=cache
        )
    assembler = TransactionAssembler(fetch_document, host or config.DOCUMENT_HOST)
    return BatchProcessor(assembler, progress_callback=progress_callback)


def process_file(file_path: str, **kwargs) -> BatchResult:
    """
    Convenience function to process a JSON export file.

    Args:
        file_path: Path to the .json export
        **kwargs: Passed to build_processor

    Returns:
        BatchResult
    """
    processor = build_processor(**kwargs)
    return processor.process_file(file_path)
