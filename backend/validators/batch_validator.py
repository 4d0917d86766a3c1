"""
Batch Validator Module
Checks that an exported message batch is a sequence of message-like records.
A malformed batch is the only error that aborts processing.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Message:
    """A single notification message from the exported batch."""
    text: str


class MalformedBatchError(Exception):
    """Raised when the batch itself is not a list of message records."""
    pass


class BatchValidator:
    """Validates a decoded message export and converts it to Message records."""

    def __init__(self):
        self.validation_stats = {
            "total_entries": 0,
            "messages": 0,
            "without_text": 0
        }

    def validate(self, payload) -> list[Message]:
        """
        Validate a decoded batch.

        Entries that are not objects, or have no string ``text``, become
        empty messages so that message indices and progress totals match
        the input.

        Args:
            payload: Decoded JSON export, expected to be a list of objects

        Returns:
            Messages in input order

        Raises:
            MalformedBatchError: If the payload is not a list
        """
        if not isinstance(payload, list):
            logger.error(f"Invalid batch: expected a list of messages, got {type(payload).__name__}")
            raise MalformedBatchError("Invalid JSON format: Expected an array of messages.")

        messages = []
        for idx, entry in enumerate(payload):
            self.validation_stats["total_entries"] += 1

            if isinstance(entry, Mapping):
                text = entry.get("text")
            else:
                logger.warning(f"Batch entry {idx}: {type(entry).__name__} is not a message object")
                text = None

            if not isinstance(text, str) or not text:
                self.validation_stats["without_text"] += 1
                logger.debug(f"Entry {idx} has no message text")
                text = ""

            messages.append(Message(text=text))
            self.validation_stats["messages"] += 1

        logger.info(
            f"Batch validation complete: {self.validation_stats['messages']} messages, "
            f"{self.validation_stats['without_text']} without text"
        )
        return messages

    def get_stats(self) -> dict:
        """Get validation statistics."""
        return self.validation_stats.copy()


def validate_batch(payload) -> list[Message]:
    """
    Convenience function to validate a decoded batch.

    Args:
        payload: Decoded JSON export

    Returns:
        List of Message records
    """
    validator = BatchValidator()
    return validator.validate(payload)
