"""
Message Loader Module
Reads an exported SMS batch (a JSON array of message objects) from disk or memory.
"""

import json
import logging
from pathlib import Path
from typing import Any

from validators.batch_validator import MalformedBatchError

logger = logging.getLogger(__name__)


def load_messages_bytes(content: bytes, source: str = "<upload>") -> Any:
    """
    Decode a JSON message export.

    Args:
        content: Raw file bytes
        source: Label used in log and error messages

    Returns:
        The decoded JSON document (validated later by BatchValidator)

    Raises:
        MalformedBatchError: If the content is not valid UTF-8 JSON
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        logger.error(f"Message export {source} is not UTF-8: {e}")
        raise MalformedBatchError(f"Message export {source} is not valid UTF-8 text") from e

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Message export {source} is not valid JSON: {e}")
        raise MalformedBatchError(
            "Error processing file. Please ensure it is a valid JSON file."
        ) from e

    logger.info(f"Loaded message export {source} ({len(content)} bytes)")
    return payload


def load_messages(file_path: str) -> Any:
    """
    Read and decode a JSON message export from disk.

    Args:
        file_path: Path to the .json export

    Returns:
        The decoded JSON document

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedBatchError: If the file is not valid JSON
    """
    path = Path(file_path)
    if not path.exists():
        logger.error(f"Message export not found: {file_path}")
        raise FileNotFoundError(f"Message export not found: {file_path}")

    return load_messages_bytes(path.read_bytes(), source=path.name)
