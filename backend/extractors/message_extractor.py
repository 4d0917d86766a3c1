"""
Message Extractor Module
Pulls the receipt link and the stated account balance out of a notification message.
"""

import re
import logging
from typing import Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


# scheme://non-whitespace-run, e.g. https://apps.cbe.com.et:100/?id=FT24...
LINK_PATTERN = re.compile(r'[A-Za-z][A-Za-z0-9+.\-]*://\S+')

BALANCE_PHRASE = "Your Current Balance is ETB"

# Digits with optional thousands separators and an optional decimal part.
# A sentence-ending period after the amount is not part of the capture.
BALANCE_PATTERN = re.compile(
    re.escape(BALANCE_PHRASE) + r'\s*(\d[\d,]*(?:\.\d+)?)'
)


def extract_link(text: str) -> Optional[str]:
    """
    Find the first embedded URL in a message body.

    Args:
        text: Message text

    Returns:
        The URL, or None when the message carries no link
    """
    if not text or not isinstance(text, str):
        return None

    match = LINK_PATTERN.search(text)
    return match.group(0) if match else None


def is_qualifying_link(url: Optional[str], expected_host: str) -> bool:
    """
    Check whether a link points at the expected receipt issuing domain.

    The host must equal ``expected_host`` or be one of its sub-domains.

    Args:
        url: Link found in the message (may be None)
        expected_host: Configured issuing domain, e.g. "cbe.com.et"

    Returns:
        True if the link should be followed
    """
    if not url or not expected_host:
        return False

    try:
        host = urlsplit(url).hostname
    except ValueError as e:
        logger.debug(f"Unparsable link '{url[:60]}': {e}")
        return False

    if not host:
        return False

    host = host.lower()
    expected = expected_host.lower().strip('.')
    return host == expected or host.endswith('.' + expected)


def extract_balance(text: str) -> Optional[float]:
    """
    Find the account balance stated in a message body.

    Args:
        text: Message text

    Returns:
        Balance with thousands separators stripped, or None if the phrase
        is absent or the amount does not parse
    """
    if not text or not isinstance(text, str):
        return None

    match = BALANCE_PATTERN.search(text)
    if not match:
        return None

    raw = match.group(1)
    try:
        return float(raw.replace(',', ''))
    except ValueError:
        logger.warning(f"Cannot parse balance '{raw}' from message")
        return None
