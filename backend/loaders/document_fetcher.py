"""
Document Fetcher Module
Retrieves receipt PDFs over HTTP and returns their text as a tagged result.
Failures are returned, never raised, so one bad receipt cannot stop a batch.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Union

import requests

from .pdf_loader import load_pdf_bytes, PDFLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentText:
    """Successful retrieval: the receipt's raw text."""
    text: str
    kind: str = "document"


@dataclass(frozen=True)
class FetchFailure:
    """Failed retrieval with a human-readable reason."""
    message: str
    kind: str = "error"


FetchResult = Union[DocumentText, FetchFailure]


class DocumentCache(Protocol):
    """Cache of fetched receipt text keyed by URL."""

    def get(self, url: str) -> Optional[str]:
        ...

    def put(self, url: str, text: str) -> None:
        ...


class InMemoryDocumentCache:
    """Process-local DocumentCache owned by a single fetcher."""

    def __init__(self):
        self._documents: dict[str, str] = {}

    def get(self, url: str) -> Optional[str]:
        return self._documents.get(url)

    def put(self, url: str, text: str) -> None:
        self._documents[url] = text

    def clear(self) -> None:
        self._documents.clear()

    def __len__(self) -> int:
        return len(self._documents)


class DocumentFetcher:
    """
    Fetches receipt documents and converts PDF responses to text.

    Instances are callable so they can be handed straight to the
    TransactionAssembler as its fetch collaborator.
    """

    PDF_CONTENT_TYPE = "application/pdf"

    def __init__(
        self,
        timeout: float = 30.0,
        cache: Optional[DocumentCache] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize fetcher.

        Args:
            timeout: Per-request timeout in seconds
            cache: Optional cache; only successful retrievals are stored
            session: Optional requests session (a new one is created otherwise)
        """
        self.timeout = timeout
        self.cache = cache
        self.session = session or requests.Session()
        self.stats = {
            "requests": 0,
            "cache_hits": 0,
            "failures": 0
        }

    def __call__(self, url: str) -> FetchResult:
        return self.fetch(url)

    def fetch(self, url: str) -> FetchResult:
        """
        Retrieve a receipt and extract its text.

        Args:
            url: Receipt link found in a message

        Returns:
            DocumentText on success, FetchFailure otherwise
        """
        if self.cache is not None:
            cached = self.cache.get(url)
            if cached is not None:
                self.stats["cache_hits"] += 1
                logger.debug(f"Cache hit for {url}")
                return DocumentText(cached)

        result = self._fetch_uncached(url)

        if isinstance(result, DocumentText):
            if self.cache is not None:
                self.cache.put(url, result.text)
        else:
            self.stats["failures"] += 1

        return result

    def _fetch_uncached(self, url: str) -> FetchResult:
        self.stats["requests"] += 1

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Error fetching {url}: {e}")
            return FetchFailure(f"Error fetching content: {e}")

        if not response.ok:
            logger.warning(f"HTTP {response.status_code} for {url}")
            return FetchFailure(f"HTTP error: {response.status_code}")

        content_type = response.headers.get("content-type", "")
        if self.PDF_CONTENT_TYPE not in content_type.lower():
            logger.warning(f"Unexpected content type '{content_type}' for {url}")
            return FetchFailure(f"Unexpected content type: {content_type or 'unknown'}")

        try:
            text = load_pdf_bytes(response.content, source=url)
        except PDFLoadError as e:
            return FetchFailure(f"Error extracting text from PDF: {e}")

        return DocumentText(text)

    def close(self):
        """Close the underlying HTTP session."""
        self.session.close()

    def get_stats(self) -> dict:
        """Get fetch statistics."""
        return self.stats.copy()
