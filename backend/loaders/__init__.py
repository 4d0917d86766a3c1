"""
Loaders Module - Receipt retrieval, PDF text extraction and message export loading.
"""

from .pdf_loader import (
    load_pdf_bytes,
    PDFLoadError
)

from .document_fetcher import (
    DocumentText,
    FetchFailure,
    FetchResult,
    DocumentCache,
    InMemoryDocumentCache,
    DocumentFetcher
)

from .message_loader import (
    load_messages,
    load_messages_bytes
)

__all__ = [
    'load_pdf_bytes',
    'PDFLoadError',
    'DocumentText',
    'FetchFailure',
    'FetchResult',
    'DocumentCache',
    'InMemoryDocumentCache',
    'DocumentFetcher',
    'load_messages',
    'load_messages_bytes',
]
