import pytest
import requests

from loaders import document_fetcher
from loaders.document_fetcher import (
    DocumentFetcher,
    DocumentText,
    FetchFailure,
    InMemoryDocumentCache,
)
from loaders.pdf_loader import PDFLoadError


class FakeResponse:
    def __init__(self, status_code=200, content_type="application/pdf", content=b"%PDF-1.4"):
        self.status_code = status_code
        self.ok = status_code < 400
        self.headers = {"content-type": content_type}
        self.content = content


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if self.error:
            raise self.error
        return self.response

    def close(self):
        pass


@pytest.fixture
def pdf_text(monkeypatch):
    monkeypatch.setattr(document_fetcher, "load_pdf_bytes", lambda content, source: "Transferred Amount 5 ETB")


def test_pdf_response_becomes_document_text(pdf_text):
    session = FakeSession()
    fetcher = DocumentFetcher(timeout=5, session=session)

    result = fetcher("https://cbe.com.et/r1")

    assert result == DocumentText("Transferred Amount 5 ETB")
    assert result.kind == "document"
    assert session.requests == [("https://cbe.com.et/r1", 5)]


def test_http_error_status():
    fetcher = DocumentFetcher(session=FakeSession(FakeResponse(status_code=404)))

    result = fetcher.fetch("https://cbe.com.et/r1")

    assert result == FetchFailure("HTTP error: 404")
    assert result.kind == "error"


def test_unexpected_content_type():
    fetcher = DocumentFetcher(session=FakeSession(FakeResponse(content_type="text/html; charset=utf-8")))

    result = fetcher.fetch("https://cbe.com.et/r1")

    assert isinstance(result, FetchFailure)
    assert result.message == "Unexpected content type: text/html; charset=utf-8"


def test_network_error():
    session = FakeSession(error=requests.ConnectionError("connection refused"))

    result = DocumentFetcher(session=session).fetch("https://cbe.com.et/r1")

    assert isinstance(result, FetchFailure)
    assert result.message.startswith("Error fetching content:")


def test_unreadable_pdf(monkeypatch):
    def broken(content, source):
        raise PDFLoadError("Invalid or corrupted PDF")

    monkeypatch.setattr(document_fetcher, "load_pdf_bytes", broken)

    result = DocumentFetcher(session=FakeSession()).fetch("https://cbe.com.et/r1")

    assert result == FetchFailure("Error extracting text from PDF: Invalid or corrupted PDF")


def test_cache_serves_repeat_requests(pdf_text):
    session = FakeSession()
    cache = InMemoryDocumentCache()
    fetcher = DocumentFetcher(cache=cache, session=session)

    first = fetcher("https://cbe.com.et/r1")
    second = fetcher("https://cbe.com.et/r1")

    assert first == second
    assert len(session.requests) == 1
    assert len(cache) == 1
    assert fetcher.get_stats() == {"requests": 1, "cache_hits": 1, "failures": 0}


def test_failures_are_not_cached():
    session = FakeSession(FakeResponse(status_code=503))
    cache = InMemoryDocumentCache()
    fetcher = DocumentFetcher(cache=cache, session=session)

    fetcher("https://cbe.com.et/r1")
    fetcher("https://cbe.com.et/r1")

    assert len(session.requests) == 2
    assert len(cache) == 0
