"""
PDF Loader Module
Extracts text from receipt PDFs using PyMuPDF (fitz).
"""

import fitz  # PyMuPDF
import logging

logger = logging.getLogger(__name__)


class PDFLoadError(Exception):
    """Custom exception for PDF loading errors."""
    pass


def load_pdf_bytes(content: bytes, source: str = "<memory>") -> str:
    """
    Extract text from all pages of an in-memory PDF.

    Args:
        content: Raw PDF bytes (e.g. an HTTP response body)
        source: Label used in log and error messages, typically the URL

    Returns:
        Combined text from all pages, pages separated by a newline

    Raises:
        PDFLoadError: If the PDF cannot be opened or yields no text
    """
    if not content:
        raise PDFLoadError(f"Empty PDF content: {source}")

    doc = None
    try:
        doc = fitz.open(stream=content, filetype="pdf")

        if doc.page_count == 0:
            logger.error(f"PDF has no pages: {source}")
            raise PDFLoadError(f"PDF has no pages: {source}")

        logger.debug(f"Loading PDF: {source} ({doc.page_count} pages)")

        text_chunks = []
        for page_num in range(doc.page_count):
            try:
                text = doc[page_num].get_text()
            except Exception as e:
                logger.error(f"Error extracting text from page {page_num + 1} of {source}: {e}")
                continue

            if text.strip():
                text_chunks.append(text)
            else:
                logger.warning(f"Page {page_num + 1} of {source}: empty or no extractable text")

        if not text_chunks:
            raise PDFLoadError(f"No text could be extracted from PDF: {source}")

        combined_text = "\n".join(text_chunks)
        logger.info(f"Extracted {len(combined_text)} characters from {source}")
        return combined_text

    except fitz.FileDataError as e:
        logger.error(f"Invalid or corrupted PDF: {source}")
        raise PDFLoadError(f"Invalid or corrupted PDF: {source}") from e

    except PDFLoadError:
        raise

    except Exception as e:
        logger.error(f"Unexpected error loading PDF {source}: {e}", exc_info=True)
        raise PDFLoadError(f"Failed to load PDF {source}: {str(e)}") from e

    finally:
        if doc is not None:
            try:
                doc.close()
            except Exception as e:
                logger.warning(f"Error closing PDF document: {e}")
