"""
FastAPI Backend for the CBE Receipt Analyzer
RESTful API endpoints for processing exported SMS batches
"""

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Any, Optional
from pathlib import Path
from datetime import datetime
import logging
import sys

# Add backend to path
backend_path = Path(__file__).parent.parent / 'backend'
sys.path.insert(0, str(backend_path))

# Import backend modules
from analytics.aggregation import build_report
from analytics.sort_filter import sort_and_filter
from config import config
from extractors.transaction_assembler import Transaction, TransactionAssembler
from loaders.document_fetcher import DocumentFetcher, InMemoryDocumentCache
from loaders.message_loader import load_messages_bytes
from logging_config import setup_logging
from pipeline import BatchProcessor
from validators.batch_validator import MalformedBatchError

setup_logging()
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="CBE Receipt Analyzer API",
    description="Extract and aggregate transactions from CBE SMS exports and receipt PDFs",
    version=config.VERSION
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared by all requests, keyed by receipt URL
document_cache = InMemoryDocumentCache()


def get_fetcher():
    """Document fetch collaborator; overridden in tests."""
    fetcher = DocumentFetcher(timeout=config.FETCH_TIMEOUT_SECONDS, cache=document_cache)
    try:
        yield fetcher
    finally:
        fetcher.close()


class TransactionQuery(BaseModel):
    """Sort and date-range request over already extracted transactions."""
    transactions: list[dict[str, Any]]
    key: Optional[str] = Field(None, description="Sort field, e.g. date, amount, totalAmount")
    direction: str = Field("asc", description="asc or desc")
    start: Optional[str] = Field(None, description="Inclusive start date (YYYY-MM-DD)")
    end: Optional[str] = Field(None, description="Inclusive end date (YYYY-MM-DD)")


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {
        "message": "CBE Receipt Analyzer API",
        "version": config.VERSION,
        "endpoints": {
            "POST /process": "Process an exported SMS batch (.json)",
            "POST /transactions/query": "Sort and filter extracted transactions",
            "GET /health": "Health check"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }


@app.post("/process")
def process_messages(
    file: UploadFile = File(..., description="Exported SMS messages as a JSON array"),
    fetch_document=Depends(get_fetcher)
):
    """
    Process an exported SMS batch.

    - **file**: JSON array of message objects with a `text` field

    Receipt links on the configured host are fetched one message at a time.
    Returns the ordered transactions, per-message errors and the aggregation report.
    """
    content = file.file.read()

    is_valid, error = config.validate_file(file.filename or "", len(content))
    if not is_valid:
        raise HTTPException(status_code=400, detail=error)

    logger.info(f"Processing upload {file.filename} ({len(content)} bytes)")

    try:
        payload = load_messages_bytes(content, source=file.filename)
        processor = BatchProcessor(TransactionAssembler(fetch_document, config.DOCUMENT_HOST))
        result = processor.process(payload)
    except MalformedBatchError as e:
        logger.error(f"Malformed batch {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error processing messages: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    response = result.to_dict()
    response["status"] = "no_data" if result.no_data else "success"
    response["report"] = build_report(
        result.transactions,
        top_n=config.TOP_N,
        tail_threshold=config.TAIL_SHARE_THRESHOLD
    )
    return response


@app.post("/transactions/query")
async def query_transactions(query: TransactionQuery):
    """
    Sort and filter transactions returned by /process.

    - **key**: Field to sort by (omit to keep the given order)
    - **direction**: asc or desc
    - **start** / **end**: Inclusive date bounds (YYYY-MM-DD)
    """
    key = None
    if query.key:
        key = Transaction.field_name(query.key)
        if key is None:
            raise HTTPException(status_code=400, detail=f"Unknown sort key '{query.key}'")

    transactions = [Transaction.from_dict(item) for item in query.transactions]

    try:
        records = sort_and_filter(
            transactions,
            key=key,
            direction=query.direction,
            start=query.start,
            end=query.end
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TypeError as e:
        raise HTTPException(status_code=400, detail=f"Cannot sort by '{query.key}': {e}")

    return {
        "count": len(records),
        "transactions": [t.to_dict() for t in records]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
