"""
CBE Receipt Analyzer - Command Line Entry Point
Processes an exported SMS batch, follows receipt links and prints a summary
of the extracted transactions. The full report can be written as JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from analytics.aggregation import build_report
from config import config
from logging_config import setup_logging
from pipeline import BatchResult, ProgressEvent, build_processor
from validators.batch_validator import MalformedBatchError

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract transactions from CBE SMS exports and their receipt PDFs"
    )
    parser.add_argument("input", help="Path to the exported messages (.json)")
    parser.add_argument("--output", "-o", help="Write the full report as JSON to this path")
    parser.add_argument(
        "--host",
        default=config.DOCUMENT_HOST,
        help=f"Issuing host whose receipt links are followed (default: {config.DOCUMENT_HOST})"
    )
    parser.add_argument(
        "--top-n",
        type=int,
        default=config.TOP_N,
        help=f"Rows in each top-N ranking (default: {config.TOP_N})"
    )
    parser.add_argument("--log-file", help="Also log to this file inside LOG_DIR")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def log_progress(event: ProgressEvent):
    if event.stage == "processing":
        logger.info(f"[{event.fraction:.0%}] {event.message}")
    else:
        logger.info(f"{event.stage.capitalize()}: {event.message}")


def print_summary(result: BatchResult, report: dict):
    """Print the extraction summary."""
    summary = report["summary"]

    print("\n" + "=" * 60)
    print("EXTRACTION SUMMARY")
    print("=" * 60)
    print(f"Messages processed:        {result.total_messages}")
    print(f"Transactions extracted:    {len(result.transactions)}")
    print(f"Errors:                    {len(result.errors)}")
    print(f"Total income:              {summary['total_income']:,.2f} ETB")
    print(f"Total expenses:            {summary['total_expenses']:,.2f} ETB")
    print(f"Net:                       {summary['net']:,.2f} ETB")
    if summary["latest_balance"] is not None:
        print(f"Latest balance:            {summary['latest_balance']:,.2f} ETB")

    if report["top_recipients"]:
        print("\nTop recipients:")
        for row in report["top_recipients"][:5]:
            print(f"  {row['key']:<35} {row['amount']:>14,.2f}  ({row['count']})")
    print("=" * 60 + "\n")


def write_report(path: str, result: BatchResult, report: dict):
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    payload = result.to_dict()
    payload["report"] = report
    output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Report saved to: {output_path}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(log_level="DEBUG" if args.verbose else None, log_file=args.log_file)

    processor = build_processor(host=args.host, progress_callback=log_progress)

    try:
        result = processor.process_file(args.input)
    except FileNotFoundError as e:
        logger.error(f"Input not found: {e}")
        print(f"\n❌ Error: {e}")
        sys.exit(1)
    except MalformedBatchError as e:
        logger.error(f"Invalid input: {e}")
        print(f"\n❌ Input Error: {e}")
        sys.exit(1)

    report = build_report(
        result.transactions,
        top_n=args.top_n,
        tail_threshold=config.TAIL_SHARE_THRESHOLD
    )

    if result.no_data:
        print("\n⚠️  No transaction data found in the uploaded file.")
    else:
        print_summary(result, report)

    for error in result.errors:
        print(f"  ⚠️  message {error.index}: [{error.kind}] {error.message}")

    if args.output:
        try:
            write_report(args.output, result, report)
        except OSError as e:
            logger.error(f"Cannot write report: {e}")
            print(f"\n❌ Error: Cannot write report: {e}")
            sys.exit(1)
        print(f"\n✅ Success! Report written: {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
