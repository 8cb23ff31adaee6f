"""Ingest a record file into Event Hub and Eventhouse. Use --help for usage."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from config.config import IngestConfig, load_config
from core.http import create_session
from core.logging.setup import generate_run_id, setup_logging
from ingestion.records import read_records
from ingestion.runner import IngestRunner, RunReport

# __main__.py is at src/ingestion/__main__.py, so root is 3 levels up
PROJECT_ROOT = Path(__file__).parent.parent.parent

EXIT_USAGE_ERROR = 2

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m ingestion",
        description="Send records to Event Hub and create the matching Eventhouse table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Deliver records and create the table
    python -m ingestion records.json

    # Only create the table
    python -m ingestion records.jsonl --skip-delivery

    # Show batches and the create-table command without sending anything
    python -m ingestion records.json --dry-run --log-level DEBUG
        """,
    )

    parser.add_argument(
        "input",
        type=Path,
        help="JSON array, single JSON object, or JSON lines file",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config YAML (default: src/config/config.yaml)",
    )

    parser.add_argument(
        "--skip-delivery",
        action="store_true",
        help="Do not send records to Event Hub",
    )

    parser.add_argument(
        "--skip-schema",
        action="store_true",
        help="Do not infer the schema or create the table",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Pack batches and build the command but send nothing",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Console logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-log-file",
        type=Path,
        default=None,
        help="Also write JSON lines logs to this file",
    )

    return parser.parse_args(argv)


async def run_ingest(
    config: IngestConfig,
    records: list,
    delivery: bool = True,
    schema: bool = True,
    dry_run: bool = False,
) -> RunReport:
    async with create_session(timeout_total=max(
        config.eventhub.request_timeout_seconds,
        config.eventhouse.request_timeout_seconds,
    )) as session:
        runner = IngestRunner(config, session, dry_run=dry_run)
        return await runner.run(records, delivery=delivery, schema=schema)


def _log_summary(report: RunReport) -> None:
    if report.delivery is not None:
        delivery = report.delivery
        logger.info(
            "Delivery summary",
            extra={
                "batches_attempted": delivery.batches_attempted,
                "batches_delivered": delivery.batches_delivered,
                "batches_failed": delivery.batches_failed,
                "records": delivery.records_attempted,
                "records_lost": delivery.records_lost,
                "bytes_sent": delivery.bytes_sent,
            },
        )
    if report.schema is not None:
        schema = report.schema
        logger.info(
            "Schema summary",
            extra={
                "table": schema.table_name,
                "field_count": len(schema.fields),
                "dispatched": schema.dispatched,
                "command": schema.command,
            },
        )
    if report.fatal_errors:
        logger.error(
            "Ingestion finished with fatal errors",
            extra={"error_count": len(report.fatal_errors)},
        )


def main(argv: list[str] | None = None) -> int:
    global logger

    load_dotenv(PROJECT_ROOT / ".env")
    args = parse_args(argv)

    setup_logging(
        console_level=getattr(logging, args.log_level),
        json_log_file=args.json_log_file,
        run_id=generate_run_id(),
    )
    logger = logging.getLogger(__name__)

    delivery = not args.skip_delivery
    schema = not args.skip_schema
    if not (delivery or schema):
        logger.error("Both paths are disabled, nothing to do")
        return EXIT_USAGE_ERROR

    try:
        config = load_config(args.config)
        config.validate(delivery=delivery, schema=schema)
    except (ValueError, OSError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE_ERROR

    try:
        records = read_records(args.input)
    except (ValueError, OSError) as e:
        logger.error(f"Cannot read input: {e}", extra={"input": str(args.input)})
        return EXIT_USAGE_ERROR

    logger.info(
        "Starting ingestion",
        extra={
            "input": str(args.input),
            "records": len(records),
            "delivery": delivery,
            "schema": schema,
            "dry_run": args.dry_run,
        },
    )

    try:
        report = asyncio.run(
            run_ingest(config, records, delivery=delivery, schema=schema, dry_run=args.dry_run)
        )
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, shutting down...")
        return 130

    _log_summary(report)
    if args.dry_run and report.schema is not None and report.schema.command:
        print(report.schema.command, flush=True)
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
