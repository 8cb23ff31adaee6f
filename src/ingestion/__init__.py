"""
Record ingestion into Event Hub and Eventhouse.

Two independent paths over the same input:
- eventhub: size-bounded batching and SAS-signed REST delivery
- eventhouse: schema inference and create-table command dispatch

Usage:
    python -m ingestion records.json
"""

from ingestion.records import Record, parse_records, read_records
from ingestion.runner import DeliveryReport, IngestRunner, RunReport, SchemaReport

__all__ = [
    "DeliveryReport",
    "IngestRunner",
    "Record",
    "RunReport",
    "SchemaReport",
    "parse_records",
    "read_records",
]
