"""
Size-bounded batching of records for the Event Hub REST endpoint.

Greedy single pass: a record joins the current batch unless that would push
the batch past max_bytes, in which case the current batch is flushed first.
A record that alone exceeds max_bytes still goes out, as a batch of one.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from config.config import DEFAULT_MAX_BATCH_BYTES
from core.utils.json_serializers import serialized_size
from ingestion.records import Record

logger = logging.getLogger(__name__)


@dataclass
class Batch:
    """Ordered records plus their cumulative canonical-JSON byte size."""

    index: int
    records: list[Record] = field(default_factory=list)
    size_bytes: int = 0

    def add(self, record: Record, size: int) -> None:
        self.records.append(record)
        self.size_bytes += size

    def __len__(self) -> int:
        return len(self.records)

    def __bool__(self) -> bool:
        return bool(self.records)


def pack_records(
    records: Iterable[Record],
    max_bytes: int = DEFAULT_MAX_BATCH_BYTES,
) -> Iterator[Batch]:
    """
    Partition records into batches of at most max_bytes serialized bytes.

    Yields batches lazily in input order; the generator is single-use.

    Raises:
        ValueError: If max_bytes is not positive
    """
    if max_bytes <= 0:
        raise ValueError(f"max_bytes must be > 0, got {max_bytes}")

    batch = Batch(index=0)
    for record in records:
        size = serialized_size(record)

        if batch and batch.size_bytes + size > max_bytes:
            yield batch
            batch = Batch(index=batch.index + 1)

        if size > max_bytes:
            logger.warning(
                "Record exceeds batch limit, sending it alone",
                extra={"batch_index": batch.index, "batch_bytes": size, "max_bytes": max_bytes},
            )
        batch.add(record, size)

    if batch:
        yield batch


__all__ = ["Batch", "pack_records"]
