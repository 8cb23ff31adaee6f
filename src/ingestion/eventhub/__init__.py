"""Event Hub message path: size-bounded batching and REST delivery."""

from ingestion.eventhub.batching import Batch, pack_records
from ingestion.eventhub.delivery import (
    Delivered,
    DeliveryClient,
    DeliveryResult,
    Failed,
)

__all__ = [
    "Batch",
    "pack_records",
    "Delivered",
    "DeliveryClient",
    "DeliveryResult",
    "Failed",
]
