"""
Event Hub REST delivery.

One POST per batch to https://{namespace}.{domain}/{entity}/messages with a
SAS Authorization header. Delivery is best-effort and at-most-once: a failed
batch is logged and reported as Failed, never retried or re-queued.
"""

import logging
import time
from dataclasses import dataclass

import aiohttp

from core.auth.sas import SignedRequest
from core.errors.exceptions import DeliveryFailure
from core.logging.utilities import log_exception
from core.utils.json_serializers import dumps_canonical
from ingestion.eventhub.batching import Batch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivered:
    """Batch accepted by the endpoint."""

    bytes_sent: int
    status_code: int
    ok = True


@dataclass(frozen=True)
class Failed:
    """Batch lost; reason and the underlying DeliveryFailure."""

    reason: str
    error: DeliveryFailure
    ok = False


DeliveryResult = Delivered | Failed


class DeliveryClient:
    """
    Posts batches to the Event Hub message endpoint.

    The aiohttp session is owned by the caller.

    Example:
        async with create_session() as session:
            client = DeliveryClient(session, timeout_seconds=30)
            result = await client.deliver(batch, config.messages_url, signed)
    """

    def __init__(self, session: aiohttp.ClientSession, timeout_seconds: float = 30.0):
        self._session = session
        self.timeout_seconds = timeout_seconds

    async def deliver(
        self,
        batch: Batch,
        endpoint: str,
        signed_request: SignedRequest,
    ) -> DeliveryResult:
        """Send one batch. Never raises for transport or HTTP failures."""
        body = dumps_canonical(batch.records).encode("utf-8")
        headers = {
            "Authorization": signed_request.token,
            "Content-Type": "application/json",
        }
        context = {
            "endpoint": endpoint,
            "batch_index": batch.index,
            "batch_size": len(batch),
            "batch_bytes": len(body),
        }

        start = time.perf_counter()
        try:
            async with self._session.post(
                endpoint,
                data=body,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                duration_ms = (time.perf_counter() - start) * 1000
                if 200 <= response.status < 300:
                    logger.info(
                        "Batch delivered",
                        extra={
                            **context,
                            "bytes_sent": len(body),
                            "http_status": response.status,
                            "duration_ms": round(duration_ms, 1),
                        },
                    )
                    return Delivered(bytes_sent=len(body), status_code=response.status)

                response_text = await response.text()
                error = DeliveryFailure(
                    f"HTTP {response.status}: {response_text[:200]}",
                    status_code=response.status,
                    context={**context, "http_status": response.status},
                )
        except TimeoutError as e:
            error = DeliveryFailure(
                f"Timeout after {self.timeout_seconds}s",
                cause=e,
                context=context,
            )
        except aiohttp.ClientError as e:
            error = DeliveryFailure(
                f"Connection error: {e}",
                cause=e,
                context=context,
            )

        log_exception(
            logger,
            error,
            "Batch delivery failed, continuing with next batch",
            level=logging.WARNING,
            include_traceback=False,
        )
        return Failed(reason=error.message, error=error)


__all__ = ["Delivered", "Failed", "DeliveryResult", "DeliveryClient"]
