"""
Drives both ingestion paths over one record set.

Message path:  pack_records -> DeliveryClient, one batch at a time.
Schema path:   SchemaInferencer -> DdlBuilder.

The paths share only the input and run concurrently. A fatal error on one
path (SigningError, TokenAcquisitionError, DdlDispatchFailure) ends that
path and is recorded in the RunReport; the other path carries on. Lost
batches are warnings, not fatal errors.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import aiohttp

from config.config import IngestConfig
from core.auth.sas import SasSigner, SignedRequest
from core.errors.exceptions import PipelineError, TypeInferenceWarning, is_fatal
from core.logging.context import set_log_context
from core.logging.utilities import log_exception
from core.oauth2 import InvalidConfigurationError, TokenAcquisitionError, build_token_provider
from core.types import TokenProvider
from ingestion.eventhouse.ddl import DdlBuilder
from ingestion.eventhouse.schema import SchemaField, SchemaInferencer
from ingestion.eventhub.batching import pack_records
from ingestion.eventhub.delivery import DeliveryClient, Failed
from ingestion.records import Record

logger = logging.getLogger(__name__)

# Re-sign when the current SAS token has less than this left
SAS_REFRESH_BUFFER_SECONDS = 60


@dataclass
class DeliveryReport:
    batches_attempted: int = 0
    batches_delivered: int = 0
    records_attempted: int = 0
    records_delivered: int = 0
    bytes_sent: int = 0
    failures: list[Failed] = field(default_factory=list)

    @property
    def batches_failed(self) -> int:
        return len(self.failures)

    @property
    def records_lost(self) -> int:
        return self.records_attempted - self.records_delivered


@dataclass
class SchemaReport:
    fields: list[SchemaField]
    table_name: str = ""
    command: str = ""
    status_code: int | None = None
    dispatched: bool = False
    warnings: list[TypeInferenceWarning] = field(default_factory=list)


@dataclass
class RunReport:
    delivery: DeliveryReport | None = None
    schema: SchemaReport | None = None
    fatal_errors: list[PipelineError] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.fatal_errors else 0


class IngestRunner:
    """
    Runs the message and schema paths for one invocation.

    Without an injected token_provider, one is built from config.auth the
    first time the schema path needs a bearer token.

    Example:
        async with create_session() as session:
            runner = IngestRunner(config, session, token_provider)
            report = await runner.run(records)
        sys.exit(report.exit_code)
    """

    def __init__(
        self,
        config: IngestConfig,
        session: aiohttp.ClientSession,
        token_provider: TokenProvider | None = None,
        signer: SasSigner | None = None,
        dry_run: bool = False,
    ):
        self.config = config
        self.token_provider = token_provider
        self.signer = signer or SasSigner()
        self.dry_run = dry_run
        self.delivery_client = DeliveryClient(
            session, timeout_seconds=config.eventhub.request_timeout_seconds
        )
        self.ddl_builder = DdlBuilder(
            session,
            timeout_seconds=config.eventhouse.request_timeout_seconds,
            create_merge=config.eventhouse.create_merge,
        )

    def _sign(self) -> SignedRequest:
        eventhub = self.config.eventhub
        return self.signer.sign(
            eventhub.resource_uri,
            key_name=eventhub.key_name,
            key=eventhub.key,
            ttl_seconds=eventhub.sas_ttl_seconds,
        )

    async def deliver(self, records: Iterable[Record]) -> DeliveryReport:
        """
        Pack and send every record, one batch at a time.

        Raises:
            SigningError: Before any batch is sent if the key material is bad
        """
        set_log_context(stage="delivery")
        eventhub = self.config.eventhub
        signed = self._sign()
        report = DeliveryReport()

        for batch in pack_records(records, eventhub.max_batch_bytes):
            report.batches_attempted += 1
            report.records_attempted += len(batch)

            if self.dry_run:
                logger.info(
                    "Dry run, batch not sent",
                    extra={"batch_index": batch.index, "batch_size": len(batch), "batch_bytes": batch.size_bytes},
                )
                continue

            if signed.expires_within(SAS_REFRESH_BUFFER_SECONDS, now=self.signer.now()):
                signed = self._sign()

            result = await self.delivery_client.deliver(batch, eventhub.messages_url, signed)
            if result.ok:
                report.batches_delivered += 1
                report.records_delivered += len(batch)
                report.bytes_sent += result.bytes_sent
            else:
                report.failures.append(result)

        log_level = logging.WARNING if report.failures else logging.INFO
        logger.log(
            log_level,
            "Delivery finished",
            extra={
                "batches_attempted": report.batches_attempted,
                "batches_delivered": report.batches_delivered,
                "batches_failed": report.batches_failed,
                "records": report.records_attempted,
                "bytes_sent": report.bytes_sent,
            },
        )
        return report

    def _ensure_token_provider(self) -> TokenProvider:
        """Build the provider from config.auth on first use, inside the schema path."""
        if self.token_provider is None:
            auth = self.config.auth
            try:
                self.token_provider = build_token_provider(
                    self.config.eventhouse.token_scope,
                    tenant_id=auth.tenant_id,
                    client_id=auth.client_id,
                    client_secret=auth.client_secret,
                    access_token=auth.access_token,
                )
            except InvalidConfigurationError as e:
                raise TokenAcquisitionError(
                    "Cannot build a token provider for the management endpoint",
                    cause=e,
                ) from e
        return self.token_provider

    async def _bearer_token(self) -> str:
        provider = self._ensure_token_provider()
        try:
            return await provider.get_token()
        except PipelineError:
            raise
        except Exception as e:
            raise TokenAcquisitionError("Token acquisition failed", cause=e) from e

    async def materialize_schema(self, records: Iterable[Record]) -> SchemaReport:
        """
        Infer the schema and send the create-table command.

        Raises:
            TokenAcquisitionError: If no bearer token can be obtained
            DdlDispatchFailure: If the management endpoint rejects the command
        """
        set_log_context(stage="schema")
        eventhouse = self.config.eventhouse

        inferencer = SchemaInferencer(detect_datetime_strings=eventhouse.detect_datetime_strings)
        fields = inferencer.infer(records)
        report = SchemaReport(fields=fields, warnings=list(inferencer.warnings))

        if not fields:
            logger.warning("No fields found in input, skipping create-table command")
            return report

        if self.dry_run:
            report.table_name, report.command = self.ddl_builder.build(
                eventhouse.table_base_name, eventhouse.category, fields
            )
            logger.info("Dry run, create-table command not sent", extra={"command": report.command})
            return report

        token = await self._bearer_token()
        result = await self.ddl_builder.build_and_send(
            eventhouse.table_base_name,
            eventhouse.category,
            fields,
            eventhouse.database,
            eventhouse.management_url,
            token,
        )
        report.table_name = result.table_name
        report.command = result.command
        report.status_code = result.status_code
        report.dispatched = True
        return report

    async def run(
        self,
        records: Iterable[Record],
        delivery: bool = True,
        schema: bool = True,
    ) -> RunReport:
        """Run the enabled paths concurrently and collect their outcomes."""
        records = list(records)
        report = RunReport()

        paths = {}
        if delivery:
            paths["delivery"] = self.deliver(records)
        if schema:
            paths["schema"] = self.materialize_schema(records)

        outcomes = await asyncio.gather(*paths.values(), return_exceptions=True)

        for name, outcome in zip(paths, outcomes):
            if isinstance(outcome, PipelineError) and is_fatal(outcome):
                log_exception(logger, outcome, f"{name.capitalize()} path aborted", include_traceback=False)
                report.fatal_errors.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            elif name == "delivery":
                report.delivery = outcome
            else:
                report.schema = outcome

        return report


__all__ = [
    "DeliveryReport",
    "IngestRunner",
    "RunReport",
    "SAS_REFRESH_BUFFER_SECONDS",
    "SchemaReport",
]
