"""Tests for IngestRunner."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.config import AuthConfig, EventHubConfig, EventhouseConfig, IngestConfig
from core.auth.sas import SasSigner
from core.errors.exceptions import DdlDispatchFailure, DeliveryFailure, SigningError
from core.logging.context import get_log_context
from core.oauth2.exceptions import TokenAcquisitionError
from ingestion.runner import IngestRunner

MESSAGES_URL = "https://myns.servicebus.windows.net/records/messages"
MGMT_URL = "https://mycluster.kusto.windows.net/v1/rest/mgmt"


def _response(status, text=""):
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.text = AsyncMock(return_value=text)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)
    return mock_response


def _session(message_statuses=None, mgmt_status=200):
    """Session answering message POSTs from a status list and the mgmt POST with one status."""
    message_statuses = list(message_statuses or [])

    def post(url, **kwargs):
        if url == MGMT_URL:
            return _response(mgmt_status, "mgmt says no")
        return _response(message_statuses.pop(0) if message_statuses else 201, "hub says no")

    mock_session = AsyncMock()
    mock_session.post = MagicMock(side_effect=post)
    return mock_session


def _config(max_batch_bytes=1_000, key="c2VjcmV0", auth=None, create_merge=False):
    return IngestConfig(
        eventhub=EventHubConfig(
            namespace="myns",
            entity_path="records",
            key_name="send",
            key=key,
            max_batch_bytes=max_batch_bytes,
        ),
        eventhouse=EventhouseConfig(
            cluster="mycluster.kusto.windows.net",
            database="telemetry",
            table_base_name="events",
            category="orders",
            create_merge=create_merge,
        ),
        auth=auth or AuthConfig(),
    )


def _token_provider(token="tok"):
    provider = MagicMock()
    provider.get_token = AsyncMock(return_value=token)
    return provider


def _records(n, size=400):
    return [{"i": i, "p": "x" * (size - 14)} for i in range(n)]


def _message_calls(session):
    return [c for c in session.post.call_args_list if c.args[0] == MESSAGES_URL]


class TestDeliver:

    @pytest.mark.asyncio
    async def test_delivers_all_batches(self):
        session = _session()
        runner = IngestRunner(_config(), session, _token_provider())

        report = await runner.deliver(_records(5))

        assert report.batches_attempted == 3
        assert report.batches_delivered == 3
        assert report.records_delivered == 5
        assert report.records_lost == 0
        assert report.bytes_sent > 0
        assert len(_message_calls(session)) == 3

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_stop_later_batches(self):
        session = _session(message_statuses=[201, 503, 201])
        runner = IngestRunner(_config(), session, _token_provider())

        report = await runner.deliver(_records(6))

        assert len(_message_calls(session)) == 3
        assert report.batches_attempted == 3
        assert report.batches_delivered == 2
        assert report.batches_failed == 1
        assert report.records_lost == 2
        assert report.failures[0].error.status_code == 503

    @pytest.mark.asyncio
    async def test_signing_error_before_any_send(self):
        session = _session()
        runner = IngestRunner(_config(key=""), session, _token_provider())

        with pytest.raises(SigningError):
            await runner.deliver(_records(3))

        session.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_resigns_near_expiry(self):
        clock = MagicMock(side_effect=[1_000.0, 1_000.0, 1_050.0, 1_050.0])
        config = _config()
        config.eventhub.sas_ttl_seconds = 100
        session = _session()
        runner = IngestRunner(config, session, signer=SasSigner(clock=clock))

        await runner.deliver(_records(4))

        # sign, check, check, re-sign
        assert clock.call_count == 4
        tokens = [c.kwargs["headers"]["Authorization"] for c in _message_calls(session)]
        assert "se=1100" in tokens[0]
        assert "se=1150" in tokens[1]

    @pytest.mark.asyncio
    async def test_dry_run_sends_nothing(self):
        session = _session()
        runner = IngestRunner(_config(), session, dry_run=True)

        report = await runner.deliver(_records(5))

        assert report.batches_attempted == 3
        assert report.batches_delivered == 0
        session.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_sets_stage(self):
        runner = IngestRunner(_config(), _session())
        await runner.deliver([])
        assert get_log_context()["stage"] == "delivery"


class TestMaterializeSchema:

    @pytest.mark.asyncio
    async def test_sends_create_table(self):
        session = _session()
        provider = _token_provider("bearer-1")
        runner = IngestRunner(_config(), session, provider)

        report = await runner.materialize_schema([{"orderId": 1, "createdDateTime": None}])

        assert report.dispatched
        assert report.table_name == "Events_or"
        assert report.command == ".create table Events_or(  orderId: long, createdDateTime: datetime)"
        assert report.status_code == 200
        provider.get_token.assert_awaited_once()
        assert session.post.call_args.kwargs["headers"]["Authorization"] == "Bearer bearer-1"

    @pytest.mark.asyncio
    async def test_token_failure_raises(self):
        provider = MagicMock()
        provider.get_token = AsyncMock(side_effect=RuntimeError("no identity"))
        session = _session()
        runner = IngestRunner(_config(), session, provider)

        with pytest.raises(TokenAcquisitionError):
            await runner.materialize_schema([{"a": 1}])

        session.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_builds_provider_from_config(self):
        session = _session()
        runner = IngestRunner(_config(auth=AuthConfig(access_token="pre-issued")), session)

        report = await runner.materialize_schema([{"a": 1}])

        assert report.dispatched
        assert session.post.call_args.kwargs["headers"]["Authorization"] == "Bearer pre-issued"

    @pytest.mark.asyncio
    async def test_incomplete_credentials_raise_token_error(self):
        session = _session()
        runner = IngestRunner(_config(auth=AuthConfig(client_id="cid")), session)

        with pytest.raises(TokenAcquisitionError):
            await runner.materialize_schema([{"a": 1}])

        session.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_merge_verb_sent(self):
        session = _session()
        runner = IngestRunner(_config(create_merge=True), session, _token_provider())

        report = await runner.materialize_schema([{"a": 1}])

        assert report.command == ".create-merge table Events_or(  a: long)"
        assert json.loads(session.post.call_args.kwargs["data"])["csl"] == report.command

    @pytest.mark.asyncio
    async def test_rejection_raises(self):
        runner = IngestRunner(_config(), _session(mgmt_status=400), _token_provider())

        with pytest.raises(DdlDispatchFailure):
            await runner.materialize_schema([{"a": 1}])

    @pytest.mark.asyncio
    async def test_no_fields_skips_dispatch(self):
        session = _session()
        provider = _token_provider()
        runner = IngestRunner(_config(), session, provider)

        report = await runner.materialize_schema([{}])

        assert report.fields == []
        assert not report.dispatched
        session.post.assert_not_called()
        provider.get_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dry_run_builds_without_sending(self):
        session = _session()
        provider = _token_provider()
        runner = IngestRunner(_config(), session, provider, dry_run=True)

        report = await runner.materialize_schema([{"a": True}])

        assert report.command == ".create table Events_or(  a: bool)"
        assert not report.dispatched
        session.post.assert_not_called()
        provider.get_token.assert_not_awaited()


class TestRun:

    @pytest.mark.asyncio
    async def test_both_paths_succeed(self):
        runner = IngestRunner(_config(), _session(), _token_provider())

        report = await runner.run(_records(3))

        assert report.exit_code == 0
        assert report.delivery.batches_delivered == 2
        assert report.schema.dispatched

    @pytest.mark.asyncio
    async def test_lost_batches_are_not_fatal(self):
        runner = IngestRunner(_config(), _session(message_statuses=[500, 500]), _token_provider())

        report = await runner.run(_records(3))

        assert report.exit_code == 0
        assert report.delivery.batches_failed == 2

    @pytest.mark.asyncio
    async def test_schema_failure_does_not_stop_delivery(self):
        runner = IngestRunner(_config(), _session(mgmt_status=403), _token_provider())

        report = await runner.run(_records(3))

        assert report.exit_code == 1
        assert report.schema is None
        assert isinstance(report.fatal_errors[0], DdlDispatchFailure)
        assert report.delivery.batches_delivered == 2

    @pytest.mark.asyncio
    async def test_signing_failure_does_not_stop_schema(self):
        runner = IngestRunner(_config(key=""), _session(), _token_provider())

        report = await runner.run(_records(3))

        assert report.exit_code == 1
        assert report.delivery is None
        assert isinstance(report.fatal_errors[0], SigningError)
        assert report.schema.dispatched

    @pytest.mark.asyncio
    async def test_incomplete_credentials_do_not_stop_delivery(self):
        runner = IngestRunner(_config(auth=AuthConfig(client_id="cid")), _session())

        report = await runner.run(_records(3))

        assert report.exit_code == 1
        assert report.schema is None
        assert isinstance(report.fatal_errors[0], TokenAcquisitionError)
        assert report.delivery.batches_delivered == 2

    @pytest.mark.asyncio
    async def test_only_enabled_paths_run(self):
        session = _session()
        provider = _token_provider()
        runner = IngestRunner(_config(), session, provider)

        report = await runner.run(_records(3), schema=False)

        assert report.schema is None
        assert report.delivery.batches_delivered == 2
        provider.get_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_escaped_delivery_failure_is_not_recorded_as_fatal(self):
        runner = IngestRunner(_config(), _session(), _token_provider())
        runner.deliver = AsyncMock(side_effect=DeliveryFailure("lost", status_code=500))

        with pytest.raises(DeliveryFailure):
            await runner.run(_records(1), schema=False)

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        runner = IngestRunner(_config(), _session(), _token_provider())
        runner.deliver = AsyncMock(side_effect=KeyError("bug"))

        with pytest.raises(KeyError):
            await runner.run(_records(1), schema=False)
