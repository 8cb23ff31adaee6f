"""
Create-table control commands for Eventhouse.

Builds

    .create table <Name>(
      field1: type1, field2: type2
    )

from an inferred schema, flattens it to one line and POSTs it to the
cluster's management endpoint (/v1/rest/mgmt) with a bearer token.
"""

import logging
import re
import time
from collections.abc import Sequence
from dataclasses import dataclass

import aiohttp
from pydantic import BaseModel

from core.errors.exceptions import DdlDispatchFailure
from ingestion.eventhouse.schema import SchemaField

logger = logging.getLogger(__name__)

CATEGORY_PREFIX_LENGTH = 2

_PLAIN_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class ManagementRequest(BaseModel):
    """Body of a POST to /v1/rest/mgmt."""

    db: str
    csl: str


@dataclass(frozen=True)
class DdlResult:
    table_name: str
    command: str
    status_code: int


def capitalize_identifier(name: str) -> str:
    """Upper-case the first character only; the rest is left untouched."""
    return name[:1].upper() + name[1:]


def category_prefix(category: str) -> str:
    if not category:
        raise ValueError("category must not be empty")
    return category[:CATEGORY_PREFIX_LENGTH]


def derive_table_name(table_base_name: str, category: str) -> str:
    """'{base}_{first two characters of category}', not yet capitalized."""
    if not table_base_name:
        raise ValueError("table_base_name must not be empty")
    return f"{table_base_name}_{category_prefix(category)}"


def quote_identifier(name: str) -> str:
    """Bracket-quote names that are not plain identifiers: ['my field']."""
    if _PLAIN_IDENTIFIER.fullmatch(name):
        return name
    # Escaped line breaks survive to_single_line
    escaped = (
        name.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"['{escaped}']"


def build_create_table_command(
    table_name: str,
    fields: Sequence[SchemaField],
    create_merge: bool = False,
) -> str:
    """
    Build the multi-line create-table command.

    `.create-merge table` adds new columns to an existing table instead of
    requiring the stored schema to match.
    """
    if not fields:
        raise ValueError(f"Cannot build a table definition for '{table_name}' without fields")

    verb = ".create-merge table" if create_merge else ".create table"
    columns = ", ".join(f"{quote_identifier(f.name)}: {f.type.value}" for f in fields)
    return f"{verb} {quote_identifier(capitalize_identifier(table_name))}(\n  {columns}\n)"


def to_single_line(command: str) -> str:
    """Strip carriage returns and newlines; the management API wants one line."""
    return command.replace("\r", "").replace("\n", "")


class DdlBuilder:
    """
    Builds and dispatches create-table commands.

    The aiohttp session is owned by the caller. Dispatch failures raise
    DdlDispatchFailure; there is no retry.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout_seconds: float = 60.0,
        create_merge: bool = False,
    ):
        self._session = session
        self.timeout_seconds = timeout_seconds
        self.create_merge = create_merge

    def build(self, table_base_name: str, category: str, schema: Sequence[SchemaField]) -> tuple[str, str]:
        """Return (table name, single-line command)."""
        table_name = derive_table_name(table_base_name, category)
        command = build_create_table_command(table_name, schema, create_merge=self.create_merge)
        return capitalize_identifier(table_name), to_single_line(command)

    async def build_and_send(
        self,
        table_base_name: str,
        category: str,
        schema: Sequence[SchemaField],
        database: str,
        management_endpoint: str,
        bearer_token: str,
    ) -> DdlResult:
        """
        Build the create-table command and POST it to the management endpoint.

        Raises:
            DdlDispatchFailure: On a non-2xx response or transport error
        """
        table_name, command = self.build(table_base_name, category, schema)
        body = ManagementRequest(db=database, csl=command).model_dump_json()
        host = management_endpoint.split("://", 1)[-1].split("/", 1)[0]
        headers = {
            "Authorization": f"Bearer {bearer_token}",
            "Host": host,
            "Content-Type": "application/json",
        }
        context = {
            "endpoint": management_endpoint,
            "database": database,
            "table": table_name,
        }

        logger.info(
            "Sending create-table command",
            extra={**context, "field_count": len(schema), "command": command},
        )

        start = time.perf_counter()
        try:
            async with self._session.post(
                management_endpoint,
                data=body.encode("utf-8"),
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                duration_ms = (time.perf_counter() - start) * 1000
                if not 200 <= response.status < 300:
                    response_text = await response.text()
                    raise DdlDispatchFailure(
                        f"Management endpoint returned HTTP {response.status}: {response_text[:500]}",
                        status_code=response.status,
                        context={**context, "http_status": response.status},
                    )

                logger.info(
                    "Create-table command accepted",
                    extra={
                        **context,
                        "http_status": response.status,
                        "duration_ms": round(duration_ms, 1),
                    },
                )
                return DdlResult(table_name=table_name, command=command, status_code=response.status)

        except TimeoutError as e:
            raise DdlDispatchFailure(
                f"Timeout after {self.timeout_seconds}s sending create-table command",
                cause=e,
                context=context,
            ) from e
        except aiohttp.ClientError as e:
            raise DdlDispatchFailure(
                f"Connection error sending create-table command: {e}",
                cause=e,
                context=context,
            ) from e


__all__ = [
    "DdlBuilder",
    "DdlResult",
    "ManagementRequest",
    "build_create_table_command",
    "capitalize_identifier",
    "category_prefix",
    "derive_table_name",
    "quote_identifier",
    "to_single_line",
]
