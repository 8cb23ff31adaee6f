"""
Schema inference for the Eventhouse table.

Two passes over the full record set:

1. Union of field names, in order of first appearance.
2. Per field, the first record (input order) holding a non-null, non-empty
   value decides the type through a fixed table. Fields with no such value
   are datetime when the name contains "datetime" (any case), else string.

First-sample-wins is order dependent: a field holding 1 in the first record
and "x" in the second is long. That policy is kept as-is.
"""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from core.errors.exceptions import TypeInferenceWarning
from ingestion.records import Record

logger = logging.getLogger(__name__)


class KustoType(str, Enum):
    """Eventhouse scalar types the inferencer can emit."""

    BOOL = "bool"
    DATETIME = "datetime"
    DECIMAL = "decimal"
    DYNAMIC = "dynamic"
    GUID = "guid"
    LONG = "long"
    STRING = "string"


@dataclass(frozen=True)
class SchemaField:
    name: str
    type: KustoType


# ISO 8601 date plus time; date-only strings stay strings
_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"
)

DATETIME_NAME_MARKER = "datetime"


def looks_like_datetime(value: str) -> bool:
    if not _ISO_DATETIME.match(value):
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def value_kind(value: Any) -> str:
    return type(value).__name__


class SchemaInferencer:
    """
    Infers one Eventhouse type per field from sampled values.

    Unrecognized runtime kinds fall back to dynamic; each fallback is logged
    and collected in `warnings` for the last call to infer().
    """

    def __init__(self, detect_datetime_strings: bool = True):
        self.detect_datetime_strings = detect_datetime_strings
        self.warnings: list[TypeInferenceWarning] = []

    def kusto_type_for(self, value: Any) -> KustoType | None:
        """Map a runtime value to its type, None if the kind is not in the table."""
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return KustoType.BOOL
        if isinstance(value, (datetime, date)):
            return KustoType.DATETIME
        if isinstance(value, (float, Decimal)):
            return KustoType.DECIMAL
        if isinstance(value, int):
            return KustoType.LONG
        if isinstance(value, UUID):
            return KustoType.GUID
        if isinstance(value, str):
            if self.detect_datetime_strings and looks_like_datetime(value):
                return KustoType.DATETIME
            return KustoType.STRING
        if isinstance(value, (Mapping, list, tuple)):
            return KustoType.DYNAMIC
        return None

    def infer_field(self, name: str, records: Sequence[Record]) -> SchemaField:
        for record in records:
            value = record.get(name)
            if is_empty(value):
                continue

            kusto_type = self.kusto_type_for(value)
            if kusto_type is None:
                warning = TypeInferenceWarning(name, value_kind(value))
                self.warnings.append(warning)
                logger.warning(
                    str(warning),
                    extra={"field_name": name, "value_kind": value_kind(value)},
                )
                kusto_type = KustoType.DYNAMIC
            return SchemaField(name, kusto_type)

        if DATETIME_NAME_MARKER in name.lower():
            return SchemaField(name, KustoType.DATETIME)
        return SchemaField(name, KustoType.STRING)

    def infer(self, records: Iterable[Record]) -> list[SchemaField]:
        """Infer the schema of a record set, fields in first-seen order."""
        records = list(records)
        self.warnings = []

        names: dict[str, None] = {}
        for record in records:
            for key in record:
                names.setdefault(str(key), None)

        fields = [self.infer_field(name, records) for name in names]

        logger.info(
            "Inferred schema",
            extra={"field_count": len(fields), "records": len(records)},
        )
        for schema_field in fields:
            logger.debug(
                "Inferred field type",
                extra={"field_name": schema_field.name, "inferred_type": schema_field.type.value},
            )
        return fields


def infer_schema(records: Iterable[Record], detect_datetime_strings: bool = True) -> list[SchemaField]:
    """Convenience wrapper around SchemaInferencer.infer()."""
    return SchemaInferencer(detect_datetime_strings).infer(records)


__all__ = [
    "KustoType",
    "SchemaField",
    "SchemaInferencer",
    "infer_schema",
    "looks_like_datetime",
]
