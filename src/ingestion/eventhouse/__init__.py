"""Eventhouse schema path: type inference and create-table dispatch."""

from ingestion.eventhouse.ddl import (
    DdlBuilder,
    DdlResult,
    build_create_table_command,
    capitalize_identifier,
    derive_table_name,
    to_single_line,
)
from ingestion.eventhouse.schema import (
    KustoType,
    SchemaField,
    SchemaInferencer,
    infer_schema,
)

__all__ = [
    "DdlBuilder",
    "DdlResult",
    "build_create_table_command",
    "capitalize_identifier",
    "derive_table_name",
    "to_single_line",
    "KustoType",
    "SchemaField",
    "SchemaInferencer",
    "infer_schema",
]
