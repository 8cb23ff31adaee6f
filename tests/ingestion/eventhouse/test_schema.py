"""Tests for schema inference."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import pytest

from core.errors.exceptions import TypeInferenceWarning
from ingestion.eventhouse.schema import (
    KustoType,
    SchemaField,
    SchemaInferencer,
    infer_schema,
    looks_like_datetime,
)


class TestKustoTypeFor:

    @pytest.fixture
    def inferencer(self):
        return SchemaInferencer()

    @pytest.mark.parametrize(
        "value,expected",
        [
            (True, KustoType.BOOL),
            (False, KustoType.BOOL),
            (7, KustoType.LONG),
            (2**40, KustoType.LONG),
            (1.5, KustoType.DECIMAL),
            (Decimal("2.50"), KustoType.DECIMAL),
            (datetime(2025, 1, 1, 12, 0), KustoType.DATETIME),
            (date(2025, 1, 1), KustoType.DATETIME),
            (UUID("12345678-1234-5678-1234-567812345678"), KustoType.GUID),
            ("hello", KustoType.STRING),
            ({"nested": 1}, KustoType.DYNAMIC),
            ([1, 2], KustoType.DYNAMIC),
        ],
    )
    def test_type_table(self, inferencer, value, expected):
        assert inferencer.kusto_type_for(value) == expected

    def test_iso_datetime_string(self, inferencer):
        assert inferencer.kusto_type_for("2025-06-15T10:30:00Z") == KustoType.DATETIME

    def test_datetime_detection_can_be_disabled(self):
        inferencer = SchemaInferencer(detect_datetime_strings=False)
        assert inferencer.kusto_type_for("2025-06-15T10:30:00Z") == KustoType.STRING

    def test_unknown_kind(self, inferencer):
        assert inferencer.kusto_type_for(b"raw") is None


class TestLooksLikeDatetime:
    @pytest.mark.parametrize(
        "value",
        ["2025-06-15T10:30:00Z", "2025-06-15 10:30", "2025-06-15T10:30:00.123+02:00"],
    )
    def test_accepts(self, value):
        assert looks_like_datetime(value)

    @pytest.mark.parametrize("value", ["2025-06-15", "yesterday", "2025-13-45T99:99:00"])
    def test_rejects(self, value):
        assert not looks_like_datetime(value)


class TestInferSchema:

    def test_first_sample_wins(self):
        records = [{"a": 1}, {"a": "x"}, {"b": True}]

        assert infer_schema(records) == [
            SchemaField("a", KustoType.LONG),
            SchemaField("b", KustoType.BOOL),
        ]

    def test_fields_in_first_seen_order(self):
        records = [{"z": 1, "a": 2}, {"m": 3, "a": 4}]

        assert [f.name for f in infer_schema(records)] == ["z", "a", "m"]

    def test_skips_null_and_empty_values(self):
        records = [{"a": None}, {"a": ""}, {"a": 2.5}]

        assert infer_schema(records) == [SchemaField("a", KustoType.DECIMAL)]

    def test_datetime_name_fallback(self):
        records = [{"eventDateTime": None, "note": ""}]

        assert infer_schema(records) == [
            SchemaField("eventDateTime", KustoType.DATETIME),
            SchemaField("note", KustoType.STRING),
        ]

    def test_empty_input(self):
        assert infer_schema([]) == []

    def test_unknown_kind_falls_back_to_dynamic(self, caplog):
        inferencer = SchemaInferencer()

        with caplog.at_level("WARNING"):
            fields = inferencer.infer([{"blob": b"raw", "id": 1}])

        assert fields == [SchemaField("blob", KustoType.DYNAMIC), SchemaField("id", KustoType.LONG)]
        assert len(inferencer.warnings) == 1
        assert isinstance(inferencer.warnings[0], TypeInferenceWarning)
        assert inferencer.warnings[0].field_name == "blob"
        assert inferencer.warnings[0].kind == "bytes"
        assert "blob" in caplog.text

    def test_warnings_reset_between_calls(self):
        inferencer = SchemaInferencer()
        inferencer.infer([{"blob": b"raw"}])
        inferencer.infer([{"id": 1}])

        assert inferencer.warnings == []
