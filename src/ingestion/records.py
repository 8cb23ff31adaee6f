"""Reading input records from disk."""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]


def parse_records(text: str, source: str = "<string>") -> list[dict[str, Any]]:
    """
    Parse records from a JSON array, a single JSON object, or JSON lines.

    Raises:
        ValueError: If the text is not valid JSON / JSON lines, or an entry
            is not an object
    """
    stripped = text.strip()
    if not stripped:
        return []

    try:
        data = json.loads(stripped)
    except json.JSONDecodeError:
        records = _parse_json_lines(stripped, source)
    else:
        if isinstance(data, dict):
            records = [data]
        elif isinstance(data, list):
            records = data
        else:
            raise ValueError(f"{source}: expected a JSON object or array, got {type(data).__name__}")

    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValueError(
                f"{source}: record {index} is a {type(record).__name__}, expected an object"
            )
    return records


def _parse_json_lines(text: str, source: str) -> list[Any]:
    records = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise ValueError(f"{source}:{line_number}: invalid JSON: {e.msg}") from e
    return records


def read_records(path: Path) -> list[dict[str, Any]]:
    """Read all records from a file."""
    path = Path(path)
    records = parse_records(path.read_text(encoding="utf-8"), source=str(path))
    logger.info("Read input records", extra={"records": len(records)})
    return records


__all__ = ["Record", "parse_records", "read_records"]
