"""Output formatting for enriched log records."""

import json
from typing import Any


def plain_numbers(value: Any) -> Any:
    """Return *value* with integral floats turned into ints, at any depth.

    Log writers emit ``42`` for whole doubles; this keeps ``42.0`` from
    appearing in output that was ``42`` on the way in.
    """
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: plain_numbers(v) for k, v in value.items()}
    if isinstance(value, list):
        return [plain_numbers(v) for v in value]
    return value


def compact_json(value: Any) -> str:
    return json.dumps(plain_numbers(value), separators=(",", ":"), ensure_ascii=False)


def format_record(record: dict[str, Any]) -> str:
    """Return one compact JSON object per line, ready for jq."""
    return compact_json(record)
