# Overview: camelCase wire format for API payloads and the JSON response envelope.

"""
Wire Format

Models and services speak snake_case (see Model.to_dict()). The HTTP surface
speaks camelCase. This module is the only place where the two meet:

- to_wire(): snake_case dicts -> camelCase JSON-ready values
  (Decimal -> float, datetime -> ISO-8601 'Z', date -> 'YYYY-MM-DD')
- from_wire(): camelCase request body -> snake_case keys
- WIRE_ALIASES: wire names that do not follow the mechanical rule

Route handlers return ok(...) so every success response has the shape
{"success": true, "data": ..., "message"?: ...}.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from flask import jsonify

from .errors import ValidationError
from .time_utils import to_utc_z

# Inbound wire names that map to a different column name.
# Ordered; first match wins when two aliases target the same field.
WIRE_ALIASES: dict[str, str] = {
    "gstRate": "gst_percentage",
    "gstPercent": "gst_percentage",
    "vendor": "vendor_id",
    "brand": "brand_id",
    "hsnCode": "hsn_sac_code",
    "hsnSac": "hsn_sac_code",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def camelize(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def snakeize(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def to_wire(value: Any) -> Any:
    if isinstance(value, dict):
        return {camelize(str(k)): to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def from_wire(payload: dict | None) -> dict:
    """Translate a camelCase body to snake_case keys. Nested values are left untouched."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    result: dict = {}
    for key, value in payload.items():
        target = WIRE_ALIASES.get(key) or snakeize(key)
        # Canonical key wins over an alias for the same field
        if target in result and key in WIRE_ALIASES:
            continue
        result[target] = value
    return result


def ok(data: Any = None, *, status: int = 200, message: str | None = None, **extra):
    body: dict = {"success": True}
    if data is not None:
        body["data"] = to_wire(data)
    if message:
        body["message"] = message
    for key, value in extra.items():
        body[camelize(key)] = to_wire(value)
    return jsonify(body), status
