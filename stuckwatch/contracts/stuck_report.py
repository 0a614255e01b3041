"""Stuck report contract.

The check endpoints return `{"total": int, "results": [...]}`. This module holds the
JSON Schema for that payload; the HTTP client validates every response against it
before the data reaches a view.
"""

from __future__ import annotations

from typing import Any, Dict, List

from jsonschema import Draft202012Validator


STUCK_REPORT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["total", "results"],
    "properties": {
        "total": {"type": "integer", "minimum": 0},
        "results": {
            "type": "array",
            "maxItems": 100,
            "items": {
                "type": "object",
                "properties": {
                    "link_yid": {"type": ["string", "null"]},
                    "url": {"type": ["string", "null"]},
                    "source_channel": {
                        "type": "object",
                        "properties": {
                            "country_code": {"type": ["string", "null"]},
                        },
                        "additionalProperties": True,
                    },
                    "createdAt": {"type": ["string", "null"]},
                },
                "additionalProperties": True,
            },
        },
    },
    "additionalProperties": True,
}

ERROR_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["error"],
    "properties": {"error": {"type": "string", "minLength": 1}},
}


_VALIDATOR = Draft202012Validator(STUCK_REPORT_SCHEMA)
_ERROR_VALIDATOR = Draft202012Validator(ERROR_SCHEMA)


def _collect(validator: Draft202012Validator, payload: Any) -> List[str]:
    errors = []
    for e in sorted(validator.iter_errors(payload), key=lambda x: list(map(str, x.path))):
        path = ".".join(str(p) for p in e.path) if e.path else "<root>"
        errors.append(f"{path}: {e.message}")
    return errors


def validate_stuck_report(payload: Any) -> List[str]:
    """Return a list of human-readable validation errors (empty means valid)."""
    return _collect(_VALIDATOR, payload)


def validate_error_payload(payload: Any) -> List[str]:
    return _collect(_ERROR_VALIDATOR, payload)
