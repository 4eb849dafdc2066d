from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from flask import request

from .errors import ValidationError
from .time_utils import parse_iso_datetime


# Maximum monetary value accepted on input: 9,999,999,999.99 fits Numeric(12,2)
MAX_MONEY = Decimal("9999999999.99")
# Quantities are stored as Numeric(12,3)
MAX_QUANTITY = Decimal("999999999.999")

Coercer = Callable[[str, Any], Any]


@dataclass(frozen=True)
class PayloadPolicy:
    """
    Central policy layer for a JSON body:
    - fields: wire name -> coercer(key, raw) returning the cleaned value
    - required: fields that must be present and non-null
    Unknown keys are rejected (security boundary).
    """
    fields: dict[str, Coercer]
    required: set[str] = field(default_factory=set)


def json_body() -> dict:
    """Parsed JSON object body; an absent body is treated as {}."""
    payload = request.get_json(silent=True)
    if payload is None:
        if request.get_data(cache=True):
            raise ValidationError("Malformed JSON body", code="INVALID_JSON")
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def validate_payload(payload: Any, policy: PayloadPolicy) -> dict:
    """
    Validates + normalizes incoming JSON against a PayloadPolicy.
    Returns a cleaned dict containing only the keys present in the payload.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = sorted(k for k in policy.required if payload.get(k) is None)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={"fields": missing},
        )

    for k in payload.keys():
        if k not in policy.fields:
            raise ValidationError(f"Field not allowed: {k}", details={"field": k})

    cleaned: dict = {}
    for k, raw in payload.items():
        if raw is None:
            cleaned[k] = None
            continue
        cleaned[k] = policy.fields[k](k, raw)
    return cleaned


# ---------------------------------------------------------------------------
# Coercers
# ---------------------------------------------------------------------------

def coerce_int(key: str, value: Any) -> int:
    """Strict integer: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer", details={"field": key})
        if "e" in stripped.lower():
            raise ValidationError(
                f"{key} must be a plain integer (scientific notation not allowed)",
                details={"field": key},
            )
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)", details={"field": key})
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer", details={"field": key})
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal", details={"field": key})
    raise ValidationError(f"{key} must be an integer", details={"field": key})


def coerce_positive_int(key: str, value: Any) -> int:
    result = coerce_int(key, value)
    if result <= 0:
        raise ValidationError(f"{key} must be a positive integer", details={"field": key})
    return result


def coerce_flag(key: str, value: Any) -> bool:
    """Query-string boolean: true/false, 1/0."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise ValidationError(f"{key} must be true or false", details={"field": key})


def coerce_decimal(key: str, value: Any) -> Decimal:
    """
    Exact decimal from a JSON number or numeric string.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number", details={"field": key})
    if isinstance(value, (int, float)):
        value = str(value)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number", details={"field": key})
    else:
        raise ValidationError(f"{key} must be a number", details={"field": key})
    if not result.is_finite():
        raise ValidationError(f"{key} must be a finite number", details={"field": key})
    return result


def coerce_money(key: str, value: Any) -> Decimal:
    """Non-negative amount with at most two decimal places."""
    result = coerce_decimal(key, value)
    if result < 0:
        raise ValidationError(f"{key} must be >= 0", details={"field": key})
    if result > MAX_MONEY:
        raise ValidationError(f"{key} cannot exceed {MAX_MONEY}", details={"field": key})
    if result != result.quantize(Decimal("0.01")):
        raise ValidationError(f"{key} must have at most 2 decimal places", details={"field": key})
    return result


def coerce_quantity(key: str, value: Any) -> Decimal:
    """Strictly positive quantity; fractional values allowed (weight-based goods)."""
    result = coerce_decimal(key, value)
    if result <= 0:
        raise ValidationError(f"{key} must be greater than zero", details={"field": key})
    if result > MAX_QUANTITY:
        raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY}", details={"field": key})
    if result != result.quantize(Decimal("0.001")):
        raise ValidationError(f"{key} must have at most 3 decimal places", details={"field": key})
    return result


def string_of(max_length: int) -> Coercer:
    def _coerce(key: str, value: Any) -> str:
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be a string", details={"field": key})
        result = value.strip()
        if len(result) > max_length:
            raise ValidationError(f"{key} exceeds max length {max_length}", details={"field": key})
        return result
    return _coerce


def one_of(mapping: dict[str, str]) -> Coercer:
    """Accepts a wire enum value and returns its internal counterpart."""
    def _coerce(key: str, value: Any) -> str:
        if not isinstance(value, str) or value not in mapping:
            raise ValidationError(
                f"{key} must be one of: {', '.join(mapping)}",
                details={"field": key, "allowed": list(mapping)},
            )
        return mapping[value]
    return _coerce


def coerce_iso_datetime(key: str, value: Any):
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an ISO-8601 datetime", details={"field": key})
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 datetime", details={"field": key})


# ---------------------------------------------------------------------------
# Query-string helpers
# ---------------------------------------------------------------------------

def query_pagination(*, default_limit: int = 20, max_limit: int = 100) -> tuple[int, int]:
    """Returns (page, limit) from ?page=&limit=, both validated."""
    page = request.args.get("page")
    limit = request.args.get("limit")
    page = coerce_positive_int("page", page) if page is not None else 1
    limit = coerce_positive_int("limit", limit) if limit is not None else default_limit
    if limit > max_limit:
        raise ValidationError(f"limit cannot exceed {max_limit}", details={"field": "limit"})
    return page, limit


def query_arg(name: str, coercer: Coercer):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return coercer(name, raw)
