from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing record."""


@dataclass(frozen=True)
class RecordPolicy:
    """
    Central policy layer for one record type:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - numeric_fields / integer_fields: coerced to float / int
    - list_fields: must be JSON arrays
    - enum_fields: field -> allowed values
    - defaults: applied on create for absent fields
    """
    name: str
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    numeric_fields: set[str] = field(default_factory=set)
    integer_fields: set[str] = field(default_factory=set)
    list_fields: set[str] = field(default_factory=set)
    enum_fields: dict[str, tuple[str, ...]] = field(default_factory=dict)
    defaults: dict[str, Any] = field(default_factory=dict)


def _coerce_number(key: str, value: Any, *, integer: bool):
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")

    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        stripped = value.strip().replace(",", "")
        if not stripped:
            raise ValidationError(f"{key} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be a number")
    else:
        raise ValidationError(f"{key} must be a number")

    if isinstance(number, float) and not math.isfinite(number):
        raise ValidationError(f"{key} must be a finite number")

    if integer:
        if isinstance(number, float):
            if not number.is_integer():
                raise ValidationError(f"{key} must be an integer (no decimals)")
            return int(number)
        return number

    # Keep whole numbers as ints so stored records stay tidy
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _coerce_value(policy: RecordPolicy, key: str, value: Any):
    if key in policy.integer_fields:
        return _coerce_number(key, value, integer=True)

    if key in policy.numeric_fields:
        return _coerce_number(key, value, integer=False)

    if key in policy.list_fields:
        if not isinstance(value, list):
            raise ValidationError(f"{key} must be a list")
        return value

    if key in policy.enum_fields:
        text = str(value).strip()
        allowed = policy.enum_fields[key]
        if text not in allowed:
            raise ValidationError(f"{key} must be one of: {', '.join(allowed)}")
        return text

    if isinstance(value, str):
        return value.strip()

    if isinstance(value, (dict, list)):
        raise ValidationError(f"{key} must be a scalar value")

    return value


def validate_record(
    *,
    payload: dict,
    policy: RecordPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes an incoming JSON record against a RecordPolicy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create, apply defaults)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(
            f for f in policy.required_on_create
            if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload[f].strip())
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        if raw is None:
            if k in policy.required_on_create:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue
        patch[k] = _coerce_value(policy, k, raw)

    if not partial:
        for k, default in policy.defaults.items():
            if k not in patch:
                patch[k] = list(default) if isinstance(default, list) else default

    return patch


def require_non_negative(patch: dict, *fields: str) -> None:
    """Business rule shared by money and quantity fields."""
    for name in fields:
        value = patch.get(name)
        if value is not None and value < 0:
            raise ValidationError(f"{name} must be >= 0")
