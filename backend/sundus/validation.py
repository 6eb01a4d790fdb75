from __future__ import annotations
from datetime import datetime
from sundus.time_utils import parse_iso_datetime, parse_hhmm
from sundus.money import parse_decimal

import re
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price accepted for a product or sale line: 99,999,999.99 fits Numeric(10, 2)
MAX_PRICE = 99_999_999

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: column keys clients are allowed to set (security boundary)
    - required_on_create: column keys required for POST
    - aliases: request key -> column key (the web client sends camelCase)
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    aliases: dict[str, str] = field(default_factory=dict)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Money columns
    if isinstance(coltype, Numeric):
        parsed = parse_decimal(value)
        if parsed is None:
            raise ValidationError(f"{col.key} must be a number")
        return parsed

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false", "1", "0"}:
            return value.strip().lower() in {"true", "1"}
        if isinstance(value, int):
            return bool(value)
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    # JSON and anything else: leave as-is, rule functions check shape
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column key, with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    # Resolve aliases first; an explicit column key wins over its alias
    resolved: dict = {}
    for k, v in payload.items():
        key = policy.aliases.get(k, k)
        if key in resolved and k != key:
            continue
        resolved[key] = v

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in resolved)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in resolved.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in resolved.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields; blank optional text becomes NULL
        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            val = None

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_money(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None:
        amount = patch[key]
        if amount < 0:
            raise ValidationError(f"{key} must be >= 0")
        if amount > MAX_PRICE:
            raise ValidationError(f"{key} cannot exceed {MAX_PRICE:,}")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_money(patch, "price")
    _check_money(patch, "cost")


def enforce_rules_email(patch: dict, key: str = "email") -> None:
    email = patch.get(key)
    if email is not None and not EMAIL_RE.match(email):
        raise ValidationError(f"Invalid {key}")


def enforce_rules_settings(patch: dict) -> None:
    enforce_rules_email(patch)

    if patch.get("tax_rate") is not None and patch["tax_rate"] < 0:
        raise ValidationError("tax_rate must be >= 0")

    if patch.get("invoice_next_number") is not None and patch["invoice_next_number"] < 1:
        raise ValidationError("invoice_next_number must be >= 1")

    if patch.get("mobile_pin_digits") is not None and not 1 <= patch["mobile_pin_digits"] <= 12:
        raise ValidationError("mobile_pin_digits must be between 1 and 12")

    for key in ("online_orders_start_time", "online_orders_end_time"):
        if patch.get(key) is not None:
            try:
                parse_hhmm(patch[key])
            except ValueError:
                raise ValidationError(f"{key} must be HH:MM")

    days = patch.get("online_orders_days")
    if days is not None:
        if not isinstance(days, list):
            raise ValidationError("online_orders_days must be an array")
        ok = all(isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6 for d in days)
        if not ok:
            raise ValidationError("online_orders_days must contain integers 0-6")
