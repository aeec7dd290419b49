from __future__ import annotations
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from kickvault.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError, ConflictError  # noqa: F401  (re-exported)


# Maximum price: $9,999,999.99 (999,999,999 cents)
# Upper bound for any price, cost or payout amount
MAX_PRICE_CENTS = 999_999_999

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: allowed values for enumerated string columns
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    choices: dict[str, set[str]] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def to_decimal(value: Any, field: str) -> Decimal:
    """Parse a JSON number or numeric string into a Decimal (bools rejected)."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        return value
    text = str(value).strip().replace(",", "")
    if text.startswith("$"):
        text = text[1:]
    try:
        result = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def to_cents(value: Any, field: str) -> int:
    """
    Convert a currency amount in major units (e.g. 199.99) to integer cents.

    Rounds half-up to the nearest cent and enforces 0 <= cents <= MAX_PRICE_CENTS.
    """
    amount = to_decimal(value, field)
    cents = int((amount * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents < 0:
        raise ValidationError(f"{field} must be >= 0")
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
    return cents


def to_percentage(value: Any, field: str, *, upper: Decimal | None = HUNDRED) -> Decimal:
    """Parse a percentage with two decimal places; 0 <= value <= upper."""
    pct = to_decimal(value, field).quantize(CENT, rounding=ROUND_HALF_UP)
    if pct < 0:
        raise ValidationError(f"{field} must be >= 0")
    if upper is not None and pct > upper:
        raise ValidationError(f"{field} must be between 0 and {upper}")
    return pct


def _coerce_integer(key: str, value: Any) -> int:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    text = value.strip() if isinstance(value, str) else ""
    # Plain base-10 digits only: no "1e3", no "12.0"
    if not re.fullmatch(r"[+-]?\d+", text):
        raise ValidationError(f"{key} must be an integer")
    return int(text)


def _coerce_temporal(key: str, value: Any, kind: type, parser, label: str):
    if isinstance(value, kind):
        return value
    parsed = None
    if isinstance(value, str):
        try:
            parsed = parser(value)
        except ValueError:
            parsed = None
    if parsed is None:
        raise ValidationError(f"{key} must be an ISO-8601 {label}")
    return parsed


def _coerce_value(col, value: Any):
    coltype = col.type
    if isinstance(coltype, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{col.key} must be true or false")
        return value
    if isinstance(coltype, Integer):
        return _coerce_integer(col.key, value)
    if isinstance(coltype, Numeric):
        return to_decimal(value, col.key).quantize(CENT, rounding=ROUND_HALF_UP)
    if isinstance(coltype, DateTime):
        return _coerce_temporal(col.key, value, datetime, parse_iso_datetime, "datetime")
    if isinstance(coltype, Date):
        return _coerce_temporal(col.key, value, date, parse_iso_date, "date")
    if isinstance(coltype, (String, Text)):
        return str(value).strip()
    return value


def _check_field(col, raw: Any, allowed: set[str] | None):
    """Normalized value for one column, or ValidationError naming the problem."""
    key = col.key
    if raw is None:
        if not col.nullable:
            raise ValidationError(f"{key} cannot be null")
        return None

    value = _coerce_value(col, raw)
    if isinstance(value, str):
        if value == "" and not col.nullable:
            raise ValidationError(f"{key} cannot be blank")
        max_length = getattr(col.type, "length", None)
        if max_length and len(value) > max_length:
            raise ValidationError(f"{key} exceeds max length {max_length}")
    if allowed is not None and value not in allowed:
        raise ValidationError(f"{key} must be one of: {', '.join(sorted(allowed))}")
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Clean a JSON body for `model` using its column metadata and `policy`.

    Only writable_fields may appear. With partial=False every
    required_on_create field must be present; with partial=True only the
    keys sent are checked. Every problem is gathered into a single
    ValidationError (details.errors) instead of stopping at the first.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: list[str] = []
    if not partial:
        missing = sorted((policy.required_on_create or set()) - payload.keys())
        if missing:
            errors.append(f"Missing required fields: {', '.join(missing)}")

    columns = _columns_by_key(model)
    choices = policy.choices or {}
    patch: dict = {}

    for key, raw in payload.items():
        if key not in policy.writable_fields:
            errors.append(f"Field not allowed: {key}")
        elif key not in columns:
            errors.append(f"Unknown field: {key}")
        else:
            try:
                patch[key] = _check_field(columns[key], raw, choices.get(key))
            except ValidationError as e:
                errors.append(e.message)

    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return patch


def enforce_price_cents(patch: dict, *fields: str) -> None:
    """Range-check integer cent fields already present in a cleaned patch."""
    errors = [
        f"{field} must be between 0 and {MAX_PRICE_CENTS}"
        for field in fields
        if patch.get(field) is not None and not 0 <= patch[field] <= MAX_PRICE_CENTS
    ]
    if errors:
        raise ValidationError("Validation failed", errors=errors)
