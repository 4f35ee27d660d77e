"""
Field validation helpers.

Pure checks with no I/O.  Each helper either returns the coerced value or
raises ValidationError naming the offending field, so services can pass
user-supplied values straight through.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from insurance_kernel.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(values: Mapping[str, Any], fields: Iterable[str]) -> None:
    """Raise for the first of ``fields`` that is missing or blank."""
    for name in fields:
        if is_blank(values.get(name)):
            raise ValidationError(name, "is required")


def reject_unknown_fields(
    values: Mapping[str, Any], allowed: Iterable[str]
) -> None:
    allowed = set(allowed)
    for name in values:
        if name not in allowed:
            raise ValidationError(name, "is not an updatable field")


def parse_date(value: Any, field: str) -> date | None:
    """Accept a date, a datetime (its date part) or an ISO 'YYYY-MM-DD' string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(field, f"'{value}' is not a valid date") from None
    raise ValidationError(field, f"expected a date, got {type(value).__name__}")


def parse_amount(value: Any, field: str) -> Decimal | None:
    """Coerce to Decimal.  Floats go through str() so 0.1 stays 0.1."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(field, "expected an amount, got bool")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(field, f"'{value}' is not a valid amount") from None
    else:
        raise ValidationError(field, f"expected an amount, got {type(value).__name__}")
    if not amount.is_finite():
        raise ValidationError(field, "must be a finite number")
    return amount


def require_non_negative(amount: Decimal | None, field: str) -> None:
    if amount is not None and amount < 0:
        raise ValidationError(field, "must be greater than or equal to 0")


def require_positive(amount: Decimal | None, field: str) -> None:
    if amount is None or amount <= 0:
        raise ValidationError(field, "must be greater than 0")


def require_date_order(
    earlier: date | None,
    later: date | None,
    field: str,
    *,
    strict: bool,
    reason: str,
) -> None:
    """Check ``earlier < later`` (strict) or ``earlier <= later``."""
    if earlier is None or later is None:
        return
    if later < earlier or (strict and later == earlier):
        raise ValidationError(field, reason)


def validate_email(value: Any, field: str = "email") -> str:
    if is_blank(value):
        raise ValidationError(field, "is required")
    email = str(value).strip()
    if not _EMAIL_RE.match(email):
        raise ValidationError(field, f"'{email}' is not a valid email address")
    return email.lower()
