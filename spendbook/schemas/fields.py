# spendbook/schemas/fields.py
"""Shared coercions for request fields."""
import math
from datetime import date, datetime, timezone
from typing import Any

from pydantic_core import PydanticCustomError

# Range of the INTEGER amount columns
AMOUNT_MIN = -(2 ** 31)
AMOUNT_MAX = 2 ** 31 - 1


def coerce_amount(value: Any) -> int:
    """Accept JSON numbers with no fractional part that fit the amount column."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("Amount must be a valid number")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("Amount must be a valid number")
        if not value.is_integer():
            raise ValueError("Amount must be a whole number of the smallest currency unit")
    amount = int(value)
    if not AMOUNT_MIN <= amount <= AMOUNT_MAX:
        raise ValueError("Amount must be a valid number")
    return amount


def coerce_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 date or datetime into a naive UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            raise ValueError("Please provide a valid date")
    else:
        raise ValueError("Please provide a valid date")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def require_text(value: Any) -> str:
    """Null and blank strings count as missing; other non-strings are invalid."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("missing", "Field required")
    if not isinstance(value, str):
        raise ValueError("Field must be a non-empty string")
    return value


def is_date_only(value: str) -> bool:
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def parse_date_bound(value: str, end: bool = False) -> datetime:
    """Parse a listing bound. A date-only upper bound covers that whole day."""
    parsed = coerce_timestamp(value)
    if end and is_date_only(value):
        parsed = parsed.replace(hour=23, minute=59, second=59, microsecond=999999)
    return parsed
