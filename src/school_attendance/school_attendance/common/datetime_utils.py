from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from ..core.exceptions import ValidationError

_DURATION = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_iso_date(value: Any, field_name: str = "fecha") -> date:
    """Parse a strict YYYY-MM-DD string into a date."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or len(value) != 10:
        raise ValidationError(f"La {field_name} debe tener formato YYYY-MM-DD.")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"La {field_name} debe tener formato YYYY-MM-DD.")


def optional_iso_date(value: Any, field_name: str = "fecha") -> Optional[date]:
    if value is None or value == "":
        return None
    return parse_iso_date(value, field_name)


def parse_duration(value: Any) -> timedelta:
    """Parse token lifetimes such as '1h', '30m', '7d' or a plain number of seconds."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=int(value))
    match = _DURATION.match(str(value or ""))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit])


def today_local() -> date:
    """Current local date.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now().date()


def now_local() -> datetime:
    return datetime.now()


def to_json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    return value
