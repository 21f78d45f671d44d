from __future__ import annotations

import re
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

_TRUE = {"1", "true", "yes", "si", "sí"}
_FALSE = {"0", "false", "no"}

# ASCII only; "²".isdigit() is True but int("²") fails
_DIGITS = re.compile(r"[0-9]+")


def is_digits(text: str) -> bool:
    return _DIGITS.fullmatch(text) is not None


def optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} debe tener al menos {min_len} caracteres.")
    return value


def require_pattern(value: str, pattern: str, message: str) -> str:
    if not isinstance(value, str) or not re.match(pattern, value):
        raise ValidationError(message)
    return value


def parse_id(value: Any, field_name: str) -> int:
    """Parse a numeric surrogate key coming from a path, query or JSON body."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"El {field_name} debe ser un número válido.")
    if isinstance(value, int):
        parsed = value
    else:
        text = str(value).strip()
        if not is_digits(text):
            raise ValidationError(f"El {field_name} debe ser un número válido.")
        parsed = int(text)
    if parsed <= 0:
        raise ValidationError(f"El {field_name} debe ser un número válido.")
    return parsed


def optional_id(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_id(value, field_name)


def parse_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValidationError(f"{field_name} debe ser verdadero o falso.")


def optional_bool(value: Any, field_name: str) -> Optional[bool]:
    if value is None or value == "":
        return None
    return parse_bool(value, field_name)


def require_choice(value: Any, enum_cls: Type[E], message: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(message)


def require_any_field(payload: Mapping[str, Any], fields: tuple[str, ...]) -> None:
    if not any(payload.get(f) is not None for f in fields):
        raise ValidationError("Debe proporcionar al menos un campo para actualizar.")
