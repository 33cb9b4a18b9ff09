"""Local parameter checks run before any request is sent.

Every failure raises ValidationError synchronously; nothing here does I/O.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from buda.exceptions import ValidationError
from buda.models import parse_decimal


def wire_value(value: Any) -> Any:
    """Return the wire form of an enum member; other values pass through."""
    return value.value if isinstance(value, Enum) else value


def require(**params: Any) -> None:
    """Raise if any named parameter is None or an empty string/collection."""
    missing = [name for name, value in params.items() if _is_blank(value)]
    if missing:
        raise ValidationError(f"Missing required parameters: {', '.join(missing)}")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def check_allowed(name: str, value: Any, allowed: type[Enum]) -> str:
    """Validate ``value`` against an enum's wire values and return the wire string."""
    wire = wire_value(value)
    values = [member.value for member in allowed]
    if wire not in values:
        raise ValidationError(
            f"Invalid {name}: '{wire}'. Must be one of: {', '.join(values)}"
        )
    return wire


def check_all_allowed(name: str, values: Iterable[Any], allowed: type[Enum]) -> list[str]:
    return [check_allowed(name, value, allowed) for value in values]


def check_per_page(per_page: int | None, maximum: int) -> None:
    if per_page is None:
        return
    if per_page < 1:
        raise ValidationError("per_page must be at least 1")
    if per_page > maximum:
        raise ValidationError(f"per_page cannot exceed {maximum}")


def check_positive(name: str, value: Any) -> Decimal:
    """Parse a numeric parameter and require it to be greater than zero."""
    number = parse_decimal(wire_value(value))
    if number is None or not number.is_finite():
        raise ValidationError(f"Invalid {name}: '{value}'. Must be a number")
    if number <= 0:
        raise ValidationError(f"Invalid {name}: '{value}'. Must be greater than 0")
    return number


def format_number(value: Decimal) -> str:
    """Plain decimal notation for payloads (no exponent)."""
    return format(value, "f")


def epoch_seconds(value: datetime | int | float | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)


def normalize_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Drop empty values and convert enums and booleans to their query form."""
    normalized: dict[str, Any] = {}
    for key, value in params.items():
        if _is_blank(value):
            continue
        if isinstance(value, (list, tuple)):
            normalized[key] = [wire_value(v) for v in value]
        elif isinstance(value, bool):
            normalized[key] = "true" if value else "false"
        else:
            normalized[key] = wire_value(value)
    return normalized
