"""
Typed filter values.

On the wire a filter value is whatever JSON the caller sent: a string, a
number, a boolean. Before a filter is used it is resolved against the
declared type of its field into one of the tagged values below, so the
query layer never has to guess whether ``"5"`` is a number or a label.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from rentdesk.common.dates import parse_iso_date
from rentdesk.reports.catalog import FieldType

_TRUE = {"true", "1", "yes", "y", "on"}
_FALSE = {"false", "0", "no", "n", "off"}


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class NumberValue:
    value: Decimal


@dataclass(frozen=True)
class DateValue:
    value: date


@dataclass(frozen=True)
class BooleanValue:
    value: bool


FilterValue = Union[StringValue, NumberValue, DateValue, BooleanValue]


def _to_number(raw: Any) -> NumberValue:
    if isinstance(raw, bool):
        raise ValueError(f"{raw!r} is not a number")
    try:
        number = Decimal(str(raw).strip())
    except InvalidOperation:
        raise ValueError(f"{raw!r} is not a number") from None
    # Decimal also parses "Infinity" and "NaN"
    if not number.is_finite():
        raise ValueError(f"{raw!r} is not a finite number")
    return NumberValue(number)


def _to_date(raw: Any) -> DateValue:
    if isinstance(raw, date):
        return DateValue(raw)
    if not isinstance(raw, str):
        raise ValueError(f"{raw!r} is not a date")
    try:
        return DateValue(parse_iso_date(raw))
    except ValueError:
        raise ValueError(f"{raw!r} is not a date (expected YYYY-MM-DD)") from None


def _to_boolean(raw: Any) -> BooleanValue:
    if isinstance(raw, bool):
        return BooleanValue(raw)
    text = str(raw).strip().lower()
    if text in _TRUE:
        return BooleanValue(True)
    if text in _FALSE:
        return BooleanValue(False)
    raise ValueError(f"{raw!r} is not a boolean")


def resolve_value(field_type: FieldType, raw: Any) -> FilterValue:
    """Resolve a raw wire value against ``field_type``. Raises ValueError when it does not parse."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValueError("a value is required")
    if field_type == FieldType.number:
        return _to_number(raw)
    if field_type == FieldType.date:
        return _to_date(raw)
    if field_type == FieldType.boolean:
        return _to_boolean(raw)
    return StringValue(str(raw))


def resolve_list(field_type: FieldType, raw: Any) -> tuple[FilterValue, ...]:
    """Resolve a comma separated string (or a JSON list) into typed values."""
    if isinstance(raw, (list, tuple)):
        parts = list(raw)
    elif isinstance(raw, str):
        parts = [p.strip() for p in raw.split(",") if p.strip()]
    else:
        parts = [raw]
    if not parts:
        raise ValueError("at least one value is required")
    return tuple(resolve_value(field_type, p) for p in parts)


def to_python(value: FilterValue) -> Any:
    return value.value


def to_wire(value: FilterValue) -> Any:
    """JSON-safe form of a resolved value, used when a configuration is sent or stored."""
    if isinstance(value, NumberValue):
        number = value.value
        return int(number) if number == number.to_integral_value() else float(number)
    if isinstance(value, DateValue):
        return value.value.isoformat()
    return value.value
