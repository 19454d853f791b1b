"""Row mapping helpers.

Pure functions that turn raw driver values into rows, scalars and typed
objects. Nothing here touches a connection.

Typed objects are populated through a per-type dispatch table of
``field name -> setter`` built once from the class's annotations, so a
column without a matching field is simply not found in the table and is
skipped.
"""

from __future__ import annotations

import dataclasses
import functools
import numbers
import types
import typing
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Mapping, TypeVar

from .errors import ConversionError

T = TypeVar("T")

Row = dict[str, Any]
Setter = Callable[[Any, Any], None]


def to_field_name(column: str) -> str:
    """Convert a snake_case column label to a camelCase field name.

    Labels without an underscore are returned unchanged. Otherwise the first
    segment is lowercased and every following segment is lowercased with
    its first character uppercased.

    >>> to_field_name("user_id")
    'userId'
    >>> to_field_name("a_b_c")
    'aBC'
    """
    if "_" not in column:
        return column

    first, *rest = column.split("_")
    parts = [first.lower()]
    for segment in rest:
        if segment:
            parts.append(segment[0].upper() + segment[1:].lower())
    return "".join(parts)


def normalize_value(value: Any) -> Any:
    """Normalize a raw driver value before it is stored in a row.

    Datetime subclasses (driver-specific timestamp types) become plain
    `datetime` objects; everything else passes through untouched.
    """
    if isinstance(value, datetime) and type(value) is not datetime:
        return datetime(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond,
            tzinfo=value.tzinfo,
        )
    return value


def make_row(labels: list[str], values: tuple[Any, ...] | list[Any]) -> Row:
    """Zip column labels and raw values into an ordered row."""
    return {label: normalize_value(value) for label, value in zip(labels, values)}


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Number) and not isinstance(value, complex)


def _satisfies(value: Any, target: type) -> bool:
    # bool is an int subclass but should not satisfy a numeric field as-is
    if isinstance(value, bool) and target is not bool:
        return False
    return isinstance(value, target)


def as_datetime(value: Any) -> datetime:
    """Return a temporal value as a `datetime`; dates get a midnight time."""
    if isinstance(value, datetime):
        return normalize_value(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    raise ConversionError(value, datetime)


def convert_value(target: Any, value: Any) -> Any:
    """Convert a raw column value to ``target``.

    Rules, in priority order:

    1. ``None`` stays ``None``.
    2. A value that already is a ``target`` passes through.
    3. ``int``/``float``/``Decimal`` targets accept any number.
    4. ``bool`` targets accept numbers as ``value != 0``.
    5. ``str`` targets take the value's string form (bytes are decoded as
       UTF-8; undecodable bytes raise `ConversionError`).
    6. ``datetime`` targets accept dates and datetimes.
    7. Anything else raises `ConversionError`.
    """
    if value is None:
        return None

    if target is Any or target is object:
        return value

    if _satisfies(value, target):
        return value

    if target is bool:
        if _is_number(value):
            return value != 0
        raise ConversionError(value, target)

    if target in (int, float, Decimal) and _is_number(value):
        if target is Decimal and isinstance(value, float):
            return Decimal(str(value))
        return target(value)

    if target is str:
        if isinstance(value, (bytes, bytearray)):
            try:
                return bytes(value).decode()
            except UnicodeDecodeError as exc:
                raise ConversionError(value, target) from exc
        return str(value)

    if target is datetime and isinstance(value, date):
        return as_datetime(value)

    raise ConversionError(value, target)


def _unwrap_optional(hint: Any) -> Any:
    """Return ``X`` for ``Optional[X]`` / ``X | None``; other hints unchanged."""
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is getattr(types, "UnionType", None):
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return _unwrap_optional(args[0])
        return Any
    if origin is not None:
        # Parameterized generics (list[int], dict[str, Any], ...) match on origin.
        return origin
    if not isinstance(hint, type):
        return Any
    return hint


def _make_setter(name: str, target: Any) -> Setter:
    def setter(obj: Any, value: Any) -> None:
        setattr(obj, name, convert_value(target, value))

    return setter


@functools.lru_cache(maxsize=None)
def field_setters(target_type: type) -> Mapping[str, Setter]:
    """Build the ``field name -> setter`` table for ``target_type``.

    Fields come from `dataclasses.fields` for dataclasses and from the
    class annotations (including base classes) otherwise. Annotations are
    resolved with `typing.get_type_hints`.
    """
    try:
        hints = typing.get_type_hints(target_type)
    except (NameError, TypeError):
        hints = {}
        for klass in reversed(target_type.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))

    if dataclasses.is_dataclass(target_type):
        names = [f.name for f in dataclasses.fields(target_type)]
    else:
        names = [name for name in hints if not name.startswith("__")]

    return types.MappingProxyType(
        {
            name: _make_setter(name, _unwrap_optional(hints.get(name, Any)))
            for name in names
            if typing.get_origin(hints.get(name)) is not typing.ClassVar
        }
    )


def row_to_object(row: Mapping[str, Any], target_type: type[T]) -> T:
    """Create a ``target_type`` instance and fill it from ``row``.

    Each column label is turned into a field name with `to_field_name`;
    a field named exactly like the column is used when no camelCase field
    exists. Columns without a matching field are skipped, and fields without
    a matching column keep their default.

    Raises:
        ConversionError: If a value cannot be converted to its field's type.
    """
    setters = field_setters(target_type)
    obj = target_type()
    for column, value in row.items():
        setter = setters.get(to_field_name(column)) or setters.get(column)
        if setter is not None:
            setter(obj, value)
    return obj


# ----------------------------------------------------------------------
# Single-value coercion used by the select_<type> terminals
# ----------------------------------------------------------------------


def to_long(value: Any) -> int | None:
    """Coerce a scalar to ``int``; any number is accepted."""
    if value is None:
        return None
    if _is_number(value):
        return int(value)
    raise ConversionError(value, int, f"Not a number: {value!r}")


def to_string(value: Any) -> str | None:
    """Return ``value`` if it is a ``str``; no other type is accepted."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    raise ConversionError(value, str, f"Not a string: {value!r}")


def to_boolean(value: Any) -> bool | None:
    """Coerce a scalar to ``bool``; numbers map to ``value != 0``."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0
    raise ConversionError(value, bool, f"Not a boolean: {value!r}")


def to_datetime(value: Any) -> datetime | None:
    """Coerce a scalar to ``datetime``; dates are combined with midnight."""
    if value is None:
        return None
    if isinstance(value, date):
        return as_datetime(value)
    raise ConversionError(value, datetime, f"Not a datetime: {value!r}")
