"""
TypedRecord: mapping-backed entity with per-field coercion and change tracking.

Concrete records declare FIELDS, a table of field name -> rule. A rule is a
FieldType, an Enum subclass (membership), or a Composite (mapping with numeric
sub-fields). Writes that fail their rule are dropped: set() returns False and
nothing changes.

Records are not thread-safe. Share one instance across threads only behind
external locking.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Union

from alpaca_core.exceptions import MalformedTimestamp
from alpaca_core.timestamps import normalize_timestamp

logger = logging.getLogger(__name__)

UUID_RE = re.compile(r"^[a-f0-9]{8}-([a-f0-9]{4}-){3}[a-f0-9]{12}$")
_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


class FieldType(Enum):
    """Primitive field rules."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL = "bool"
    UUID = "uuid"
    DATE = "date"


@dataclass(frozen=True)
class Composite:
    """Rule for a mapping value whose listed sub-fields must be numeric."""

    required: tuple[str, ...]


FieldRule = Union[FieldType, Composite, type]


class _Invalid:
    def __repr__(self) -> str:
        return "INVALID"


# Returned by coerce() when a value does not satisfy its rule.
INVALID: Any = _Invalid()


def is_numeric(value: Any) -> bool:
    """
    True for real numbers (including numpy scalars and Decimal) and
    numeric-looking strings. Booleans are not numbers.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, (numbers.Real, Decimal)):
        return True
    if isinstance(value, str):
        return _NUMERIC_RE.match(value) is not None
    return False


def _to_int(value: Any) -> Any:
    if isinstance(value, numbers.Integral):
        return int(value)
    try:
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                # fractional or exponent form
                value = Decimal(value.strip())
        return int(value)
    except (ArithmeticError, ValueError):
        return INVALID


def _to_float(value: Any) -> Any:
    try:
        out = float(value)
    except (OverflowError, ValueError):
        return INVALID
    return out if math.isfinite(out) else INVALID


def _to_bool(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (numbers.Real, Decimal)):
        if value == 0:
            return False
        if value == 1:
            return True
        return INVALID
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("0", "false"):
            return False
        if lowered in ("1", "true"):
            return True
    return INVALID


def coerce(rule: FieldRule, value: Any) -> Any:
    """Coerce value under rule. Returns INVALID when the value is rejected."""
    if value is None:
        return INVALID

    if isinstance(rule, FieldType):
        if rule is FieldType.INT:
            return _to_int(value) if is_numeric(value) else INVALID
        if rule is FieldType.FLOAT:
            return _to_float(value) if is_numeric(value) else INVALID
        if rule is FieldType.STRING:
            return value if isinstance(value, str) else INVALID
        if rule is FieldType.BOOL:
            return _to_bool(value)
        if rule is FieldType.UUID:
            if isinstance(value, str) and UUID_RE.fullmatch(value):
                return value
            return INVALID
        if rule is FieldType.DATE:
            if isinstance(value, datetime):
                return value
            if isinstance(value, str):
                try:
                    return normalize_timestamp(value)
                except MalformedTimestamp:
                    return INVALID
            return INVALID
        raise ValueError(f"Unhandled field type: {rule}")

    if isinstance(rule, Composite):
        if not isinstance(value, Mapping):
            return INVALID
        for key in rule.required:
            if key not in value or not is_numeric(value[key]):
                return INVALID
        out = dict(value)
        for key in rule.required:
            out[key] = _to_float(value[key])
            if out[key] is INVALID:
                return INVALID
        return out

    if isinstance(rule, type) and issubclass(rule, Enum):
        try:
            return rule(value)
        except (TypeError, ValueError):
            return INVALID

    raise TypeError(f"Unsupported field rule: {rule!r}")


def _detached(value: Any) -> Any:
    """Copy mapping values so callers cannot edit stored composites in place."""
    return dict(value) if isinstance(value, dict) else value


class TypedRecord:
    """
    Base for validated, change-tracked entities.

    data holds current values; changes maps each field touched since the last
    checkpoint to the value it had before the first touch.
    """

    FIELDS: ClassVar[dict[str, FieldRule]] = {}

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._changes: dict[str, Any] = {}
        if data:
            self.load(data)

    @classmethod
    def valid_fields(cls) -> dict[str, FieldRule]:
        """Field name -> rule table for this record type."""
        return dict(cls.FIELDS)

    def get(self, name: str, default: Any = None) -> Any:
        """Current value of a field, or default when unset."""
        return _detached(self._data.get(name, default))

    def set(self, name: str, value: Any) -> bool:
        """
        Assign a field. Returns False, leaving the record untouched, when the
        field is unknown or the value fails the field's rule.
        """
        rule = self.FIELDS.get(name)
        if rule is None:
            logger.debug("%s: dropped write to unknown field %s", type(self).__name__, name)
            return False
        coerced = coerce(rule, value)
        if coerced is INVALID:
            logger.debug("%s: dropped invalid value for %s: %r", type(self).__name__, name, value)
            return False

        if name not in self._data or self._data[name] != coerced:
            if name not in self._changes:
                self._changes[name] = self._data.get(name)
        self._data[name] = coerced
        return True

    def load(self, data: Mapping[str, Any], clear_changes: bool = True) -> int:
        """
        Bulk assign from a field-name mapping. Unknown or invalid entries are
        skipped. Returns the number of applied writes.
        """
        applied = sum(1 for name, value in data.items() if self.set(name, value))
        if clear_changes:
            self.clear_changes()
        return applied

    def to_dict(self) -> dict[str, Any]:
        """Copy of all current field values."""
        return {k: _detached(v) for k, v in self._data.items()}

    def changes(self) -> dict[str, Any]:
        """Field -> previous value for everything changed since the last checkpoint."""
        return {k: _detached(v) for k, v in self._changes.items()}

    @property
    def has_changes(self) -> bool:
        return bool(self._changes)

    def clear_changes(self) -> None:
        """Checkpoint: forget pending changes, keep current values."""
        self._changes = {}

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self._data.items())
        return f"{type(self).__name__}({fields})"
