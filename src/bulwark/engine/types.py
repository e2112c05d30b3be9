"""
Value classification for type-change checks.

Every value written to a defended object is classified into a coarse
ValueKind. A write may change an attribute's value freely, but not its kind,
with None acting as the placeholder for optional values.
"""

import functools
import inspect
import numbers
from enum import Enum
from typing import Any


class _Absent:
    """Marker for "no value", returned by reported missing-attribute reads."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self):
        return (_Absent, ())


ABSENT = _Absent()


class ValueKind(Enum):
    NULL = "null"
    ABSENT = "absent"
    BOOLEAN = "boolean"
    NUMBER = "number"
    TEXT = "text"
    ARRAY = "array"
    OBJECT = "object"
    FUNCTION = "function"
    SYMBOL = "symbol"


def classify(value: Any) -> ValueKind:
    """Return the structural kind of a value."""
    if value is None:
        return ValueKind.NULL
    if value is ABSENT:
        return ValueKind.ABSENT
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, numbers.Number):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Enum):
        return ValueKind.SYMBOL
    if inspect.isroutine(value) or isinstance(value, (type, functools.partial)):
        return ValueKind.FUNCTION
    return ValueKind.OBJECT


def is_valid_type_change(old: Any, new: Any) -> bool:
    """
    Check whether an attribute holding ``old`` may be reassigned to ``new``.

    Note the rule has holes: an int attribute can become a list by passing
    through None first. That is unlikely to happen by accident.
    """
    old_kind = classify(old)
    new_kind = classify(new)

    # None stands for a missing optional value of any kind
    if old_kind is ValueKind.NULL or new_kind is ValueKind.NULL:
        return True

    # Live attributes must hold a concrete value; None is used for "empty"
    if old_kind is ValueKind.ABSENT or new_kind is ValueKind.ABSENT:
        return False

    return old_kind is new_kind


def describe(value: Any) -> str:
    """Best-effort readable name for a value, used in violation messages."""
    kind = classify(value)

    if kind is ValueKind.NULL:
        return "None"
    if kind is ValueKind.ABSENT:
        return "ABSENT"
    if kind in (ValueKind.BOOLEAN, ValueKind.NUMBER, ValueKind.TEXT, ValueKind.ARRAY):
        return f"<{type(value).__name__}>"
    if kind is ValueKind.SYMBOL:
        return f"<{value!s}>"
    if kind is ValueKind.FUNCTION:
        name = getattr(value, "__name__", None)
        if name and name != "<lambda>":
            return name
        return "<anonymous function>"

    # __class__ rather than type(): a defended proxy reports its wrapped class
    cls = value.__class__
    if cls is not object:
        return cls.__name__
    return "<anonymous object>"
