"""Shape consistency: every instance of a class should carry the same attribute names."""

from typing import Any, Dict, FrozenSet, List, Optional

from ..logging import get_logger
from .base import DefendedBase

logger = get_logger(__name__)


def _declared_slots(cls: type) -> List[str]:
    names = []
    for klass in cls.__mro__:
        if klass is DefendedBase or klass is object:
            continue
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__"):
                continue
            # private slot names are stored mangled
            if name.startswith("__") and not name.endswith("__"):
                name = f"_{klass.__name__.lstrip('_')}{name}"
            names.append(name)
    return names


def property_names(obj: Any) -> FrozenSet[str]:
    """
    Attribute names held by the instance itself.

    This is the instance namespace plus every filled slot; class attributes
    and methods are not part of an object's shape.
    """
    names = set()

    try:
        namespace = object.__getattribute__(obj, "__dict__")
    except AttributeError:
        namespace = None
    if namespace is not None:
        names.update(key for key in namespace if isinstance(key, str))

    for name in _declared_slots(type(obj)):
        try:
            object.__getattribute__(obj, name)
        except AttributeError:
            continue
        names.add(name)

    return frozenset(names)


class ShapeRegistry:
    """Per-class baseline of attribute names, taken from the first instance."""

    def __init__(self) -> None:
        self._shapes: Dict[type, FrozenSet[str]] = {}

    def baseline(self, cls: type) -> Optional[FrozenSet[str]]:
        return self._shapes.get(cls)

    def verify(self, cls: type, obj: Any) -> List[str]:
        """
        Compare an instance's attribute names against the class baseline.

        Args:
            cls: Class the instance was constructed from
            obj: Raw (unwrapped) instance

        Returns:
            Inconsistent names: baseline names missing from the instance,
            then instance names missing from the baseline. Empty for the
            first instance of a class, which becomes the baseline.
        """
        names = property_names(obj)
        existing = self._shapes.get(cls)

        if existing is None:
            self._shapes[cls] = names
            logger.debug(f"Recorded shape of {cls.__name__}: {sorted(names)}")
            return []

        return sorted(existing - names) + sorted(names - existing)
