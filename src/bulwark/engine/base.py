"""
DefendedBase, the opt-in marker for enforced classes.

In defend mode, instantiating a DefendedBase subclass returns a proxy: the
metaclass creates the raw instance, wraps it, and runs __init__ with the
proxy as ``self``. Anything the constructor hands ``self`` to therefore holds
the proxy, never the raw object.
"""

from typing import Any

from ..config import Mode
from .context import get_engine
from .proxy import is_proxy


class DefendedMeta(type):
    def __call__(cls, *args, **kwargs):
        engine = get_engine()
        if engine.mode is not Mode.DEFEND:
            return super().__call__(*args, **kwargs)
        return engine.construct(cls, args, kwargs)


def _is_sealed(obj: Any) -> bool:
    try:
        return object.__getattribute__(obj, "_bulwark_sealed")
    except AttributeError:
        return False


def _holds(obj: Any, name: str) -> bool:
    # Existing instance attributes and class-level data descriptors
    # (properties, slots) may still be assigned on a sealed object.
    try:
        if name in object.__getattribute__(obj, "__dict__"):
            return True
    except AttributeError:
        pass
    for klass in type(obj).__mro__:
        if name in klass.__dict__:
            kind = type(klass.__dict__[name])
            return hasattr(kind, "__set__")
    return False


class DefendedBase(metaclass=DefendedMeta):
    """Derive from this to have instances checked. Build instances with new()."""

    __slots__ = ("_bulwark_sealed",)

    def __setattr__(self, name: str, value: Any) -> None:
        if _is_sealed(self) and not _holds(self, name):
            raise AttributeError(f"Cannot add property '{name}' to sealed object '{type(self).__name__}'")
        super().__setattr__(name, value)

    def __delattr__(self, name: str) -> None:
        if _is_sealed(self):
            raise AttributeError(f"Cannot delete property '{name}' from sealed object '{type(self).__name__}'")
        super().__delattr__(name)


def seal(obj: Any) -> Any:
    """
    Seal a raw DefendedBase instance: attributes can no longer be added or
    deleted, though existing ones may still be reassigned. Other objects are
    returned unchanged.
    """
    if isinstance(obj, DefendedBase) and not is_proxy(obj):
        object.__setattr__(obj, "_bulwark_sealed", True)
    return obj
