"""
bulwark: runtime attribute discipline for Python classes.

Classes deriving from DefendedBase and built with new() get a fixed set of
attributes after construction. Reading or writing outside that set, changing
an attribute's kind of value, or touching an object after release() is
reported to the warning callback; deleting attributes raises.

    from bulwark import DefendedBase, new, release

    class Pane(DefendedBase):
        def __init__(self):
            self.width = 0

    pane = new(Pane)
    pane.width = "wide"     # reported, discarded
"""

from typing import Any, List, Union

from .config import Mode, Settings
from .engine import (
    ABSENT,
    DefendedBase,
    EnforcementEngine,
    Violation,
    ViolationKind,
    default_engine,
    get_engine,
    set_default_engine,
    use_engine,
)
from .engine.diagnostics import WarningCallback
from .errors import BulwarkError, InvalidModeError, ProtectedMutationError


def set_mode(mode: Union[Mode, str]) -> None:
    get_engine().set_mode(mode)


def set_warning_callback(callback: WarningCallback) -> None:
    get_engine().set_warning_callback(callback)


def new(cls: type, *args: Any, **kwargs: Any) -> Any:
    """Construct ``cls`` through the active engine (see EnforcementEngine.new)."""
    return get_engine().new(cls, *args, **kwargs)


def release(obj: Any) -> None:
    """Revoke access to ``obj``; later reads and writes are reported."""
    get_engine().release(obj)


def was_released(obj: Any) -> bool:
    return get_engine().was_released(obj)


def reconcile() -> List[str]:
    """Report objects of DefendedBase classes instantiated without new()."""
    return get_engine().reconcile()


__all__ = [
    "ABSENT",
    "BulwarkError",
    "DefendedBase",
    "EnforcementEngine",
    "InvalidModeError",
    "Mode",
    "ProtectedMutationError",
    "Settings",
    "Violation",
    "ViolationKind",
    "default_engine",
    "get_engine",
    "new",
    "reconcile",
    "release",
    "set_default_engine",
    "set_mode",
    "set_warning_callback",
    "use_engine",
    "was_released",
]
