"""Which engine a construction reports to."""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from .core import EnforcementEngine

_active_engine: ContextVar[Optional["EnforcementEngine"]] = ContextVar("bulwark_engine", default=None)
_default_engine: Optional["EnforcementEngine"] = None


def default_engine() -> "EnforcementEngine":
    """The process-wide engine, built from the environment on first use."""
    global _default_engine
    if _default_engine is None:
        from ..config import Settings
        from .core import EnforcementEngine

        _default_engine = EnforcementEngine(Settings.from_env())
    return _default_engine


def set_default_engine(engine: "EnforcementEngine") -> None:
    global _default_engine
    _default_engine = engine


def get_engine() -> "EnforcementEngine":
    """The engine activated by use_engine() or new(), else the default one."""
    engine = _active_engine.get()
    if engine is not None:
        return engine
    return default_engine()


@contextmanager
def use_engine(engine: "EnforcementEngine") -> Iterator["EnforcementEngine"]:
    token = _active_engine.set(engine)
    try:
        yield engine
    finally:
        _active_engine.reset(token)
