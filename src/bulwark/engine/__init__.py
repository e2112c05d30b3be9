"""
Interception and validation engine.

This package holds the enforcement core: the per-operation decision logic,
the construction protocol, shape checks and the release ledger.
"""

from .base import DefendedBase, seal
from .context import default_engine, get_engine, set_default_engine, use_engine
from .core import EnforcementEngine
from .diagnostics import Violation, ViolationKind, log_violation
from .proxy import DefendedProxy, is_proxy
from .types import ABSENT, ValueKind, classify, describe, is_valid_type_change

__all__ = [
    "DefendedBase",
    "seal",
    "default_engine",
    "get_engine",
    "set_default_engine",
    "use_engine",
    "EnforcementEngine",
    "Violation",
    "ViolationKind",
    "log_violation",
    "DefendedProxy",
    "is_proxy",
    "ABSENT",
    "ValueKind",
    "classify",
    "describe",
    "is_valid_type_change",
]
