import os
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Union

from .errors import InvalidModeError


class Mode(Enum):
    """Enforcement level applied to subsequent constructions."""
    DEFEND = "defend"
    SEAL = "seal"
    OFF = "off"

    @classmethod
    def parse(cls, value: Union["Mode", str]) -> "Mode":
        """Accept a Mode member or its exact value string."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for mode in cls:
                if mode.value == value:
                    return mode
        raise InvalidModeError(
            f"invalid mode {value!r}, expected one of: {', '.join(m.value for m in cls)}"
        )


MODE_DESCRIPTIONS = {
    Mode.DEFEND: "wrap DefendedBase objects and report every missing, new, retyped or released access",
    Mode.SEAL: "seal DefendedBase objects so attributes cannot be added or removed (low overhead)",
    Mode.OFF: "construct plain objects with no checks",
}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass
class Settings:
    mode: Mode = Mode.DEFEND
    extra_reserved_keys: FrozenSet[str] = field(default_factory=frozenset)
    schedule_reconcile: bool = True
    stack_limit: Optional[int] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from BULWARK_* environment variables."""
        mode = Mode.parse(os.getenv("BULWARK_MODE", Mode.DEFEND.value))

        stack_limit = None
        raw_limit = os.getenv("BULWARK_STACK_LIMIT")
        if raw_limit:
            try:
                stack_limit = int(raw_limit)
            except ValueError:
                stack_limit = None

        return cls(
            mode=mode,
            schedule_reconcile=_env_flag("BULWARK_SCHEDULE_RECONCILE", True),
            stack_limit=stack_limit,
        )
