"""
The enforcement engine.

An EnforcementEngine owns all enforcement state: the mode, the diagnostics
sink, open construction sessions, class shape baselines and the release
ledger. The module-level API in ``bulwark`` talks to a process-wide default
engine; tests and embedding applications can build isolated engines.
"""

import asyncio
import itertools
import traceback
from typing import Any, FrozenSet, Iterable, List, Optional, Union

from ..config import Mode, Settings
from ..logging import get_logger
from .base import seal
from .construction import ConstructionSessions
from .context import use_engine
from .diagnostics import Violation, ViolationKind, WarningCallback, capture_call_site, log_violation
from .handler import InterceptionHandler
from .ledger import ReleaseLedger
from .proxy import engine_of, identity_token, is_proxy, proxy_type_for, unwrap
from .shape import ShapeRegistry
from .types import describe

logger = get_logger(__name__)


class EnforcementEngine:
    """
    Runtime enforcement of attribute discipline for DefendedBase classes.

    Construction Protocol:
    1. new() activates this engine and instantiates the class
    2. For DefendedBase classes in defend mode the metaclass calls construct(),
       which wraps the raw instance and opens a construction session
    3. new() closes the session, checks the shape against the class baseline
       and applies the mode (proxy, sealed object or plain object)
    4. A session left open means new() was bypassed; reconcile() reports it
    """

    def __init__(self,
                 settings: Optional[Settings] = None,
                 sink: Optional[WarningCallback] = None):
        self.settings = settings or Settings()
        self._mode = self.settings.mode
        self._sink: WarningCallback = log_violation
        if sink is not None:
            self.set_warning_callback(sink)

        self._sessions = ConstructionSessions()
        self._shapes = ShapeRegistry()
        self._ledger = ReleaseLedger()
        self._tokens = itertools.count(1)
        self._reconcile_pending = False

        self.handler = InterceptionHandler(
            self._sessions,
            self._ledger,
            self.report,
            self.settings.extra_reserved_keys,
        )

    @property
    def mode(self) -> Mode:
        return self._mode

    def set_mode(self, mode: Union[Mode, str]) -> None:
        """Change the mode used by subsequent constructions."""
        self._mode = Mode.parse(mode)
        logger.debug(f"Enforcement mode set to {self._mode.value}")

    def set_warning_callback(self, callback: WarningCallback) -> None:
        """Replace the diagnostics sink. It receives each Violation."""
        if not callable(callback):
            raise TypeError(f"expected a callable, got {describe(callback)}")
        self._sink = callback

    def report(self,
               kind: ViolationKind,
               message: str,
               subject: str,
               keys: Iterable[str] = (),
               released_at: Optional[traceback.StackSummary] = None) -> None:
        violation = Violation(
            kind=kind,
            message=message,
            subject=subject,
            keys=tuple(keys),
            released_at=released_at,
            accessed_at=capture_call_site(self.settings.stack_limit),
        )
        self._sink(violation)

    def new(self, cls: type, *args: Any, **kwargs: Any) -> Any:
        """
        Construct an instance of ``cls`` under this engine's mode.

        Args:
            cls: Class to instantiate
            *args, **kwargs: Constructor arguments

        Returns:
            A proxy (defend mode, DefendedBase classes), a sealed instance
            (seal mode, DefendedBase classes) or a plain instance

        Raises:
            TypeError: If ``cls`` is not a class
        """
        if not isinstance(cls, type):
            raise TypeError(f"expected a class, got {describe(cls)}")

        with use_engine(self):
            if self._mode is Mode.OFF:
                return cls(*args, **kwargs)

            try:
                obj = cls(*args, **kwargs)
            except BaseException:
                # An exception escaping a constructor cancels every object under
                # construction, including ones of enclosing new() calls
                self._sessions.clear()
                raise

        return self._finalize(cls, obj)

    def construct(self, cls: type, args: tuple, kwargs: dict) -> Any:
        """Create, wrap and initialise a DefendedBase instance; called by the metaclass."""
        if cls.__new__ is object.__new__:
            raw = object.__new__(cls)
        else:
            raw = cls.__new__(cls, *args, **kwargs)

        proxy = proxy_type_for(cls)(raw, self, next(self._tokens))
        self._sessions.open(raw, proxy)
        self._schedule_reconcile()

        cls.__init__(proxy, *args, **kwargs)
        return proxy

    def _finalize(self, cls: type, obj: Any) -> Any:
        if is_proxy(obj):
            self._sessions.close(obj)

        if self._mode is Mode.DEFEND:
            self._verify_shape(cls, unwrap(obj) if is_proxy(obj) else obj)
            return obj

        return seal(obj)

    def _verify_shape(self, cls: type, raw: Any) -> None:
        inconsistent = self._shapes.verify(cls, raw)
        if inconsistent:
            self.report(
                ViolationKind.INCONSISTENT_SHAPE,
                f"'{cls.__name__}' constructor creates inconsistent properties: {', '.join(inconsistent)}",
                cls.__name__,
                keys=inconsistent,
            )

    def _schedule_reconcile(self) -> None:
        if self._reconcile_pending or not self.settings.schedule_reconcile:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: the host calls reconcile() itself
            return
        loop.call_soon(self.reconcile)
        self._reconcile_pending = True

    def reconcile(self) -> List[str]:
        """
        Report DefendedBase objects constructed without new().

        Their construction sessions never closed, so checks stay disabled for
        them. The affected classes are reported once and the sessions dropped.

        Returns:
            Names of the affected classes
        """
        self._reconcile_pending = False
        if not self._sessions:
            return []

        names = self._sessions.pending_class_names()
        self.report(
            ViolationKind.MISSING_NEW,
            "An object derived from DefendedBase was not created with new(). "
            f"This will disable some checks. Possible affected class names: {', '.join(names)}",
            ", ".join(names),
        )
        self._sessions.clear()
        return names

    def release(self, obj: Any) -> None:
        """Revoke all further access to a defended object."""
        if not is_proxy(obj):
            return
        owner = engine_of(obj)
        owner._ledger.record(identity_token(obj), capture_call_site(owner.settings.stack_limit))

    def was_released(self, obj: Any) -> bool:
        if not is_proxy(obj):
            return False
        return identity_token(obj) in engine_of(obj)._ledger

    def class_shape(self, cls: type) -> Optional[FrozenSet[str]]:
        """Baseline attribute names recorded for ``cls``, if any instance was built."""
        return self._shapes.baseline(cls)

    @property
    def pending_constructions(self) -> int:
        return len(self._sessions)
