"""
Interception handler: the decision logic behind every attribute operation on
a defended proxy.

Reads and writes never fail; a bad access is reported and degrades (a
missing read returns ABSENT, a bad write is discarded). Deletion and
structural redefinition are attempts to get around the checks themselves and
always raise.
"""

import reprlib
import traceback
from typing import Any, Callable, FrozenSet, Optional

from ..errors import ProtectedMutationError
from .construction import ConstructionSessions
from .diagnostics import ViolationKind
from .ledger import ReleaseLedger
from .proxy import (
    GuardedNamespace,
    current_value,
    find_class_attribute,
    has_attribute,
    identity_token,
    instance_namespace,
    is_python_data_descriptor,
    resolve,
    unwrap,
)
from .types import ABSENT, classify, describe, is_valid_type_change

# Non-dunder names probed by common tooling, which must fail silently when
# missing. Dunder names are always treated this way.
RESERVED_KEYS = frozenset({
    "_ipython_canary_method_should_not_exist_",
    "_ipython_display_",
    "_repr_html_",
    "_repr_markdown_",
    "_repr_json_",
    "_repr_latex_",
    "_repr_pretty_",
    "_repr_mimebundle_",
    "_repr_png_",
    "_repr_jpeg_",
    "_repr_svg_",
})

# Assigning these would swap the object's type or namespace wholesale.
STRUCTURAL_KEYS = frozenset({"__class__", "__dict__"})

Reporter = Callable[..., None]


class InterceptionHandler:
    def __init__(
        self,
        sessions: ConstructionSessions,
        ledger: ReleaseLedger,
        report: Reporter,
        extra_reserved_keys: FrozenSet[str] = frozenset(),
    ) -> None:
        self._sessions = sessions
        self._ledger = ledger
        self._report = report
        self._reserved_keys = RESERVED_KEYS | frozenset(extra_reserved_keys)

    def is_reserved(self, key: str) -> bool:
        """Protocol-level names: a missing one raises AttributeError unreported."""
        return (key.startswith("__") and key.endswith("__")) or key in self._reserved_keys

    def _release_site(self, proxy: Any) -> Optional[traceback.StackSummary]:
        return self._ledger.release_site(identity_token(proxy))

    def read(self, proxy: Any, key: str) -> Any:
        target = unwrap(proxy)

        if key == "__class__":
            return type(target)

        reserved = self.is_reserved(key)

        try:
            if key == "__dict__":
                namespace = instance_namespace(target)
                if namespace is None:
                    raise AttributeError(f"'{type(target).__name__}' object has no attribute '__dict__'")
                value = GuardedNamespace(proxy, namespace)
            else:
                value = resolve(proxy, target, key)
        except AttributeError:
            if reserved:
                raise
            self._report(
                ViolationKind.MISSING_READ,
                f"Accessed missing property '{key}' from defended object '{describe(target)}', returning ABSENT",
                describe(target),
                keys=(key,),
            )
            value = ABSENT

        if not reserved:
            self.report_released_read(proxy, key)

        return value

    def report_released_read(self, proxy: Any, key: str) -> None:
        """Report an access to ``key`` if the proxy's object was released."""
        site = self._release_site(proxy)
        if site is not None:
            name = describe(unwrap(proxy))
            self._report(
                ViolationKind.RELEASED_READ,
                f"Accessed property '{key}' on a released object '{name}'",
                name,
                keys=(key,),
                released_at=site,
            )

    def write(self, proxy: Any, key: str, value: Any) -> None:
        target = unwrap(proxy)

        if key in STRUCTURAL_KEYS:
            self.define(proxy, key)

        name = describe(target)

        site = self._release_site(proxy)
        if site is not None:
            self._report(
                ViolationKind.RELEASED_WRITE,
                f"Set property '{key}' on a released object '{name}'",
                name,
                keys=(key,),
                released_at=site,
            )
            return

        attr = find_class_attribute(type(target), key)
        if isinstance(attr, property) and attr.fset is None:
            self._report(
                ViolationKind.READ_ONLY_WRITE,
                f"Set read-only property '{key}' to {reprlib.repr(value)} on defended object '{name}'",
                name,
                keys=(key,),
            )
            return

        # Property setters run against the proxy, so their own writes are checked
        if is_python_data_descriptor(attr):
            type(attr).__set__(attr, proxy, value)
            return

        constructing = self._sessions.is_constructing(target)
        # An unset slot is a name the instance does not have yet
        present = has_attribute(target, key) and current_value(target, key) is not ABSENT

        if not present and not constructing:
            self._report(
                ViolationKind.MISSING_WRITE,
                f"Set non-existent property '{key}' to {reprlib.repr(value)} on defended object '{name}'",
                name,
                keys=(key,),
            )
            return

        # ABSENT is never stored, not even by a constructor
        if value is ABSENT:
            self._report_type_change(target, key, value, name)
            return

        if present and not constructing and not is_valid_type_change(current_value(target, key), value):
            self._report_type_change(target, key, value, name)
            return

        object.__setattr__(target, key, value)

    def _report_type_change(self, target: Any, key: str, value: Any, name: str) -> None:
        # Example message: "Set 'number' property '_width' to type 'object' on defended object 'Pane'"
        old_kind = classify(current_value(target, key)).value
        self._report(
            ViolationKind.TYPE_CHANGE,
            f"Set '{old_kind}' property '{key}' to type '{classify(value).value}' on defended object '{name}'",
            name,
            keys=(key,),
        )

    def delete(self, proxy: Any, key: str) -> None:
        raise ProtectedMutationError(
            f"Cannot delete property '{key}' from defended object '{describe(unwrap(proxy))}'"
        )

    def define(self, proxy: Any, key: str) -> None:
        raise ProtectedMutationError(
            f"Cannot define property '{key}' on defended object '{describe(unwrap(proxy))}'"
        )
