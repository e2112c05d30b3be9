"""
Walkthrough of every kind of violation, run by ``bulwark demo``.

Each step narrates what it is about to do through ``echo``; what gets
reported depends on the engine's mode and sink.
"""

from typing import Any, Callable, List

from .engine import ABSENT, DefendedBase, EnforcementEngine, use_engine
from .errors import ProtectedMutationError
from .logging import get_logger

logger = get_logger(__name__)


class Greeting(DefendedBase):
    def __init__(self):
        self._text = "foo"

    def set_text(self, text):
        self._text = text

    def get_text(self):
        return self._text


class InconsistentProperties(DefendedBase):
    def __init__(self, flag):
        self._common_property = 1

        # Changes the shape of the object depending on 'flag'
        if flag:
            self._with_flag = 2
        else:
            self._without_flag = 3


class LeakingSelf(DefendedBase):
    def __init__(self, registry: List[Any]):
        registry.append(self)


def run_demo(engine: EnforcementEngine, echo: Callable[[str], None] = print) -> None:
    greeting = engine.new(Greeting)

    greeting.set_text("bar")
    echo(f"get_text(): {greeting.get_text()}")
    echo("-- should be no violations before here --")

    echo(f"Missing property: {getattr(greeting, '_invalid_property', ABSENT)!r}")

    echo("Setting greeting._new_property...")
    try:
        greeting._new_property = 1
    except AttributeError as exc:
        echo(f"Error setting new property: {exc}")

    echo("Calling set_text() with a number...")
    greeting.set_text(123)

    scratch = engine.new(Greeting)

    echo("Trying to delete a property...")
    try:
        del scratch._text
    except (ProtectedMutationError, AttributeError) as exc:
        echo(f"Error deleting property: {exc}")

    echo("Trying to define a property through __dict__...")
    try:
        scratch.__dict__["baz"] = 0
    except (ProtectedMutationError, TypeError) as exc:
        echo(f"Error defining property: {exc}")

    echo("Releasing greeting...")
    engine.release(greeting)
    echo(f"get_text() after release(): {greeting.get_text()}")

    echo("Creating both kinds of InconsistentProperties...")
    engine.new(InconsistentProperties, True)
    engine.new(InconsistentProperties, False)

    registry: List[Any] = []
    leaking = engine.new(LeakingSelf, registry)
    echo(f"Is the 'leaking self' problem solved: {any(item is leaking for item in registry)}")

    echo("Creating a defended class without new()...")
    with use_engine(engine):
        Greeting()
    affected = engine.reconcile()
    logger.debug(f"Reconciled {len(affected)} class(es) constructed without new()")
