"""
Proxy objects standing in for defended instances.

A DefendedProxy owns a raw instance and routes every attribute get, set and
delete through its engine's InterceptionHandler. Attribute lookup follows
Python's own rules, but functions and properties found on the class are bound
to the proxy, so ``self`` inside a method is always the proxy and every
attribute access a method makes is checked as well.

Special methods are looked up on the type, bypassing __getattribute__, so a
proxy type is generated per defended class that forwards whichever special
methods the class defines.
"""

import types
import weakref
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Optional

from .types import ABSENT

_NOT_FOUND = object()

# Descriptors implemented in C check the type of the instance they are bound
# to, so they are bound to the raw instance rather than the proxy.
_C_DESCRIPTORS = (
    types.GetSetDescriptorType,
    types.MemberDescriptorType,
    types.WrapperDescriptorType,
    types.MethodDescriptorType,
    types.ClassMethodDescriptorType,
    types.MethodWrapperType,
)

# Always forwarded: object's defaults are meaningful for the wrapped instance.
_ALWAYS_FORWARDED = ("__repr__", "__dir__")

# Forwarded when the wrapped class defines them.
_FORWARDED_METHODS = (
    "__str__", "__bytes__", "__format__",
    "__lt__", "__le__", "__eq__", "__ne__", "__gt__", "__ge__", "__hash__",
    "__bool__", "__len__", "__length_hint__", "__iter__", "__next__", "__reversed__",
    "__contains__", "__getitem__", "__setitem__", "__delitem__",
    "__call__", "__enter__", "__exit__",
    "__await__", "__aiter__", "__anext__", "__aenter__", "__aexit__",
    "__index__", "__int__", "__float__", "__complex__",
    "__round__", "__trunc__", "__floor__", "__ceil__",
    "__neg__", "__pos__", "__abs__", "__invert__",
) + tuple(
    f"__{prefix}{op}__"
    for op in (
        "add", "sub", "mul", "matmul", "truediv", "floordiv", "mod", "divmod",
        "pow", "lshift", "rshift", "and", "xor", "or",
    )
    for prefix in ("", "r", "i")
    if not (prefix == "i" and op == "divmod")
)


def find_class_attribute(cls: type, name: str) -> Any:
    """Look ``name`` up along the MRO without invoking descriptors."""
    for klass in cls.__mro__:
        if name in klass.__dict__:
            return klass.__dict__[name]
    return _NOT_FOUND


def is_data_descriptor(attr: Any) -> bool:
    kind = type(attr)
    return hasattr(kind, "__set__") or hasattr(kind, "__delete__")


def is_python_data_descriptor(attr: Any) -> bool:
    """Data descriptors such as property, whose setter should see the proxy."""
    return is_data_descriptor(attr) and not isinstance(attr, _C_DESCRIPTORS)


def instance_namespace(target: Any) -> Optional[Dict[str, Any]]:
    try:
        return object.__getattribute__(target, "__dict__")
    except AttributeError:
        return None


def _bind(attr: Any, proxy: Any, target: Any, owner: type) -> Any:
    getter = getattr(type(attr), "__get__", None)
    if getter is None:
        return attr
    if isinstance(attr, _C_DESCRIPTORS):
        return getter(attr, target, owner)
    return getter(attr, proxy, owner)


def resolve(proxy: Any, target: Any, name: str) -> Any:
    """
    Resolve an attribute of ``target`` as Python would, binding to ``proxy``.

    Raises:
        AttributeError: If the attribute does not exist
    """
    cls = type(target)
    attr = find_class_attribute(cls, name)

    if attr is not _NOT_FOUND and is_data_descriptor(attr):
        return _bind(attr, proxy, target, cls)

    namespace = instance_namespace(target)
    if namespace is not None and name in namespace:
        return namespace[name]

    if attr is not _NOT_FOUND:
        return _bind(attr, proxy, target, cls)

    hook = find_class_attribute(cls, "__getattr__")
    if hook is not _NOT_FOUND:
        return _bind(hook, proxy, target, cls)(name)

    raise AttributeError(f"'{cls.__name__}' object has no attribute '{name}'")


def has_attribute(target: Any, name: str) -> bool:
    """True if ``name`` is on the instance or anywhere on its class."""
    namespace = instance_namespace(target)
    if namespace is not None and name in namespace:
        return True
    return find_class_attribute(type(target), name) is not _NOT_FOUND


def current_value(target: Any, name: str) -> Any:
    """Value currently held under ``name``, or ABSENT (e.g. for an unset slot)."""
    namespace = instance_namespace(target)
    if namespace is not None and name in namespace:
        return namespace[name]

    cls = type(target)
    attr = find_class_attribute(cls, name)
    if attr is _NOT_FOUND:
        return ABSENT

    try:
        return _bind(attr, target, target, cls)
    except AttributeError:
        return ABSENT


class DefendedProxy:
    """Base of the generated per-class proxy types."""

    __slots__ = ("_bulwark_target", "_bulwark_engine", "_bulwark_token", "__weakref__")

    def __init__(self, target: Any, engine: Any, token: int) -> None:
        object.__setattr__(self, "_bulwark_target", target)
        object.__setattr__(self, "_bulwark_engine", engine)
        object.__setattr__(self, "_bulwark_token", token)

    def __getattribute__(self, name: str) -> Any:
        return object.__getattribute__(self, "_bulwark_engine").handler.read(self, name)

    def __setattr__(self, name: str, value: Any) -> None:
        object.__getattribute__(self, "_bulwark_engine").handler.write(self, name, value)

    def __delattr__(self, name: str) -> None:
        object.__getattribute__(self, "_bulwark_engine").handler.delete(self, name)


def is_proxy(obj: Any) -> bool:
    # type() rather than isinstance(): proxies report their wrapped __class__
    return issubclass(type(obj), DefendedProxy)


def unwrap(proxy: DefendedProxy) -> Any:
    return object.__getattribute__(proxy, "_bulwark_target")


def engine_of(proxy: DefendedProxy) -> Any:
    return object.__getattribute__(proxy, "_bulwark_engine")


def identity_token(proxy: DefendedProxy) -> int:
    return object.__getattribute__(proxy, "_bulwark_token")


def _defines(cls: type, name: str) -> bool:
    attr = find_class_attribute(cls, name)
    return attr is not _NOT_FOUND and attr is not object.__dict__.get(name, _NOT_FOUND)


def _forwarder(name: str, checked: bool):
    # Special-method lookups skip __getattribute__, so a class's own special
    # methods report released access here
    def forward(self, *args, **kwargs):
        if checked:
            engine_of(self).handler.report_released_read(self, name)
        return getattr(self, name)(*args, **kwargs)

    forward.__name__ = name
    return forward


_proxy_types: "weakref.WeakKeyDictionary[type, type]" = weakref.WeakKeyDictionary()


def proxy_type_for(cls: type) -> type:
    """Return (building once) the proxy type used for instances of ``cls``."""
    proxy_type = _proxy_types.get(cls)
    if proxy_type is not None:
        return proxy_type

    namespace: Dict[str, Any] = {
        "__slots__": (),
        "__module__": cls.__module__,
        "__qualname__": f"Defended[{cls.__qualname__}]",
    }
    for name in _ALWAYS_FORWARDED:
        namespace[name] = _forwarder(name, checked=_defines(cls, name))

    for name in _FORWARDED_METHODS:
        if not _defines(cls, name):
            continue
        # e.g. __hash__ = None on a class defining only __eq__
        attr = find_class_attribute(cls, name)
        namespace[name] = None if attr is None else _forwarder(name, checked=True)

    proxy_type = type(f"Defended[{cls.__name__}]", (DefendedProxy,), namespace)
    _proxy_types[cls] = proxy_type
    return proxy_type


class GuardedNamespace(MutableMapping):
    """
    Read-only view of a defended instance's __dict__.

    Item assignment and deletion go to the handler, which rejects them: the
    namespace would otherwise be a way around every write check.
    """

    def __init__(self, proxy: DefendedProxy, namespace: Dict[str, Any]) -> None:
        self._proxy = proxy
        self._namespace = namespace

    def __getitem__(self, key: str) -> Any:
        return self._namespace[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._namespace)

    def __len__(self) -> int:
        return len(self._namespace)

    def __setitem__(self, key: str, value: Any) -> None:
        engine_of(self._proxy).handler.define(self._proxy, key)

    def __delitem__(self, key: str) -> None:
        engine_of(self._proxy).handler.delete(self._proxy, key)

    def __repr__(self) -> str:
        return f"GuardedNamespace({self._namespace!r})"
