"""
Construction sessions.

While a constructor runs it is legitimately adding attributes, so the
handler must not report "set non-existent property" (or type changes from
nothing) for it. The metaclass opens a session mapping the raw object to its
proxy and back; new() closes it once the constructor has returned. A session
still open at reconciliation time means the class was instantiated without
new().
"""

from typing import Any, Dict, List, Tuple

from ..logging import get_logger
from .types import describe

logger = get_logger(__name__)


class ConstructionSessions:
    """Bidirectional raw <-> proxy map of objects under construction, keyed by identity."""

    def __init__(self) -> None:
        self._raw_to_proxy: Dict[int, Tuple[Any, Any]] = {}
        self._proxy_to_raw: Dict[int, Tuple[Any, Any]] = {}

    def open(self, raw: Any, proxy: Any) -> None:
        self._raw_to_proxy[id(raw)] = (raw, proxy)
        self._proxy_to_raw[id(proxy)] = (proxy, raw)

    def close(self, proxy: Any) -> bool:
        """
        Close the session of a proxy.

        Returns:
            False if the proxy had no open session (already finalized)
        """
        entry = self._proxy_to_raw.pop(id(proxy), None)
        if entry is None:
            return False

        _, raw = entry
        self._raw_to_proxy.pop(id(raw), None)
        return True

    def is_constructing(self, raw: Any) -> bool:
        entry = self._raw_to_proxy.get(id(raw))
        return entry is not None and entry[0] is raw

    def pending_class_names(self) -> List[str]:
        """Unique class names of objects still under construction, in first-seen order."""
        names: List[str] = []
        for raw, _ in self._raw_to_proxy.values():
            name = describe(raw)
            if name not in names:
                names.append(name)
        return names

    def clear(self) -> None:
        if self._raw_to_proxy:
            logger.debug(f"Discarding {len(self._raw_to_proxy)} open construction session(s)")
        self._raw_to_proxy.clear()
        self._proxy_to_raw.clear()

    def __len__(self) -> int:
        return len(self._raw_to_proxy)

    def __bool__(self) -> bool:
        return bool(self._raw_to_proxy) or bool(self._proxy_to_raw)
