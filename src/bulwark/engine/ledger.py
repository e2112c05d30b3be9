"""Release ledger: remembers which defended objects were released, and where."""

import traceback
from typing import Dict, Optional

from ..logging import get_logger

logger = get_logger(__name__)


class ReleaseLedger:
    """
    Map of identity token -> call site of the release.

    Tokens are plain integers assigned to each proxy at construction, so the
    ledger never holds a reference to a released object. Entries are never
    removed: once released, an identity stays released.
    """

    def __init__(self) -> None:
        self._released: Dict[int, traceback.StackSummary] = {}

    def record(self, token: int, site: traceback.StackSummary) -> bool:
        """
        Record a release. Returns False if the token was already released,
        in which case the original call site is kept.
        """
        if token in self._released:
            logger.debug(f"Identity {token} released again, keeping first release site")
            return False

        self._released[token] = site
        logger.debug(f"Identity {token} released")
        return True

    def release_site(self, token: int) -> Optional[traceback.StackSummary]:
        return self._released.get(token)

    def __contains__(self, token: int) -> bool:
        return token in self._released

    def __len__(self) -> int:
        return len(self._released)
