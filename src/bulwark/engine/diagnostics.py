"""
Soft violations and the default diagnostics sink.

Soft violations never interrupt the caller. They are packaged as a Violation
and handed to the engine's sink, which by default logs them at WARNING level
together with the call site that triggered them.
"""

import os
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from ..logging import get_logger

logger = get_logger(__name__)

_ENGINE_DIR = os.path.dirname(os.path.abspath(__file__))
_API_MODULE = os.path.join(os.path.dirname(_ENGINE_DIR), "__init__.py")


class ViolationKind(Enum):
    MISSING_READ = "missing-read"
    MISSING_WRITE = "missing-write"
    READ_ONLY_WRITE = "read-only-write"
    TYPE_CHANGE = "type-change"
    INCONSISTENT_SHAPE = "inconsistent-shape"
    RELEASED_READ = "released-read"
    RELEASED_WRITE = "released-write"
    MISSING_NEW = "missing-new"


@dataclass(frozen=True)
class Violation:
    """A reported soft violation."""
    kind: ViolationKind
    message: str
    subject: str                    # Class name of the offending object
    keys: Tuple[str, ...] = ()      # Attribute names involved, if any
    released_at: Optional[traceback.StackSummary] = None
    accessed_at: Optional[traceback.StackSummary] = None

    def format(self) -> str:
        """Render the message with the captured call sites."""
        parts = [self.message]
        if self.released_at is not None:
            parts.append("Object was originally released at:\n" + format_call_site(self.released_at))
        if self.accessed_at is not None:
            parts.append("Call stack at access:\n" + format_call_site(self.accessed_at))
        return "\n".join(parts)


WarningCallback = Callable[[Violation], None]


def _is_internal(filename: str) -> bool:
    path = os.path.abspath(filename)
    return path.startswith(_ENGINE_DIR + os.sep) or path == _API_MODULE


def capture_call_site(limit: Optional[int] = None) -> traceback.StackSummary:
    """
    Capture the current call stack without bulwark's own frames.

    Args:
        limit: Keep only the innermost ``limit`` frames

    Returns:
        StackSummary ordered outermost first, like traceback.extract_stack()
    """
    frames = [frame for frame in traceback.extract_stack() if not _is_internal(frame.filename)]
    if limit is not None and limit > 0:
        frames = frames[-limit:]
    return traceback.StackSummary.from_list(frames)


def format_call_site(site: traceback.StackSummary) -> str:
    return "".join(site.format()).rstrip()


def log_violation(violation: Violation) -> None:
    """Default sink: log the violation and where it happened."""
    logger.warning(f"[bulwark] {violation.format()}")
