"""Hard violations: errors raised instead of reported."""


class BulwarkError(Exception):
    """Base class for errors raised by bulwark."""


class ProtectedMutationError(BulwarkError, AttributeError):
    """Raised on an attempt to delete or structurally redefine an attribute of a defended object."""


class InvalidModeError(BulwarkError, ValueError):
    """Raised when an enforcement mode is not one of the known modes."""
