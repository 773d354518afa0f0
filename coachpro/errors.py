"""Exception hierarchy shared by the CoachPro services and web layer."""


class CoachProError(Exception):
    """Base class for domain errors reported back to the client."""

    status_code = 400


class ValidationError(CoachProError):
    """Raised when submitted record data is incomplete or invalid."""

    status_code = 400


class PermissionDeniedError(CoachProError):
    """Raised when a user acts on a squad or screen outside their role."""

    status_code = 403


class NotFoundError(CoachProError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class ConflictError(CoachProError):
    """Raised when a record clashes with an existing one."""

    status_code = 409


class MatchStateError(CoachProError):
    """Raised for live-match actions that are illegal in the current period."""

    status_code = 409


class StorageError(CoachProError):
    """Raised when the backend store cannot be read or written."""

    status_code = 503
