class OcrifyError(Exception):
    """Base exception for all naming and tracking errors."""


class ValidationFailure(OcrifyError):
    """Raised when a request is rejected before any state is mutated."""


class QueueEntryNotFoundError(ValidationFailure):
    """Raised when a queue position was never allocated."""


class FileRecordNotFoundError(ValidationFailure):
    """Raised when a file id is not known."""


class IllegalTransitionError(ValidationFailure):
    """Raised when a file record cannot move to the requested state."""


class CounterInvariantError(ValidationFailure):
    """Raised when treated + not treated would exceed files uploaded."""


class PersistenceFailure(OcrifyError):
    """Raised when the storage collaborator fails."""
