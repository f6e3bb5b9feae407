"""Custom exception hierarchy."""

class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails.

    Carries the individual field errors so the HTTP layer can report
    every problem in one response.
    """
    def __init__(self, message: str, errors: list[str] | None = None, original_error: Exception = None):
        super().__init__(message, original_error)
        self.errors = errors or [message]


class NotFoundError(AppError):
    """Raised when a requested record does not exist."""
    pass


class ConsultationNotFoundError(NotFoundError):
    """Raised when a consultation is not found."""
    pass


class DraftNotFoundError(NotFoundError):
    """Raised when no draft exists for a consultation and user."""
    pass


class VersionNotFoundError(NotFoundError):
    """Raised when a consultation version is not found."""
    pass


class ForbiddenError(AppError):
    """Raised when a user accesses a consultation they do not own."""
    pass


class InvalidStatusTransitionError(AppError):
    """Raised when a consultation status change is not allowed."""

    def __init__(self, from_status: str, to_status: str):
        super().__init__(f"cannot transition from {from_status} to {to_status}")
        self.from_status = from_status
        self.to_status = to_status


class ConsultationStateError(AppError):
    """Raised when an operation conflicts with the consultation's current state."""
    pass
