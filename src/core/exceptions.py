"""Custom exception classes for the Lineas de Profundizacion API.

Every domain failure is raised as an ``ApiError`` subclass carrying the HTTP
status code that the terminal handler in ``app.py`` should answer with.
"""


class ApiError(Exception):
    """Base exception for all errors that map to an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int = None):
        """Initialize the exception.

        Args:
            message: Human-readable message returned to the client.
            status_code: Optional override of the class status code.
        """
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(ApiError):
    """Raised when client input fails validation."""

    status_code = 400


class UnauthenticatedError(ApiError):
    """Raised for missing, invalid or expired credentials."""

    status_code = 401


class ForbiddenError(ApiError):
    """Raised when a valid identity lacks the required role."""

    status_code = 403


class NotFoundError(ApiError):
    """Raised when a requested record does not exist."""

    status_code = 404


class ConflictError(ApiError):
    """Raised when a uniqueness constraint would be violated."""

    status_code = 409


class InvalidTokenError(Exception):
    """Raised by the token service when a session token cannot be trusted."""

    pass


class CorruptPasswordHashError(Exception):
    """Raised when a stored password hash is not a valid bcrypt hash."""

    pass
