"""Exceptions raised by the API client."""

from typing import Any, Optional


class ApiClientError(Exception):
    """Base exception for API client errors."""

    pass


class ApiConnectionError(ApiClientError):
    """The server could not be reached or did not answer in time."""

    pass


class ApiRequestError(ApiClientError):
    """The server answered with an error envelope."""

    def __init__(self, message: str, status_code: int, data: Optional[Any] = None):
        self.message = message
        self.status_code = status_code
        self.data = data
        super().__init__(f"{status_code}: {message}")


class UnauthorizedError(ApiRequestError):
    """A 401 response; the local session has already been cleared."""

    pass
