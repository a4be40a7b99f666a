"""Errors raised by the cluster gateway."""

from typing import Optional


class GatewayError(Exception):
    """Base class for failed cluster API calls. Always retryable."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NotFoundError(GatewayError):
    """The requested object does not exist."""


class AlreadyExistsError(GatewayError):
    """An object with the same name already exists."""


class ConflictError(GatewayError):
    """The object was modified since it was read."""


class TransientGatewayError(GatewayError):
    """The API server could not be reached or answered with an unexpected error."""
