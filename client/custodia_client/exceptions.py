"""Exceptions for the Custodia client."""

from typing import Optional


class CustodiaError(Exception):
    """Base exception for Custodia client errors."""

    pass


class AuthenticationError(CustodiaError):
    """Raised when the server rejects the request signature."""

    pass


class ForbiddenError(CustodiaError):
    """Raised when the caller is not allowed to perform an owner operation."""

    pass


class RequestRejectedError(CustodiaError):
    """Raised when the ledger rejects a queued operation."""

    def __init__(self, message_id: str, reason: str, error_code: Optional[str] = None):
        self.message_id = message_id
        self.reason = reason
        self.error_code = error_code
        super().__init__(f"Request {message_id} rejected: {reason}")


class TimeoutError(CustodiaError):
    """Raised when waiting for a message times out."""

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"Timeout waiting for message {message_id}")


class NotFoundError(CustodiaError):
    """Raised when a resource is not found."""

    pass


class NetworkError(CustodiaError):
    """Raised when there's a network communication error."""

    pass
