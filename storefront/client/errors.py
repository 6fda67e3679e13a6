from typing import Any, Dict, Optional


class ClientError(Exception):
    """Base for failures surfaced to the shopper."""


class AuthenticationRequired(ClientError):
    def __init__(self, message: str = "Authentication required. Please log in to place an order."):
        super().__init__(message)
        self.message = message


class ServiceUnavailable(ClientError):
    def __init__(self, message: str = "The store is unreachable. Please try again later."):
        super().__init__(message)
        self.message = message


class ApiResponseError(ClientError):
    """A non-2xx answer from the API, with the decoded error envelope."""

    def __init__(self, status: int, payload: Optional[Dict[str, Any]] = None):
        self.status = status
        self.payload = payload or {}
        self.message = self.payload.get("message") or f"Request failed with status {status}"
        super().__init__(self.message)


class OrderRejected(ClientError):
    """The server refused the order; ``message`` is shown next to the form."""

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error
