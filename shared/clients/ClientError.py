"""Typed failures raised by the backend clients.

Callers decide whether to absorb them (embedding, vector store) or to let
them reach the request boundary (LLM).
"""


class ClientError(Exception):
    """Base class for all backend client failures."""

    def __init__(self, message: str, engine: str | None = None):
        super().__init__(message)
        self.engine = engine


class ClientNotBootedError(ClientError):
    """Raised when a request is issued before boot() was called."""


class ClientRequestError(ClientError):
    """Raised when a backend request fails: network error, timeout or non-2xx status.

    Attributes:
        status_code: HTTP status of the failed response, None for transport errors.
    """

    def __init__(self, message: str, engine: str | None = None, status_code: int | None = None):
        super().__init__(message, engine=engine)
        self.status_code = status_code


class ClientResponseError(ClientError):
    """Raised when a backend answered successfully but the body cannot be interpreted."""
