"""Failures of the ingestion pipeline.

Each error carries the HTTP status the API answers with, so the exception
handlers do not need to know the pipeline stages.
"""


class IngestionError(Exception):
    """Base class for ingestion failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IngestionValidationError(IngestionError):
    """The request input is invalid. Raised before any side effect."""

    status_code = 400


class InsufficientContentError(IngestionError):
    """The source was readable but yielded too little text to be useful."""

    status_code = 400


class ExtractionError(IngestionError):
    """Text could not be extracted from the source.

    Attributes:
        client_fault: True when the uploaded content itself is unreadable (answered
                      with 400), False for infrastructure problems such as an
                      unreachable URL (answered with 500).
    """

    def __init__(self, message: str, client_fault: bool = False):
        super().__init__(message)
        self.client_fault = client_fault
        self.status_code = 400 if client_fault else 500


class StorageError(IngestionError):
    """Chunks could not be persisted. The document was not stored."""

    status_code = 500
