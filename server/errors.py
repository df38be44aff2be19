"""Exception handlers of the API.

Every error leaves the API as JSON with an "error" field. Stack traces are
logged, never returned.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from services.ingestion.errors import IngestionError
from shared.clients.ClientError import ClientError


class ApiError(Exception):
    """An error with a fixed client-facing message and HTTP status."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
    logging = request.app.state.logging
    if exc.status_code >= 500:
        logging.error("Ingestion failed on %s: %s", request.url.path, exc.message, exc_info=exc)
    else:
        logging.info("Rejected ingestion request on %s: %s", request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    request.app.state.logging.error(
        "Backend '%s' failed during %s %s: %s", exc.engine, request.method, request.url.path, exc, exc_info=exc
    )
    return JSONResponse(status_code=502, content={"error": "Upstream service request failed"})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(part) for part in err.get("loc", ())) for err in exc.errors())
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {fields or 'malformed body'}"})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request.app.state.logging.error(
        "Unhandled exception during request: %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(IngestionError, ingestion_error_handler)
    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
