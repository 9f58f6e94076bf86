"""Error Handlers — global exception handlers rendering the error envelope.

Invariants:
    - PokedexError with a kind → status/code by _KIND_RESPONSES (the only such mapping)
    - NOT_FOUND → 404 NOT_FOUND; MISSING_DATA and SERVICE_UNAVAILABLE → 500 INTERNAL_ERROR
    - InvalidRequestError and RequestValidationError → 400 BAD_REQUEST
    - Exception (catch-all) → never leaks internal details
    - Raw upstream error text is logged, never returned

Design Decisions:
    - Three-layer handler: domain (PokedexError), validation (Pydantic), catch-all (Exception)
    - MISSING_DATA and SERVICE_UNAVAILABLE share one public response; the
      distinction survives only in logs (error_code)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError

from pokedex.api.envelope import error_response, get_request_id
from pokedex.core.errors import ErrorKind, InvalidRequestError, PokedexError

logger = logging.getLogger(__name__)

ERR_CODE_NOT_FOUND = "NOT_FOUND"
ERR_CODE_INTERNAL = "INTERNAL_ERROR"
ERR_CODE_BAD_REQUEST = "BAD_REQUEST"

_INTERNAL_RESPONSE = (
    status.HTTP_500_INTERNAL_SERVER_ERROR, ERR_CODE_INTERNAL, "internal server error",
)

_KIND_RESPONSES: dict[ErrorKind, tuple[int, str, str]] = {
    ErrorKind.NOT_FOUND: (
        status.HTTP_404_NOT_FOUND, ERR_CODE_NOT_FOUND, "resource not found",
    ),
    ErrorKind.MISSING_DATA: _INTERNAL_RESPONSE,
    ErrorKind.SERVICE_UNAVAILABLE: _INTERNAL_RESPONSE,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_pokedex_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_pokedex_error_handler(app: FastAPI) -> None:
    """Register domain error handler."""

    @app.exception_handler(PokedexError)
    async def pokedex_error_handler(request: Request, exc: PokedexError):
        extra = {
            **exc.to_log_extra(),
            "request_id": get_request_id(request),
            "path": request.url.path,
        }
        if isinstance(exc, InvalidRequestError):
            logger.warning(f"Bad request: {exc.message}", extra=extra)
            return error_response(
                request, status.HTTP_400_BAD_REQUEST, ERR_CODE_BAD_REQUEST,
                exc.message, details={"field": exc.field},
            )

        status_code, code, message = _KIND_RESPONSES.get(
            exc.kind, _INTERNAL_RESPONSE,
        )
        if exc.kind is ErrorKind.NOT_FOUND:
            logger.info(f"Not found: {exc.message}", extra=extra)
        else:
            logger.error(f"PokedexError: {exc.message}", extra=extra)
        return error_response(request, status_code, code, message)


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"request_id": get_request_id(request)},
        )
        return error_response(
            request, status.HTTP_400_BAD_REQUEST, ERR_CODE_BAD_REQUEST,
            "invalid request", details=_validation_details(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all, never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"request_id": get_request_id(request)},
        )
        return error_response(request, *_INTERNAL_RESPONSE)


def _validation_details(exc: RequestValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
