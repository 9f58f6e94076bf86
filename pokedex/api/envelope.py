"""Response Envelope — builds data/error JSON responses stamped with the request id.

Invariants:
    - Every envelope carries meta.request_id taken from the request's RequestContext
    - Requests that never passed through the middleware report request_id "unknown"
"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from pokedex.schemas.species import Envelope, ErrorBody, Meta

UNKNOWN_REQUEST_ID = "unknown"


def get_request_id(request: Request) -> str:
    ctx = getattr(request.state, "request_context", None)
    return ctx.request_id if ctx is not None else UNKNOWN_REQUEST_ID


def json_response(
    request: Request, data: Any, status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    envelope = Envelope(data=data, meta=Meta(request_id=get_request_id(request)))
    return JSONResponse(status_code=status_code, content=envelope.to_json())


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    envelope = Envelope(
        error=ErrorBody(code=code, message=message, details=details),
        meta=Meta(request_id=get_request_id(request)),
    )
    return JSONResponse(status_code=status_code, content=envelope.to_json())
