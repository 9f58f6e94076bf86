"""Request-Context Middleware — per-request RequestContext and client-disconnect cancellation.

Invariants:
    - Every request gets a RequestContext in scope["state"] before any route runs
    - A caller-supplied X-Request-ID is reused; otherwise one is generated
    - Every response echoes the id in the X-Request-ID header
    - A client that disconnects before the response is complete cancels the
      route task, and with it any in-flight outbound call
    - Errors raised by the app propagate unchanged to the outer error middleware

Design Decisions:
    - Pure ASGI class over @app.middleware("http"): the app runs in its own task
      so a disconnect watcher can cancel it
    - The watcher owns the server's receive channel and forwards every message
      to the app through a queue; only one reader ever awaits receive()
"""

import asyncio
import logging

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pokedex.core.request_context import REQUEST_ID_HEADER, RequestContext

logger = logging.getLogger(__name__)

_MAX_REQUEST_ID_LENGTH = 128
_DISCONNECT: Message = {"type": "http.disconnect"}


def _supplied_request_id(scope: Scope) -> str | None:
    wanted = REQUEST_ID_HEADER.lower().encode("latin-1")
    for key, value in scope.get("headers") or []:
        if key.lower() == wanted:
            supplied = value.decode("latin-1").strip()
            return supplied[:_MAX_REQUEST_ID_LENGTH] or None
    return None


class RequestContextMiddleware:
    """Attach a RequestContext and cancel the route when the client goes away."""

    def __init__(self, app: ASGIApp, request_timeout: float | None = None):
        self.app = app
        self.request_timeout = request_timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        ctx = RequestContext.create(
            request_id=_supplied_request_id(scope), timeout=self.request_timeout,
        )
        scope.setdefault("state", {})["request_context"] = ctx
        path = scope.get("path", "")

        inbox: asyncio.Queue[Message] = asyncio.Queue()
        disconnected = asyncio.Event()
        response_complete = False
        status_code: int | None = None

        async def receive_wrapped() -> Message:
            if disconnected.is_set() and inbox.empty():
                return _DISCONNECT
            return await inbox.get()

        async def send_wrapped(message: Message) -> None:
            nonlocal response_complete, status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = ctx.request_id
            elif message["type"] == "http.response.body" and not message.get("more_body"):
                response_complete = True
            await send(message)

        async def watch_disconnect() -> None:
            while True:
                message = await receive()
                inbox.put_nowait(message)
                if message["type"] == "http.disconnect":
                    disconnected.set()
                    return

        app_task = asyncio.create_task(self.app(scope, receive_wrapped, send_wrapped))
        watcher = asyncio.create_task(watch_disconnect())
        try:
            await asyncio.wait({app_task, watcher}, return_when=asyncio.FIRST_COMPLETED)
            if not app_task.done() and not response_complete:
                logger.info(
                    f"Client disconnected, cancelling {scope.get('method')} {path}",
                    extra={"request_id": ctx.request_id, "path": path},
                )
                app_task.cancel()
            await asyncio.wait({app_task})
        finally:
            watcher.cancel()
            if not app_task.done():
                app_task.cancel()
                await asyncio.gather(app_task, return_exceptions=True)

        if app_task.cancelled():
            return
        app_task.result()
        logger.debug(
            f"{scope.get('method')} {path} -> {status_code}",
            extra={
                "request_id": ctx.request_id,
                "path": path,
                "status_code": status_code,
            },
        )
