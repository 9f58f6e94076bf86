"""Request Context — per-request correlation id and optional deadline.

Invariants:
    - One RequestContext per inbound request, passed explicitly down the call chain
    - request_id is for observability only; no business rule reads it
    - deadline is an absolute event-loop time; None means unbounded

Design Decisions:
    - Value passing over a process-wide registry keyed by request: no shared
      mutable state between concurrent requests
    - Cancellation is asyncio task cancellation: RequestContextMiddleware
      cancels the route task on client disconnect, which cancels the awaited
      outbound call; the deadline only bounds how long that call may run
"""

import asyncio
import secrets
from dataclasses import dataclass

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    """Random, URL-safe correlation id."""
    return secrets.token_hex(13)


def _loop_time() -> float:
    return asyncio.get_running_loop().time()


@dataclass(frozen=True)
class RequestContext:
    """Correlation id plus the deadline every outbound call must respect."""
    request_id: str
    deadline: float | None = None

    @classmethod
    def create(
        cls, request_id: str | None = None, timeout: float | None = None,
    ) -> "RequestContext":
        """Build a context, starting the deadline clock now if a timeout is given."""
        deadline = _loop_time() + timeout if timeout is not None else None
        return cls(request_id=request_id or new_request_id(), deadline=deadline)

    def remaining(self) -> float | None:
        """Seconds left before the deadline (may be <= 0), None if unbounded."""
        if self.deadline is None:
            return None
        return self.deadline - _loop_time()

    @property
    def expired(self) -> bool:
        """True once the deadline has passed; gateways skip the call then."""
        left = self.remaining()
        return left is not None and left <= 0
