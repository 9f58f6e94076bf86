"""Health Probe — liveness endpoint for container orchestration.

Invariants:
    - GET /health always returns 200 {"status": "ok"} while the process serves
    - Independent of both upstreams (no outbound calls)
"""

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "ok"}
