"""
Probe endpoints for load balancers and orchestrators.

`/health` and `/health/live` only prove the process answers; `/health/ready`
additionally requires a loaded search index.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


def _index_check(request: Request) -> tuple[bool, dict]:
    service = getattr(request.app.state, "search_service", None)
    if service is None or not service.ready:
        return False, {"search_index": "unavailable"}
    return True, {"search_index": "ok"}


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/health/live")
async def liveness():
    """Liveness: the event loop is serving requests."""
    return {"status": "ok"}


@router.get("/health/ready")
async def readiness(request: Request):
    """Readiness: searches can be answered from a loaded index."""
    ready, checks = _index_check(request)
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "unavailable", "checks": checks},
    )
