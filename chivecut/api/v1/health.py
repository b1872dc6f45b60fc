"""Health check endpoint."""

import platform
import sys

from fastapi import APIRouter

router = APIRouter()

_pipeline = None


def set_pipeline(pipeline):
    global _pipeline
    _pipeline = pipeline


@router.get("/health")
def health_check():
    """Service health: result store reachability and queue depth."""
    if _pipeline is None:
        return {"status": "starting"}

    store_ok = _pipeline.store.ping()
    queue_depth = None
    if store_ok:
        queue_depth = len(_pipeline.queue)

    return {
        "status": "healthy" if store_ok else "degraded",
        "queue_backend": _pipeline.settings.queue_backend,
        "store_reachable": store_ok,
        "queue_depth": queue_depth,
        "analysis_configured": bool(_pipeline.settings.xai_api_key),
        "python_version": sys.version,
        "platform": platform.platform(),
    }
