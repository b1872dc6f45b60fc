"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from chivecut.api.v1.health import router as health_router
from chivecut.api.v1.jobs import router as jobs_router
from chivecut.api.v1.analyze import router as analyze_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(analyze_router, tags=["analyze"])
v1_router.include_router(jobs_router, tags=["jobs"])
