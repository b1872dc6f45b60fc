"""Chive-cut analysis service - FastAPI application."""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chivecut.config import Settings, configure_logging, settings as default_settings
from chivecut.api.v1.router import v1_router
from chivecut.api.v1.health import router as health_root_router
from chivecut.api.v1 import analyze as analyze_api
from chivecut.api.v1 import health as health_api
from chivecut.api.v1 import jobs as jobs_api
from chivecut.pipeline import Pipeline, build_pipeline
from chivecut.storage.media import LocalMediaStore

logger = logging.getLogger(__name__)


def _wire(pipeline: Optional[Pipeline]) -> None:
    analyze_api.set_pipeline(pipeline)
    jobs_api.set_pipeline(pipeline)
    health_api.set_pipeline(pipeline)


def create_app(
    settings: Optional[Settings] = None,
    pipeline: Optional[Pipeline] = None,
    run_worker: Optional[bool] = None,
) -> FastAPI:
    """Build the app. With the memory backend a worker runs on a thread in this process.

    run_worker defaults to True for the memory backend and False for redis,
    where workers run as separate chivecut-worker processes.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        logger.info("Starting chive-cut analysis service on port %s", settings.api_port)

        active = pipeline or build_pipeline(settings)
        _wire(active)

        want_worker = run_worker if run_worker is not None else settings.queue_backend == "memory"
        stop = threading.Event()
        worker_future = None
        if want_worker:
            try:
                worker = active.build_worker()
            except ValueError as exc:
                logger.warning("In-process worker not started: %s", exc)
            else:
                loop = asyncio.get_running_loop()
                worker_future = loop.run_in_executor(None, worker.run_forever, stop)
                logger.info("In-process worker started")

        yield

        logger.info("Shutting down chive-cut analysis service")
        stop.set()
        if worker_future is not None:
            await worker_future
        if isinstance(active.media, LocalMediaStore):
            active.media.cleanup_expired()
        _wire(None)

    app = FastAPI(
        title="Chive-cut Analysis Service",
        description="Async image analysis and scoring of knife cuts on chives",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_root_router, tags=["health"])  # GET /health at root
    app.include_router(v1_router)  # All /api/v1/* endpoints
    return app


app = create_app()
