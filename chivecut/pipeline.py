"""Builds the store, queue, media store and services from one Settings instance."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from chivecut.analysis.base import VisionAnalyzer
from chivecut.analysis.grok_client import GrokVisionClient
from chivecut.config import Settings
from chivecut.jobs.dispatcher import JobQueue, ResultStore
from chivecut.jobs.in_process_queue import InMemoryResultStore, InProcessQueue
from chivecut.jobs.poller import ResultPoller
from chivecut.jobs.status import StatusService
from chivecut.jobs.submission import SubmissionService
from chivecut.jobs.worker import Worker
from chivecut.storage.media import LocalMediaStore, MediaStore, SupabaseMediaStore

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    settings: Settings
    store: ResultStore
    queue: JobQueue
    media: MediaStore
    analyzer: Optional[VisionAnalyzer] = None
    submission: SubmissionService = field(init=False)
    status: StatusService = field(init=False)

    def __post_init__(self):
        self.submission = SubmissionService(self.settings, self.store, self.queue, self.media)
        self.status = StatusService(self.settings, self.store)

    def get_analyzer(self) -> VisionAnalyzer:
        if self.analyzer is None:
            self.analyzer = GrokVisionClient(
                api_key=self.settings.xai_api_key or "",
                base_url=self.settings.xai_base_url,
                model=self.settings.xai_model,
                timeout=self.settings.analysis_timeout_seconds,
            )
        return self.analyzer

    def build_worker(self, **kwargs) -> Worker:
        return Worker(
            self.settings,
            self.store,
            self.queue,
            self.media,
            self.get_analyzer(),
            **kwargs,
        )

    def build_poller(self, **kwargs) -> ResultPoller:
        kwargs.setdefault("interval", self.settings.poll_interval_seconds)
        kwargs.setdefault("max_attempts", self.settings.poll_max_attempts)
        return ResultPoller(self.status.get_status, **kwargs)


def build_media_store(settings: Settings) -> MediaStore:
    if settings.media_backend == "supabase":
        return SupabaseMediaStore.from_settings(settings)
    if settings.media_backend == "local":
        return LocalMediaStore(base_dir=settings.media_dir, ttl_hours=settings.media_ttl_hours)
    raise ValueError(f"Unknown media backend '{settings.media_backend}'. Available: local, supabase")


def build_pipeline(settings: Settings, analyzer: Optional[VisionAnalyzer] = None) -> Pipeline:
    """Wire a pipeline for the configured queue backend ("memory" or "redis")."""
    if settings.queue_backend == "redis":
        from chivecut.jobs.redis_backend import (
            RedisJobQueue,
            RedisResultStore,
            create_redis_client,
        )

        client = create_redis_client(settings.redis_url)
        store: ResultStore = RedisResultStore(client)
        queue: JobQueue = RedisJobQueue(
            client,
            settings.queue_key,
            visibility_timeout=settings.visibility_timeout_seconds,
        )
    elif settings.queue_backend == "memory":
        store = InMemoryResultStore()
        queue = InProcessQueue(visibility_timeout=settings.visibility_timeout_seconds)
    else:
        raise ValueError(
            f"Unknown queue backend '{settings.queue_backend}'. Available: memory, redis"
        )

    logger.info(
        "Pipeline: queue=%s media=%s ttl=%ds",
        settings.queue_backend,
        settings.media_backend,
        settings.job_ttl_seconds,
    )
    return Pipeline(
        settings=settings,
        store=store,
        queue=queue,
        media=build_media_store(settings),
        analyzer=analyzer,
    )
