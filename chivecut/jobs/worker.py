"""Queue consumer: fetch image, call the vision service, record the outcome.

One worker handles one job at a time. Throughput scales by running more
worker processes against the same queue.
"""

import logging
import threading
import time
from typing import Callable, Optional

import redis

from chivecut.analysis.base import VisionAnalyzer
from chivecut.analysis.parsing import parse_raw_metrics
from chivecut.config import Settings
from chivecut.jobs.dispatcher import JobQueue, ResultStore
from chivecut.jobs.models import JobRecord, JobStatus, ResultRecord
from chivecut.storage.media import MediaStore

logger = logging.getLogger(__name__)

# Queue/store failures retried after a backoff
TRANSIENT_ERRORS = (redis.exceptions.RedisError, ConnectionError, TimeoutError)


class Worker:
    def __init__(
        self,
        settings: Settings,
        store: ResultStore,
        queue: JobQueue,
        media: MediaStore,
        analyzer: VisionAnalyzer,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._settings = settings
        self._store = store
        self._queue = queue
        self._media = media
        self._analyzer = analyzer
        self._sleep = sleep
        self._clock = clock
        self._last_reap: Optional[float] = None

    def run_forever(self, stop: Optional[threading.Event] = None) -> None:
        """Poll until `stop` is set. Never raises for queue or job errors."""
        stop = stop or threading.Event()
        logger.info("Worker started, polling queue...")
        while not stop.is_set():
            try:
                self.run_once()
            except TRANSIENT_ERRORS as e:
                logger.error("Queue poll error: %s", e)
                self._sleep(self._settings.worker_backoff_seconds)
            except Exception:
                logger.exception("Unexpected worker error")
                self._sleep(self._settings.worker_backoff_seconds)
        logger.info("Worker stopped")

    def run_once(self) -> Optional[ResultRecord]:
        """Pop at most one job and process it.

        Returns the written result, or None if nothing was processed (pop
        timed out, or the item was stale or a duplicate delivery).
        """
        self._maybe_reap()

        item = self._queue.pop(self._settings.queue_pop_timeout_seconds)
        if item is None:
            return None

        try:
            job = item.job()
        except ValueError as e:
            logger.error("Dropping unreadable queue item: %s", e)
            self._queue.ack(item)
            return None

        try:
            stored = self._load_job(job.job_id)
        except ValueError as e:
            logger.error("Stored record for job %s is unreadable: %s", job.job_id, e)
            result = ResultRecord.failed(job.job_id, "Stored job record is unreadable")
            self._write_result(job, result)
            self._queue.ack(item)
            return result
        if stored is None:
            logger.warning("Job %s expired before processing, skipping", job.job_id)
            self._queue.ack(item)
            return None
        if stored.status != JobStatus.PENDING:
            logger.info("Job %s already %s, skipping redelivery", job.job_id, stored.status.value)
            self._queue.ack(item)
            return None

        result = self.process_job(stored)
        self._queue.ack(item)
        return result

    def process_job(self, job: JobRecord) -> ResultRecord:
        """Run one job to a terminal result and persist it.

        Any failure in fetch, analysis or parsing becomes a failed result.
        Store errors propagate so the item stays in-flight for redelivery.
        """
        logger.info("Processing job %s...", job.job_id)
        started = time.monotonic()
        try:
            image = self._media.fetch(job.image_ref)
            reply = self._analyzer.analyze(image, job.mime_type)
            raw = parse_raw_metrics(reply)
            result = ResultRecord.completed(job.job_id, raw)
        except Exception as e:
            logger.error("Job %s failed: %s", job.job_id, e)
            result = ResultRecord.failed(job.job_id, str(e) or type(e).__name__)

        self._write_result(job, result)
        if result.status == JobStatus.COMPLETED:
            logger.info("Job %s completed in %.1fs", job.job_id, time.monotonic() - started)
        return result

    def _write_result(self, job: JobRecord, result: ResultRecord) -> None:
        ttl = self._settings.job_ttl_seconds
        self._store.set(self._settings.result_key(job.job_id), result.to_json(), ttl)
        job.status = result.status
        self._store.set(self._settings.job_key(job.job_id), job.to_json(), ttl)

    def _load_job(self, job_id: str) -> Optional[JobRecord]:
        raw = self._store.get(self._settings.job_key(job_id))
        if raw is None:
            return None
        return JobRecord.model_validate_json(raw)

    def _maybe_reap(self) -> None:
        now = self._clock()
        if (
            self._last_reap is not None
            and now - self._last_reap < self._settings.reaper_interval_seconds
        ):
            return
        self._last_reap = now
        self._queue.requeue_expired()
        self._store.cleanup_expired()

