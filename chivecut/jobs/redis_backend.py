"""Redis-backed job queue and result store.

Keys:
  {prefix}:queue              list, RPUSH on submit, consumed from the left
  {prefix}:queue:processing   list of in-flight payloads
  {prefix}:queue:deadlines    zset payload -> visibility deadline (epoch s)
  {prefix}:jobs:{id}          job record JSON, TTL
  {prefix}:results:{id}       result record JSON, TTL
"""

import logging
import time
from typing import Callable, Optional

import redis

from chivecut.jobs.dispatcher import JobQueue, QueueItem, ResultStore
from chivecut.jobs.models import JobRecord

logger = logging.getLogger(__name__)


def create_redis_client(redis_url: str) -> redis.Redis:
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5.0,
        # Must outlive the blocking pop timeout
        socket_timeout=30.0,
    )


class RedisJobQueue(JobQueue):
    """Reliable-queue pattern: BLMOVE into a processing list, LREM on ack."""

    def __init__(
        self,
        client: redis.Redis,
        queue_key: str,
        visibility_timeout: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        self._r = client
        self._queue = queue_key
        self._processing = f"{queue_key}:processing"
        self._deadlines = f"{queue_key}:deadlines"
        self._visibility_timeout = visibility_timeout
        self._clock = clock

    def push(self, job: JobRecord) -> None:
        self._r.rpush(self._queue, job.to_json())

    def pop(self, timeout: float) -> Optional[QueueItem]:
        raw = self._r.blmove(self._queue, self._processing, timeout, "LEFT", "RIGHT")
        if raw is None:
            return None
        self._r.zadd(self._deadlines, {raw: self._clock() + self._visibility_timeout})
        return QueueItem(raw=raw)

    def ack(self, item: QueueItem) -> None:
        pipe = self._r.pipeline()
        pipe.lrem(self._processing, 1, item.raw)
        pipe.zrem(self._deadlines, item.raw)
        pipe.execute()

    def requeue_expired(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        moved = 0
        for raw in self._r.zrangebyscore(self._deadlines, "-inf", now):
            # Whoever removes the deadline owns the requeue
            if not self._r.zrem(self._deadlines, raw):
                continue
            pipe = self._r.pipeline()
            pipe.lrem(self._processing, 1, raw)
            pipe.lpush(self._queue, raw)
            pipe.execute()
            moved += 1
        if moved:
            logger.warning("Requeued %d expired in-flight job(s)", moved)
        return moved

    def __len__(self) -> int:
        return int(self._r.llen(self._queue))


class RedisResultStore(ResultStore):
    def __init__(self, client: redis.Redis):
        self._r = client

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._r.set(key, value, ex=ttl_seconds)

    def get(self, key: str) -> Optional[str]:
        return self._r.get(key)

    def ping(self) -> bool:
        try:
            return bool(self._r.ping())
        except redis.exceptions.RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False
