"""In-process queue and result store for local development and tests.

Same contract as the Redis backend, held in this process's memory.
No external dependencies (Redis) needed.
"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional, Tuple

from chivecut.jobs.dispatcher import JobQueue, QueueItem, ResultStore
from chivecut.jobs.models import JobRecord


class InProcessQueue(JobQueue):
    """Thread-safe FIFO. Safe for one API process plus worker threads."""

    def __init__(
        self,
        visibility_timeout: float = 300.0,
        clock: Callable[[], float] = time.time,
    ):
        self._items: Deque[str] = deque()
        self._in_flight: Dict[str, float] = {}
        self._visibility_timeout = visibility_timeout
        self._clock = clock
        self._cond = threading.Condition()

    def push(self, job: JobRecord) -> None:
        with self._cond:
            self._items.append(job.to_json())
            self._cond.notify()

    def pop(self, timeout: float) -> Optional[QueueItem]:
        with self._cond:
            if not self._items:
                self._cond.wait(timeout=timeout)
            if not self._items:
                return None
            raw = self._items.popleft()
            self._in_flight[raw] = self._clock() + self._visibility_timeout
            return QueueItem(raw=raw)

    def ack(self, item: QueueItem) -> None:
        with self._cond:
            self._in_flight.pop(item.raw, None)

    def requeue_expired(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        with self._cond:
            expired = [raw for raw, deadline in self._in_flight.items() if deadline <= now]
            for raw in expired:
                del self._in_flight[raw]
                # Redelivered work goes to the head of the line
                self._items.appendleft(raw)
            if expired:
                self._cond.notify_all()
            return len(expired)

    def in_flight_count(self) -> int:
        with self._cond:
            return len(self._in_flight)

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


class InMemoryResultStore(ResultStore):
    """Dict-backed store with lazy per-key expiry."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._data: Dict[str, Tuple[str, float]] = {}
        self._clock = clock
        self._lock = threading.Lock()

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    def ping(self) -> bool:
        return True

    def cleanup_expired(self) -> int:
        """Drop expired keys. Returns count of removed keys."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, exp) in self._data.items() if now >= exp]
            for k in expired:
                del self._data[k]
            return len(expired)
