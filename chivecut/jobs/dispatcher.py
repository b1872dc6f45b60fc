"""Queue and result-store interfaces shared by the memory and Redis backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from chivecut.jobs.models import JobRecord


@dataclass(frozen=True)
class QueueItem:
    """A popped queue entry. `raw` is the exact payload pushed, needed to ack it."""
    raw: str

    def job(self) -> JobRecord:
        return JobRecord.model_validate_json(self.raw)


class JobQueue(ABC):
    """FIFO of pending jobs with blocking pop and in-flight acknowledgment.

    pop() moves an item in-flight with a visibility deadline; ack() drops it.
    requeue_expired() puts in-flight items whose deadline passed back on the
    queue, so a worker that dies mid-job does not lose it.
    """

    @abstractmethod
    def push(self, job: JobRecord) -> None:
        ...

    @abstractmethod
    def pop(self, timeout: float) -> Optional[QueueItem]:
        """Block up to `timeout` seconds. Returns None when nothing arrived."""
        ...

    @abstractmethod
    def ack(self, item: QueueItem) -> None:
        ...

    @abstractmethod
    def requeue_expired(self, now: Optional[float] = None) -> int:
        """Return expired in-flight items to the queue. Returns how many moved."""
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class ResultStore(ABC):
    """String key/value store with per-key expiry."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def ping(self) -> bool:
        ...

    def cleanup_expired(self) -> int:
        """Drop expired keys. Backends with native expiry have nothing to do."""
        return 0
