"""Client-side result polling with a fixed interval and attempt ceiling."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from chivecut.errors import StatusReadError
from chivecut.jobs.status import JobStatusView

logger = logging.getLogger(__name__)


class PollOutcomeKind(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"  # gave up waiting; the job may still finish later
    NOT_FOUND = "not_found"


@dataclass
class PollOutcome:
    job_id: str
    kind: PollOutcomeKind
    attempts: int
    view: Optional[JobStatusView] = None

    @property
    def error(self) -> Optional[str]:
        if self.kind == PollOutcomeKind.FAILED and self.view is not None:
            return self.view.error
        return None

    @property
    def message(self) -> str:
        if self.kind == PollOutcomeKind.COMPLETED:
            return "Analysis complete"
        if self.kind == PollOutcomeKind.FAILED:
            return f"Analysis failed: {self.error}"
        if self.kind == PollOutcomeKind.TIMEOUT:
            return "Still processing, try again later"
        return "Job not found or expired"


class ResultPoller:
    """Repeatedly reads a job's status until it is terminal or attempts run out.

    status_fn is any GetStatus implementation: StatusService.get_status
    in-process, or AnalysisClient.get_status over HTTP.
    """

    def __init__(
        self,
        status_fn: Callable[[str], JobStatusView],
        interval: float = 2.0,
        max_attempts: int = 60,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._status_fn = status_fn
        self._interval = interval
        self._max_attempts = max_attempts
        self._sleep = sleep

    def poll(self, job_id: str) -> PollOutcome:
        for attempt in range(1, self._max_attempts + 1):
            try:
                view = self._status_fn(job_id)
            except StatusReadError as e:
                # Counts as a pending read
                logger.warning("Status read for job %s failed (attempt %d): %s", job_id, attempt, e)
            else:
                if view.status == "completed":
                    return PollOutcome(job_id, PollOutcomeKind.COMPLETED, attempt, view)
                if view.status == "failed":
                    return PollOutcome(job_id, PollOutcomeKind.FAILED, attempt, view)
                if not view.found:
                    return PollOutcome(job_id, PollOutcomeKind.NOT_FOUND, attempt, view)
            if attempt < self._max_attempts:
                self._sleep(self._interval)

        logger.info("Gave up on job %s after %d attempts", job_id, self._max_attempts)
        return PollOutcome(job_id, PollOutcomeKind.TIMEOUT, self._max_attempts)

    def poll_many(self, job_ids: Sequence[str]) -> List[PollOutcome]:
        """Poll jobs one after another, each with its own attempt budget."""
        return [self.poll(job_id) for job_id in job_ids]
