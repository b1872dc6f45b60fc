"""HTTP client for the analysis API: submit images, read status, wait for results."""

import mimetypes
import os
from typing import Iterable, List, Optional

import httpx

from chivecut.errors import StatusReadError
from chivecut.jobs.poller import PollOutcome, ResultPoller
from chivecut.jobs.status import NOT_FOUND, JobStatusView


class AnalysisClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def submit(
        self,
        paths: Iterable[str],
        submitted_by: str,
        post_id: str,
        subreddit: Optional[str] = None,
    ) -> List[str]:
        """Upload image files and return their job ids in order."""
        files = []
        for path in paths:
            mime = mimetypes.guess_type(path)[0] or "application/octet-stream"
            with open(path, "rb") as src:
                files.append(("images", (os.path.basename(path), src.read(), mime)))

        data = {"submitted_by": submitted_by, "post_id": post_id}
        if subreddit:
            data["subreddit"] = subreddit

        response = self._http.post("/api/v1/analyze", files=files, data=data)
        response.raise_for_status()
        return response.json()["jobs"]

    def get_status(self, job_id: str) -> JobStatusView:
        """Read one job's status. Server errors and network failures raise StatusReadError."""
        try:
            response = self._http.get(f"/api/v1/jobs/{job_id}")
        except httpx.TransportError as e:
            raise StatusReadError(f"Status read failed: {e}") from e
        if response.status_code == 404:
            return JobStatusView(jobId=job_id, status=NOT_FOUND)
        if response.status_code >= 500:
            raise StatusReadError(f"Status read failed: {response.status_code}")
        response.raise_for_status()
        return JobStatusView.model_validate(response.json())

    def wait(
        self,
        job_ids: Iterable[str],
        interval: float = 2.0,
        max_attempts: int = 60,
    ) -> List[PollOutcome]:
        poller = ResultPoller(self.get_status, interval=interval, max_attempts=max_attempts)
        return poller.poll_many(list(job_ids))

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
