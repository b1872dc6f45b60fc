"""Read path for job status. Scores are recomputed from raw metrics on every call."""

import logging
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from chivecut.config import Settings
from chivecut.jobs.dispatcher import ResultStore
from chivecut.jobs.models import JobRecord, JobStatus, ResultRecord
from chivecut.scoring.metrics import RawMetrics, ScoredMetrics
from chivecut.scoring.scorer import score_chive_analysis

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"


class JobStatusView(BaseModel):
    jobId: str
    status: Literal["pending", "completed", "failed", "not_found"]
    scored: Optional[ScoredMetrics] = None
    raw: Optional[RawMetrics] = None
    error: Optional[str] = None
    filename: Optional[str] = None
    bunchIndex: Optional[int] = None
    processedAt: Optional[datetime] = None

    @property
    def found(self) -> bool:
        return self.status != NOT_FOUND


class StatusService:
    def __init__(self, settings: Settings, store: ResultStore):
        self._settings = settings
        self._store = store

    def get_status(self, job_id: str) -> JobStatusView:
        job_json = self._store.get(self._settings.job_key(job_id))
        result_json = self._store.get(self._settings.result_key(job_id))

        if result_json is not None:
            result = ResultRecord.model_validate_json(result_json)
            view = self._from_result(result)
        elif job_json is not None:
            view = JobStatusView(jobId=job_id, status=JobStatus.PENDING.value)
        else:
            return JobStatusView(jobId=job_id, status=NOT_FOUND)

        if job_json is not None:
            job = JobRecord.model_validate_json(job_json)
            view.filename = job.filename
            view.bunchIndex = job.bunch_index
        return view

    def _from_result(self, result: ResultRecord) -> JobStatusView:
        if result.status == JobStatus.COMPLETED and result.raw is not None:
            return JobStatusView(
                jobId=result.job_id,
                status=JobStatus.COMPLETED.value,
                raw=result.raw,
                scored=score_chive_analysis(result.raw),
                processedAt=result.processed_at,
            )
        return JobStatusView(
            jobId=result.job_id,
            status=JobStatus.FAILED.value,
            error=result.error or "Processing failed",
            processedAt=result.processed_at,
        )
