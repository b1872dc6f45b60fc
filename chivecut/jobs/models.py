"""Job and result records for async analysis."""

from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chivecut.scoring.metrics import RawMetrics


class JobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class _CamelModel(BaseModel):
    # Stored JSON uses camelCase keys (jobId, imageRef, processedAt, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class JobRecord(_CamelModel):
    """One submitted image, tracked from pending to completed/failed."""
    job_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    image_ref: str
    mime_type: str
    submitted_by: str
    subreddit: Optional[str] = None
    post_id: str
    filename: Optional[str] = None
    bunch_index: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    status: JobStatus = JobStatus.PENDING


class ResultRecord(_CamelModel):
    """Terminal outcome written once by the worker for a job."""
    job_id: str
    status: JobStatus
    raw: Optional[RawMetrics] = None
    error: Optional[str] = None
    processed_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def completed(cls, job_id: str, raw: RawMetrics) -> "ResultRecord":
        return cls(job_id=job_id, status=JobStatus.COMPLETED, raw=raw)

    @classmethod
    def failed(cls, job_id: str, error: str) -> "ResultRecord":
        return cls(job_id=job_id, status=JobStatus.FAILED, error=error or "Unknown error")
