"""Job submission: record each uploaded image as a pending job and queue it."""

import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from PIL import Image, UnidentifiedImageError

from chivecut.config import Settings
from chivecut.errors import SubmissionError
from chivecut.jobs.dispatcher import JobQueue, ResultStore
from chivecut.jobs.models import JobRecord
from chivecut.storage.media import MediaStore

logger = logging.getLogger(__name__)


@dataclass
class ImageUpload:
    data: bytes
    mime_type: str
    filename: Optional[str] = None


@dataclass
class Provenance:
    """Who submitted the images and from where."""
    submitted_by: str
    post_id: str
    subreddit: Optional[str] = None


class SubmissionService:
    def __init__(
        self,
        settings: Settings,
        store: ResultStore,
        queue: JobQueue,
        media: MediaStore,
    ):
        self._settings = settings
        self._store = store
        self._queue = queue
        self._media = media

    def submit(self, images: Sequence[ImageUpload], provenance: Provenance) -> List[str]:
        """Create one pending job per image. Returns job ids in input order.

        Every image is validated before anything is uploaded or queued, so a
        bad batch is rejected as a whole.
        """
        if not images:
            raise SubmissionError("No images supplied")
        if not provenance.submitted_by:
            raise SubmissionError("submitted_by is required")
        if not provenance.post_id:
            raise SubmissionError("post_id is required")
        for upload in images:
            self._validate(upload)

        job_ids = []
        for index, upload in enumerate(images):
            image_ref = self._media.upload(upload.data, upload.mime_type)
            job = JobRecord(
                image_ref=image_ref,
                mime_type=upload.mime_type,
                submitted_by=provenance.submitted_by,
                subreddit=provenance.subreddit,
                post_id=provenance.post_id,
                filename=upload.filename,
                bunch_index=index,
            )
            # Record before queueing: a queued job always has a stored record
            self._store.set(
                self._settings.job_key(job.job_id),
                job.to_json(),
                self._settings.job_ttl_seconds,
            )
            self._queue.push(job)
            job_ids.append(job.job_id)
            logger.info("Queued job %s (post=%s, image=%d)", job.job_id, provenance.post_id, index)

        return job_ids

    def _validate(self, upload: ImageUpload) -> None:
        name = upload.filename or "upload"
        if not upload.mime_type or not upload.mime_type.startswith("image/"):
            raise SubmissionError(f"{name}: file must be an image")
        if not upload.data:
            raise SubmissionError(f"{name}: file is empty")
        if len(upload.data) > self._settings.max_upload_bytes:
            limit_mb = self._settings.max_upload_bytes // (1024 * 1024)
            raise SubmissionError(f"{name}: file too large (max {limit_mb} MB)")
        try:
            with Image.open(io.BytesIO(upload.data)) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise SubmissionError(f"{name}: not a readable image ({exc})") from exc
