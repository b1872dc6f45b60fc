"""Image analysis API: queue uploads for async analysis, or analyze inline.

  POST /api/v1/analyze       : receive images, start one job per image
  POST /api/v1/analyze/sync  : analyze and score in the request (no queue)
"""

import logging
from typing import List

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from chivecut.analysis.parsing import parse_raw_metrics
from chivecut.errors import SubmissionError
from chivecut.jobs.submission import ImageUpload, Provenance
from chivecut.scoring.scorer import score_chive_analysis

logger = logging.getLogger(__name__)

router = APIRouter()

# Wired in during lifespan (same pattern as jobs.py)
_pipeline = None


def set_pipeline(pipeline):
    global _pipeline
    _pipeline = pipeline


async def _read_uploads(files: List[UploadFile]) -> List[ImageUpload]:
    uploads = []
    for file in files:
        data = await file.read()
        await file.close()
        uploads.append(
            ImageUpload(
                data=data,
                mime_type=file.content_type or "",
                filename=file.filename,
            )
        )
    return uploads


@router.post("/analyze")
async def submit_images(
    images: List[UploadFile] = File(default=[]),
    submitted_by: str = Form(default=""),
    post_id: str = Form(default=""),
    subreddit: str = Form(default=""),
):
    """Queue one analysis job per uploaded image.

    Returns:
        {jobs: [job_id, ...]} in upload order. Poll GET /api/v1/jobs/{id}.
    """
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not ready")

    uploads = await _read_uploads(images)
    provenance = Provenance(
        submitted_by=submitted_by,
        post_id=post_id,
        subreddit=subreddit or None,
    )
    try:
        job_ids = await run_in_threadpool(_pipeline.submission.submit, uploads, provenance)
    except SubmissionError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return {"jobs": job_ids}


@router.post("/analyze/sync")
async def analyze_sync(images: List[UploadFile] = File(default=[])):
    """Analyze images within the request and return scored results.

    A failure on one image is reported in its entry; it does not fail the
    whole request.
    """
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not ready")
    if not images:
        raise HTTPException(status_code=400, detail="No images supplied")

    try:
        analyzer = _pipeline.get_analyzer()
    except ValueError as exc:
        raise HTTPException(status_code=503, detail=f"Analysis unavailable: {exc}")

    uploads = await _read_uploads(images)
    results = []
    for index, upload in enumerate(uploads):
        try:
            reply = await run_in_threadpool(analyzer.analyze, upload.data, upload.mime_type)
            raw = parse_raw_metrics(reply)
        except Exception as exc:
            logger.warning("Inline analysis of %s failed: %s", upload.filename, exc)
            results.append(_failed_item(upload.filename, index, str(exc)))
            continue

        scored = score_chive_analysis(raw)
        results.append({
            "filename": upload.filename,
            "bunchIndex": index,
            "averageThicknessMm": raw.averageThicknessMm,
            "thicknessStdDevMm": raw.thicknessStdDevMm,
            "cutQualityLabel": raw.cutQualityLabel,
            "rawNotes": raw.rawNotes,
            "regions": [r.model_dump() for r in raw.regions],
            **scored.model_dump(),
        })

    return {"analyzedCount": len(uploads), "results": results}


def _failed_item(filename, index: int, error: str) -> dict:
    return {
        "filename": filename,
        "bunchIndex": index,
        "averageThicknessMm": None,
        "thicknessStdDevMm": None,
        "cutQualityLabel": "unknown",
        "overallScore": None,
        "thicknessConsistencyScore": None,
        "cutQualityScore": None,
        "notes": f"Analysis failed: {error}",
        "rawNotes": "",
        "regions": [],
    }
