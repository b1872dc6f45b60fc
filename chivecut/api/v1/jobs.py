"""Job status API: poll a submitted job for its scored result."""

from fastapi import APIRouter, HTTPException

router = APIRouter()

# Set by main.py during lifespan
_pipeline = None


def set_pipeline(pipeline):
    global _pipeline
    _pipeline = pipeline


@router.get("/jobs/{job_id}")
def get_job_status(job_id: str):
    """Get the current status of a job.

    Completed jobs carry both the raw model metrics and scores computed from
    them at read time. Failed jobs carry the error message.
    """
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not ready")

    view = _pipeline.status.get_status(job_id)
    if not view.found:
        raise HTTPException(status_code=404, detail="Job not found")

    # Drop absent sections (raw/scored/error) but keep nulls inside scores
    return {k: v for k, v in view.model_dump(mode="json").items() if v is not None}
