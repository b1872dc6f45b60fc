"""Exception types raised by the analysis pipeline."""


class SubmissionError(ValueError):
    """Caller input rejected at submission time (no images, missing ids, bad upload)."""


class JobError(Exception):
    """A failure that is terminal for a single job. Recorded as a failed result."""


class ImageFetchError(JobError):
    """The worker could not retrieve the image bytes behind a job's imageRef."""


class AnalysisError(JobError):
    """The external vision-analysis service returned an error or no content."""


class MalformedResponseError(JobError):
    """The analysis response held no JSON object of the expected shape."""


class StatusReadError(Exception):
    """A status read failed for a reason that may clear up (server error, network)."""
