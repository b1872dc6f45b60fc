"""Extract the metrics JSON from a vision-model reply.

Models sometimes wrap the JSON payload in explanatory prose or markdown
fences even when asked not to, so we scan for the first well-formed object.
"""

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from chivecut.errors import MalformedResponseError
from chivecut.scoring.metrics import RawMetrics

_decoder = json.JSONDecoder()


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Return the first substring of `text` that decodes to a JSON object."""
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            obj = None
        if isinstance(obj, dict):
            return obj
        start = text.find("{", start + 1)
    return None


def parse_raw_metrics(text: str) -> RawMetrics:
    """Parse a model reply into RawMetrics.

    Raises MalformedResponseError when no JSON object is present or the
    object does not have the metrics shape. Region count is left to the
    scorer.
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response from analysis service")

    payload = extract_json_object(text)
    if payload is None:
        raise MalformedResponseError("No JSON object found in response")

    regions = payload.get("regions")
    if regions is None:
        payload = {**payload, "regions": []}
    elif not isinstance(regions, list):
        raise MalformedResponseError("Response field 'regions' is not a list")

    try:
        return RawMetrics.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"Response JSON has the wrong shape: {exc.error_count()} invalid field(s)"
        ) from exc
