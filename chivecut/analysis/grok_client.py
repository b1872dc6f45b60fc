"""xAI Grok vision client (OpenAI-compatible chat completions API)."""

import base64
import logging
from typing import Any

import httpx
import openai
from openai import OpenAI

from chivecut.analysis.base import VisionAnalyzer
from chivecut.analysis.prompt import SYSTEM_PROMPT, USER_PROMPT
from chivecut.errors import AnalysisError

logger = logging.getLogger(__name__)


class GrokVisionClient(VisionAnalyzer):
    """Calls grok chat completions with the image inlined as a data URL.

    Retries are disabled: a failed call fails the job.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.x.ai/v1",
        model: str = "grok-4-fast",
        timeout: float = 60.0,
        temperature: float = 0.2,
    ):
        if not api_key:
            raise ValueError("XAI API key is not configured")
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            http_client=httpx.Client(timeout=httpx.Timeout(timeout, connect=5.0)),
            max_retries=0,
        )
        self._model = model
        self._temperature = temperature
        logger.info("GrokVisionClient initialized (model=%s)", model)

    def analyze(self, image: bytes, mime_type: str) -> str:
        data_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                temperature=self._temperature,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": USER_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    },
                ],
            )
        except openai.APIStatusError as exc:
            raise AnalysisError(f"X.AI API error: {exc.status_code} - {exc.message}") from exc
        except openai.APIError as exc:
            raise AnalysisError(f"X.AI API error: {exc}") from exc

        if not response.choices:
            raise AnalysisError("No content returned from X.AI API")
        text = content_to_text(response.choices[0].message.content)
        if not text:
            raise AnalysisError("No content returned from X.AI API")

        logger.debug("Vision call completed (model=%s, chars=%d)", self._model, len(text))
        return text


def content_to_text(content: Any) -> str:
    """Flatten a message content (string, list of parts, or part object) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "\n".join(_part_text(part) for part in content)
    return _part_text(content)


def _part_text(part: Any) -> str:
    if isinstance(part, str):
        return part
    if isinstance(part, dict):
        return part.get("text") or part.get("content") or ""
    return getattr(part, "text", None) or getattr(part, "content", None) or ""
