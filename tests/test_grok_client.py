"""Grok vision client tests (OpenAI SDK mocked out)."""

import base64
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from chivecut.analysis.grok_client import GrokVisionClient, content_to_text
from chivecut.errors import AnalysisError


def completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def client():
    grok = GrokVisionClient(api_key="test-key")
    grok._client = MagicMock()
    return grok


class TestAnalyze:
    def test_sends_image_as_data_url(self, client):
        client._client.chat.completions.create.return_value = completion('{"a": 1}')

        reply = client.analyze(b"\x89PNG", "image/png")

        assert reply == '{"a": 1}'
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "grok-4-fast"
        assert kwargs["temperature"] == 0.2
        assert kwargs["response_format"] == {"type": "json_object"}
        image_part = kwargs["messages"][1]["content"][1]
        expected = "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
        assert image_part["image_url"]["url"] == expected

    def test_empty_content(self, client):
        client._client.chat.completions.create.return_value = completion(None)

        with pytest.raises(AnalysisError, match="No content"):
            client.analyze(b"x", "image/png")

    def test_no_choices(self, client):
        client._client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        with pytest.raises(AnalysisError, match="No content"):
            client.analyze(b"x", "image/png")

    def test_api_status_error(self, client):
        request = httpx.Request("POST", "https://api.x.ai/v1/chat/completions")
        response = httpx.Response(429, request=request)
        client._client.chat.completions.create.side_effect = openai.RateLimitError(
            "rate limited", response=response, body=None
        )

        with pytest.raises(AnalysisError, match="429"):
            client.analyze(b"x", "image/png")

    def test_connection_error(self, client):
        request = httpx.Request("POST", "https://api.x.ai/v1/chat/completions")
        client._client.chat.completions.create.side_effect = openai.APITimeoutError(request)

        with pytest.raises(AnalysisError):
            client.analyze(b"x", "image/png")

    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="not configured"):
            GrokVisionClient(api_key="")


class TestContentToText:
    def test_string(self):
        assert content_to_text("abc") == "abc"

    def test_list_of_parts(self):
        parts = ["intro", {"type": "text", "text": '{"a": 1}'}, SimpleNamespace(text="end")]

        assert content_to_text(parts) == 'intro\n{"a": 1}\nend'

    def test_single_part_object(self):
        assert content_to_text({"content": "xyz"}) == "xyz"

    def test_none(self):
        assert content_to_text(None) == ""
