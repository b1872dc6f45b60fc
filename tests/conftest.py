"""Shared fixtures: in-memory pipeline pieces, fake vision analyzer, sample images."""

import io
import json
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

from chivecut.analysis.base import VisionAnalyzer
from chivecut.config import Settings
from chivecut.errors import AnalysisError
from chivecut.jobs.in_process_queue import InMemoryResultStore, InProcessQueue
from chivecut.scoring.metrics import REGION_IDS
from chivecut.storage.media import LocalMediaStore


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAnalyzer(VisionAnalyzer):
    """Returns a canned reply, or raises, and records what it was sent."""

    def __init__(self, reply: Optional[str] = None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[tuple] = []

    def analyze(self, image: bytes, mime_type: str) -> str:
        self.calls.append((image, mime_type))
        if self.error is not None:
            raise self.error
        if self.reply is None:
            raise AnalysisError("No content returned from X.AI API")
        return self.reply


def make_regions(active: int, label: str = "clean") -> List[Dict[str, Any]]:
    """Nine grid regions, the first `active` of them containing chives."""
    regions = []
    for i, region_id in enumerate(REGION_IDS):
        if i < active:
            regions.append({
                "id": region_id,
                "regionAverageThicknessMm": 2.0,
                "regionThicknessStdDevMm": 0.3,
                "regionCutQualityLabel": label,
            })
        else:
            regions.append({"id": region_id, "regionCutQualityLabel": "no_chives"})
    return regions


def make_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "averageThicknessMm": 2.1,
        "thicknessStdDevMm": 0.75,
        "cutQualityLabel": "clean",
        "rawNotes": "Even rings, sharp edges.",
        "regions": make_regions(5),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        queue_backend="memory",
        media_backend="local",
        media_dir=str(tmp_path / "media"),
        xai_api_key="test-key",
        queue_pop_timeout_seconds=0,
        max_upload_bytes=1024 * 1024,
    )


@pytest.fixture
def store(clock):
    return InMemoryResultStore(clock=clock)


@pytest.fixture
def queue(clock):
    return InProcessQueue(visibility_timeout=300, clock=clock)


@pytest.fixture
def media(settings):
    return LocalMediaStore(base_dir=settings.media_dir)


@pytest.fixture
def good_reply():
    return "Here is my analysis:\n" + json.dumps(make_payload()) + "\nHope this helps!"


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), (40, 160, 40)).save(buf, format="PNG")
    return buf.getvalue()
