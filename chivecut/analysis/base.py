"""Vision analyzer interface."""

from abc import ABC, abstractmethod


class VisionAnalyzer(ABC):
    """Sends one image to an external vision model and returns its reply text.

    The reply is expected to hold a metrics JSON object, possibly wrapped in
    prose; see chivecut.analysis.parsing. Implementations raise AnalysisError
    when the service fails or returns no content.
    """

    @abstractmethod
    def analyze(self, image: bytes, mime_type: str) -> str:
        ...
