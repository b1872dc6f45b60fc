"""Measurement types exchanged between the vision service and the scorer."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

# Row-major 3x3 grid the vision prompt asks the model to report on
REGION_IDS = (
    "r1c1", "r1c2", "r1c3",
    "r2c1", "r2c2", "r2c3",
    "r3c1", "r3c2", "r3c3",
)

NO_CHIVES = "no_chives"


class RegionMetrics(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Optional[str] = None
    regionAverageThicknessMm: Optional[float] = None
    regionThicknessStdDevMm: Optional[float] = None
    regionCutQualityLabel: Optional[str] = None  # clean | mixed | ragged | no_chives

    @field_validator("regionCutQualityLabel")
    @classmethod
    def _lower_label(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def has_chives(self) -> bool:
        return bool(self.regionCutQualityLabel) and self.regionCutQualityLabel != NO_CHIVES


class RawMetrics(BaseModel):
    """Image-level and per-region measurements as reported by the model."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    averageThicknessMm: Optional[float] = None
    thicknessStdDevMm: Optional[float] = None
    cutQualityLabel: str = "unknown"
    rawNotes: str = ""
    regions: List[RegionMetrics] = []

    @field_validator("cutQualityLabel", mode="before")
    @classmethod
    def _default_label(cls, v):
        return "unknown" if v is None else v

    @field_validator("rawNotes", mode="before")
    @classmethod
    def _default_notes(cls, v):
        return "" if v is None else v


class ScoredMetrics(BaseModel):
    thicknessConsistencyScore: Optional[float] = None
    cutQualityScore: Optional[float] = None
    overallScore: Optional[int] = None
    notes: str = ""
