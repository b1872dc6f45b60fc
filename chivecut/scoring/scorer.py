"""Chive-cut scorer: deterministic rubric over raw per-region measurements.

Scores are never stored. They are recomputed from the raw metrics on every
read, so a rubric change applies to every stored result at once.
"""

import math
from collections import Counter
from typing import Optional

from chivecut.scoring.metrics import REGION_IDS, RawMetrics, ScoredMetrics


# Std dev (mm) at which thickness consistency bottoms out at 0
MAX_STD_DEV_MM = 1.5

# Plausible range for average chive thickness, exclusive lower bound
MIN_THICKNESS_MM = 0.0
MAX_THICKNESS_MM = 5.0

CUT_QUALITY_SCORES = {
    "clean": 1.0,
    "mixed": 0.7,
    "ragged": 0.35,
}
UNKNOWN_CUT_QUALITY_SCORE = 0.5

# Consistency weighs slightly more than the cut label
WEIGHTS = {
    "consistency": 0.6,
    "quality": 0.4,
}
MISSING_COMPONENT_SCORE = 0.5

NO_CHIVES_NOTE = "No regions with chives detected; score not computed."
SINGLE_REGION_NOTE = (
    "Insufficient chive coverage (only one region contains chives); score not computed."
)
IMPLAUSIBLE_THICKNESS_NOTE = (
    "Model reported an implausible average thickness for chives; score not computed."
)
INCOMPLETE_GRID_NOTE = (
    "Model did not report exactly one entry for each of the 9 grid regions; "
    "score not computed."
)
DEFAULT_NOTE = "Scored based on thickness uniformity and cleanliness of cuts."


def score_chive_analysis(raw: RawMetrics) -> ScoredMetrics:
    """Convert raw metrics into consistency, cut quality and overall scores.

    Anti-cheat guards return all-null scores when:
      - the region grid is not the 9 fixed cells, each reported once
      - no region contains chives
      - only one region contains chives
      - the average thickness is outside (0, 5] mm

    Returns:
        ScoredMetrics with scores in [0, 1] and an integer overall score in [0, 100].
    """
    notes = raw.rawNotes.strip()

    if not _is_complete_grid(raw):
        return _unscored(INCOMPLETE_GRID_NOTE)

    active = [r for r in raw.regions if r.has_chives]

    if not active:
        if notes:
            return _unscored(f"{raw.rawNotes} ({NO_CHIVES_NOTE})")
        return _unscored(NO_CHIVES_NOTE)

    if len(active) == 1:
        return _unscored(SINGLE_REGION_NOTE)

    avg = raw.averageThicknessMm
    if avg is not None and not (MIN_THICKNESS_MM < avg <= MAX_THICKNESS_MM):
        return _unscored(IMPLAUSIBLE_THICKNESS_NOTE)

    consistency = _thickness_consistency(raw.thicknessStdDevMm)
    quality = CUT_QUALITY_SCORES.get(raw.cutQualityLabel.lower(), UNKNOWN_CUT_QUALITY_SCORE)

    combined = (
        _or_default(consistency) * WEIGHTS["consistency"]
        + _or_default(quality) * WEIGHTS["quality"]
    )
    overall = _round_half_up(combined * 100)

    return ScoredMetrics(
        thicknessConsistencyScore=consistency,
        cutQualityScore=quality,
        overallScore=max(0, min(100, overall)),
        notes=raw.rawNotes if notes else DEFAULT_NOTE,
    )


def _is_complete_grid(raw: RawMetrics) -> bool:
    counts = Counter(r.id for r in raw.regions)
    return len(raw.regions) == len(REGION_IDS) and all(
        counts[region_id] == 1 for region_id in REGION_IDS
    )


def _thickness_consistency(std_dev: Optional[float]) -> Optional[float]:
    """0 mm std dev -> 1.0, 1.5 mm or more -> 0.0."""
    if std_dev is None or not math.isfinite(std_dev):
        return None
    return round(min(1.0, max(0.0, 1.0 - std_dev / MAX_STD_DEV_MM)), 2)


def _or_default(score: Optional[float]) -> float:
    return MISSING_COMPONENT_SCORE if score is None else score


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _unscored(notes: str) -> ScoredMetrics:
    return ScoredMetrics(
        thicknessConsistencyScore=None,
        cutQualityScore=None,
        overallScore=None,
        notes=notes,
    )
