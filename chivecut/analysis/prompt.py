"""Prompt for the chive-cut vision analysis."""

SYSTEM_PROMPT = (
    "You are an expert chef and knife skills instructor evaluating photos of cut chives. "
    "You must estimate chive thickness and cut quality and respond ONLY as JSON."
)

USER_PROMPT = (
    "Examine this image of cut chives. "
    "1) Divide the image into a 3x3 grid of regions, indexed row-major as "
    "r1c1, r1c2, r1c3, r2c1, r2c2, r2c3, r3c1, r3c2, r3c3. "
    "2) For each region, detect the chive pieces visible in that region and estimate: "
    "regionAverageThicknessMm (average thickness of chive pieces in that region, in millimetres), "
    "regionThicknessStdDevMm (standard deviation of thickness in that region, in millimetres), and "
    'regionCutQualityLabel (one of "clean", "mixed", "ragged", or "no_chives"). '
    'Use "no_chives" whenever there are only a few stray pieces or effectively no dense '
    "cluster of chives in that region. "
    "3) Using all regions together, compute overall image-level metrics: "
    "averageThicknessMm (overall average thickness across all regions that contain chives), "
    "thicknessStdDevMm (overall standard deviation of thickness), and "
    'cutQualityLabel (one of "clean", "mixed", or "ragged" for overall cut quality). '
    "When estimating millimetres, assume typical grocery-store chives and use your best "
    "judgement; do not leave fields blank just because the scale is approximate. "
    "If the entire image lacks any finely bunched group of chopped chives, set "
    'averageThicknessMm to 0, thicknessStdDevMm to 0, cutQualityLabel to "unknown", '
    "and explain in rawNotes that there are not enough chives to score. "
    "4) Provide a short explanation of what you see about the cuts and consistency. "
    "Respond ONLY as a single JSON object in valid JSON syntax (no markdown, no extra prose) "
    'with this exact shape: { "averageThicknessMm": number, "thicknessStdDevMm": number, '
    '"cutQualityLabel": "clean" | "mixed" | "ragged" | "unknown", "regions": [ { "id": "r1c1", '
    '"regionAverageThicknessMm": number, "regionThicknessStdDevMm": number, '
    '"regionCutQualityLabel": "clean" | "mixed" | "ragged" | "no_chives" } ], "rawNotes": string }. '
    'The "regions" array MUST contain exactly 9 objects, one for each of: '
    "r1c1, r1c2, r1c3, r2c1, r2c2, r2c3, r3c1, r3c2, r3c3. "
    "All numeric fields must be finite numbers (use approximate values if necessary, "
    "never null or undefined)."
)
