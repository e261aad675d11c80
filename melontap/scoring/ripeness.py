"""Ripeness scoring from tap frequency and fruit mass.

The ripeness index combines the fundamental tap frequency with mass as
``f^2 * m^(2/3)``: a lower index means a softer, riper fruit. Verdict
boundaries, the Brix estimate and the 0-100 score are all derived from that
single number with plain float arithmetic; rounding is left to presentation.
"""

from __future__ import annotations

import math

from melontap.detection.types import RipenessResult, Verdict
from melontap.util.errors import ValidationError
from melontap.util.math import clamp

RIPE_BELOW_INDEX = 74_000.0
UNRIPE_FROM_INDEX = 85_000.0

SCORE_BEST_INDEX = 60_000.0
SCORE_WORST_INDEX = 95_000.0

BRIX_AT_BEST_INDEX = 12.0
BRIX_PER_INDEX_SPAN = 4.0
BRIX_INDEX_SPAN = 30_000.0
BRIX_MIN = 5.0
BRIX_MAX = 13.0

VERDICT_CLASSES = {
    Verdict.RIPE: "good",
    Verdict.BORDERLINE: "warn",
    Verdict.UNRIPE: "bad",
}

VERDICT_LABELS = {
    Verdict.RIPE: "Ripe, sweet and ready",
    Verdict.BORDERLINE: "Borderline, could use a few more days",
    Verdict.UNRIPE: "Unripe, leave it on the shelf",
}


def validate_mass(mass_kg: float) -> float:
    """Return ``mass_kg`` as float or raise ``ValidationError``."""
    try:
        mass = float(mass_kg)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"mass must be a number, got {mass_kg!r}") from exc
    if not math.isfinite(mass) or mass <= 0.0:
        raise ValidationError(f"mass must be a positive number of kilograms, got {mass_kg!r}")
    return mass


def ripeness_index(frequency_hz: float, mass_kg: float) -> float:
    return float(frequency_hz) ** 2 * validate_mass(mass_kg) ** (2.0 / 3.0)


def classify(index: float) -> Verdict:
    if index < RIPE_BELOW_INDEX:
        return Verdict.RIPE
    if index < UNRIPE_FROM_INDEX:
        return Verdict.BORDERLINE
    return Verdict.UNRIPE


def sweetness_brix(index: float) -> float:
    raw = BRIX_AT_BEST_INDEX - BRIX_PER_INDEX_SPAN * (index - SCORE_BEST_INDEX) / BRIX_INDEX_SPAN
    return clamp(raw, BRIX_MIN, BRIX_MAX)


def ripeness_score(index: float) -> float:
    """Normalize the index to 0-100; 60000 scores 100 and 95000 scores 0."""
    raw = 100.0 * (SCORE_WORST_INDEX - index) / (SCORE_WORST_INDEX - SCORE_BEST_INDEX)
    return clamp(raw, 0.0, 100.0)


def result_from_index(frequency_hz: float, index: float) -> RipenessResult:
    verdict = classify(index)
    return RipenessResult(
        base_frequency_hz=float(frequency_hz),
        ripeness_index=index,
        ripeness_score=ripeness_score(index),
        sweetness_brix=sweetness_brix(index),
        verdict=verdict,
        verdict_class=VERDICT_CLASSES[verdict],
        label=VERDICT_LABELS[verdict],
    )


def compute(frequency_hz: float, mass_kg: float) -> RipenessResult:
    """Score a detected tap frequency for a fruit of the given mass."""
    return result_from_index(frequency_hz, ripeness_index(frequency_hz, mass_kg))
