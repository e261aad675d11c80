"""Sensitivity dial to detection threshold mapping."""

from __future__ import annotations

import numpy as np

from melontap.detection.types import ThresholdPair

SENSITIVITY_MIN = 1
SENSITIVITY_MAX = 20


def clamp_sensitivity(sensitivity: float) -> float:
    """Clamp a dial value into ``[SENSITIVITY_MIN, SENSITIVITY_MAX]``."""
    value = float(sensitivity)
    if not np.isfinite(value):
        return float(SENSITIVITY_MIN) if value < 0 else float(SENSITIVITY_MAX)
    return float(np.clip(value, SENSITIVITY_MIN, SENSITIVITY_MAX))


def thresholds(sensitivity: float) -> ThresholdPair:
    """Return the (absolute, relative) detection thresholds for a dial value.

    Higher sensitivity lowers both thresholds, making detection easier.
    """
    s = clamp_sensitivity(sensitivity)
    return ThresholdPair(
        absolute_threshold=160.0 - 10.0 * s,
        relative_threshold=45.0 - 3.0 * s,
    )
