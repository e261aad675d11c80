"""Visualization sinks fed with every frame a session evaluates."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from melontap.util.logging import get_logger, log_exception

logger = get_logger(__name__)

VisualizationSink = Callable[[np.ndarray, int, int], None]


def dispatch(sink: Optional[VisualizationSink], frame: np.ndarray, min_index: int, max_index: int) -> None:
    """Hand a frame to ``sink``; sink errors are logged and swallowed."""
    if sink is None:
        return
    try:
        sink(frame, min_index, max_index)
    except Exception:
        log_exception(logger, "Visualization sink failed; continuing detection", error_type="sink")


class BandLevelSink:
    """Log a compact band summary every ``every`` frames at DEBUG."""

    def __init__(self, every: int = 30):
        self.every = max(1, int(every))
        self.count = 0
        self.last_peak: Optional[float] = None

    def __call__(self, frame: np.ndarray, min_index: int, max_index: int) -> None:
        self.count += 1
        data = np.asarray(frame)
        band = data[max(0, min_index) : max(0, min(max_index, data.size))]
        if band.size == 0:
            return
        self.last_peak = float(np.max(band))
        if self.count % self.every == 0:
            logger.debug(
                "band[%d:%d] peak=%.0f mean=%.1f",
                min_index,
                max_index,
                self.last_peak,
                float(np.mean(band)),
                extra={"frame_index": self.count},
            )
