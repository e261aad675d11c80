"""Band indexing and per-band statistics over magnitude spectra."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from melontap.detection.types import DetectionWindow

THUMP_BAND_LOW_HZ = 100.0
THUMP_BAND_HIGH_HZ = 300.0


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def bin_width_hz(sample_rate: float, fft_size: int) -> float:
    """Frequency spacing between adjacent bins, 0.0 for unusable inputs."""
    if fft_size <= 0 or not math.isfinite(sample_rate) or sample_rate <= 0:
        return 0.0
    return float(sample_rate) / float(fft_size)


def detection_window(
    sample_rate: float,
    fft_size: int,
    low_hz: float = THUMP_BAND_LOW_HZ,
    high_hz: float = THUMP_BAND_HIGH_HZ,
) -> DetectionWindow:
    """Map a frequency band onto a half-open bin range.

    Edges round half up. Pathological sample rates or FFT sizes yield a
    degenerate window rather than an error.
    """
    bin_hz = bin_width_hz(sample_rate, fft_size)
    if bin_hz <= 0.0:
        return DetectionWindow(min_index=0, max_index=0, bin_hz=0.0)
    min_index = _round_half_up(low_hz / bin_hz)
    max_index = _round_half_up(high_hz / bin_hz)
    return DetectionWindow(min_index=min_index, max_index=max_index, bin_hz=bin_hz)


def band_statistics(
    frame: Sequence[float] | np.ndarray,
    window: DetectionWindow,
) -> Optional[Tuple[float, int, float]]:
    """Return ``(peak_amplitude, peak_index, average_amplitude)`` for a band.

    ``peak_index`` is absolute (an index into ``frame``) and refers to the
    first bin holding the maximum. Bins past the end of the frame are ignored;
    ``None`` is returned when nothing of the band remains.
    """
    if window.degenerate:
        return None
    data = np.asarray(frame, dtype=np.float64).reshape(-1)
    start = max(0, window.min_index)
    stop = min(window.max_index, data.size)
    if stop <= start:
        return None
    band = data[start:stop]
    offset = int(np.argmax(band))
    return float(band[offset]), start + offset, float(np.mean(band))
