"""Thump detection state machine over per-tick byte spectra."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from melontap.detection.types import (
    DetectionEvent,
    DetectionWindow,
    DetectorState,
    ThresholdPair,
)
from melontap.dsp.band import band_statistics, detection_window
from melontap.dsp.sensitivity import thresholds
from melontap.scoring.ripeness import validate_mass
from melontap.util.logging import get_logger

logger = get_logger(__name__)


class ThumpDetector:
    """Decide, frame by frame, when a tap has landed in the thump band.

    A frame is a thump when the band peak clears both an absolute floor and
    the band mean by a relative margin. The absolute test rejects quiet
    frames; the relative test rejects loud but flat ones such as room noise.

    ``IDLE -> LISTENING`` on :meth:`start`, ``LISTENING -> DETECTED`` when
    :meth:`evaluate` emits an event, ``DETECTED -> IDLE`` on
    :meth:`acknowledge`. :meth:`stop` returns to ``IDLE`` from anywhere.
    """

    def __init__(self) -> None:
        self.state = DetectorState.IDLE
        self.window: Optional[DetectionWindow] = None
        self.thresholds: Optional[ThresholdPair] = None
        self.mass_kg: Optional[float] = None
        self.frames_seen = 0

    @property
    def listening(self) -> bool:
        return self.state is DetectorState.LISTENING

    def start(self, mass_kg: float, sensitivity: float, sample_rate: float, fft_size: int) -> None:
        if self.state is not DetectorState.IDLE:
            self.stop()
        mass = validate_mass(mass_kg)
        self.mass_kg = mass
        self.window = detection_window(sample_rate, fft_size)
        self.thresholds = thresholds(sensitivity)
        self.frames_seen = 0
        self.state = DetectorState.LISTENING
        if self.window.degenerate:
            logger.warning(
                "Thump band collapses to no bins at %.1f Hz / %d-point FFT; detection disabled",
                sample_rate,
                fft_size,
            )

    def evaluate(self, frame: Sequence[float] | np.ndarray) -> Optional[DetectionEvent]:
        if self.state is not DetectorState.LISTENING:
            return None
        window, pair = self.window, self.thresholds
        if window is None or pair is None:
            raise RuntimeError("ThumpDetector is listening without a detection window")
        self.frames_seen += 1
        stats = band_statistics(frame, window)
        if stats is None:
            return None
        peak, peak_index, average = stats
        if peak > pair.absolute_threshold and peak > average + pair.relative_threshold:
            self.state = DetectorState.DETECTED
            return DetectionEvent(
                base_frequency_hz=peak_index * window.bin_hz,
                peak_index=peak_index,
                peak_amplitude=peak,
                average_amplitude=average,
            )
        return None

    def acknowledge(self) -> None:
        if self.state is DetectorState.DETECTED:
            self.state = DetectorState.IDLE

    def stop(self) -> None:
        self.state = DetectorState.IDLE
