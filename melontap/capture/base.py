"""Capture service contract shared by microphone and synthetic sources."""

from __future__ import annotations

from typing import AsyncIterator

import numpy as np

from melontap.io.profiles import CaptureProfile


class CaptureHandle:
    """One started capture: a fixed sample rate / FFT size and a frame stream.

    ``frames()`` yields one byte spectrum per scheduling tick and suspends
    between ticks. It finishes once the handle is closed.
    """

    sample_rate: float
    fft_size: int

    def __init__(self, sample_rate: float, fft_size: int):
        self.sample_rate = float(sample_rate)
        self.fft_size = int(fft_size)
        self.closed = False

    def frames(self) -> AsyncIterator[np.ndarray]:
        raise NotImplementedError

    def close(self) -> None:
        self.closed = True


class AudioCaptureService:
    """Opens capture handles. ``stop`` is idempotent."""

    def start(self, profile: CaptureProfile) -> CaptureHandle:
        raise NotImplementedError

    def stop(self, handle: CaptureHandle) -> None:
        if handle is not None and not handle.closed:
            handle.close()
