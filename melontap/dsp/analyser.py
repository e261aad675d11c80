"""Time-domain samples to byte magnitude spectra.

Reproduces the behaviour of a browser ``AnalyserNode`` so thresholds tuned
against byte spectra (0-255) carry over: Blackman window, per-bin magnitude
smoothing across frames, then a linear map of the dB range onto bytes.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from melontap.util.math import db20

DEFAULT_FFT_SIZE = 16384
DEFAULT_MIN_DB = -70.0
DEFAULT_MAX_DB = -10.0
DEFAULT_SMOOTHING = 0.5


def blackman_window(size: int, alpha: float = 0.16) -> np.ndarray:
    """Blackman window with the periodic (``n / N``) denominator."""
    n = np.arange(size, dtype=np.float64)
    a0 = (1.0 - alpha) / 2.0
    a1 = 0.5
    a2 = alpha / 2.0
    return a0 - a1 * np.cos(2.0 * np.pi * n / size) + a2 * np.cos(4.0 * np.pi * n / size)


def bytes_from_db(spectrum_db: np.ndarray, min_db: float, max_db: float) -> np.ndarray:
    """Linearly map ``[min_db, max_db]`` onto ``[0, 255]`` with clipping."""
    scale = 255.0 / (max_db - min_db)
    scaled = np.floor(scale * (np.asarray(spectrum_db, dtype=np.float64) - min_db))
    return np.clip(scaled, 0, 255).astype(np.uint8)


class SpectrumAnalyser:
    """Stateful analyser producing one byte spectrum per call."""

    def __init__(
        self,
        fft_size: int = DEFAULT_FFT_SIZE,
        *,
        min_db: float = DEFAULT_MIN_DB,
        max_db: float = DEFAULT_MAX_DB,
        smoothing: float = DEFAULT_SMOOTHING,
    ):
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError("fft_size must be a power of two >= 32")
        if max_db <= min_db:
            raise ValueError("max_db must be greater than min_db")
        self.fft_size = int(fft_size)
        self.min_db = float(min_db)
        self.max_db = float(max_db)
        self.smoothing = float(np.clip(smoothing, 0.0, 1.0))
        self._window = blackman_window(self.fft_size)
        self._smoothed: Optional[np.ndarray] = None

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        self._smoothed = None

    def _latest_block(self, samples: np.ndarray) -> np.ndarray:
        data = np.asarray(samples, dtype=np.float64).reshape(-1)
        if data.size >= self.fft_size:
            return data[-self.fft_size :]
        # Zero-pad at the front so the newest samples stay aligned at the end.
        block = np.zeros(self.fft_size, dtype=np.float64)
        block[self.fft_size - data.size :] = data
        return block

    def magnitude(self, samples: np.ndarray) -> np.ndarray:
        """Smoothed linear magnitudes for the most recent ``fft_size`` samples."""
        block = self._latest_block(samples) * self._window
        spectrum = np.fft.rfft(block, n=self.fft_size)[: self.bin_count]
        mag = np.abs(spectrum) / self.fft_size
        if self._smoothed is None:
            smoothed = (1.0 - self.smoothing) * mag
        else:
            smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * mag
        self._smoothed = smoothed
        return smoothed

    def byte_frequency_data(self, samples: np.ndarray) -> np.ndarray:
        """Return the byte spectrum (length ``fft_size // 2``) for ``samples``."""
        return bytes_from_db(db20(self.magnitude(samples)), self.min_db, self.max_db)
