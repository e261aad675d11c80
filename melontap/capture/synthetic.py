"""Deterministic frame sources for tests and dry runs."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Iterable, List, Optional

import numpy as np

from melontap.capture.base import AudioCaptureService, CaptureHandle
from melontap.dsp.band import bin_width_hz
from melontap.io.profiles import CaptureProfile


def synthetic_frame(bin_count: int, noise_level: float = 20.0) -> np.ndarray:
    """Flat byte spectrum at ``noise_level``."""
    return np.full(int(bin_count), float(np.clip(noise_level, 0, 255)), dtype=np.float64)


def synthetic_thump_frame(
    frequency_hz: float,
    *,
    sample_rate: float,
    fft_size: int,
    peak_level: float = 230.0,
    noise_level: float = 20.0,
    spread_bins: int = 2,
) -> np.ndarray:
    """Byte spectrum with a triangular peak centred on ``frequency_hz``."""
    bins = fft_size // 2
    frame = synthetic_frame(bins, noise_level)
    bin_hz = bin_width_hz(sample_rate, fft_size)
    if bin_hz <= 0.0:
        return frame
    center = int(round(frequency_hz / bin_hz))
    spread = max(0, int(spread_bins))
    for offset in range(-spread, spread + 1):
        idx = center + offset
        if 0 <= idx < bins:
            level = peak_level - (peak_level - noise_level) * abs(offset) / (spread + 1)
            frame[idx] = max(frame[idx], level)
    return np.clip(frame, 0, 255)


class SyntheticCaptureHandle(CaptureHandle):
    """Replays a fixed list of frames, one per tick.

    With ``loop_last`` the final frame repeats until the handle is closed,
    which models a microphone that keeps delivering quiet frames.
    """

    def __init__(
        self,
        frames: Iterable[np.ndarray],
        sample_rate: float,
        fft_size: int,
        *,
        tick_s: float = 0.0,
        loop_last: bool = False,
    ):
        super().__init__(sample_rate, fft_size)
        self._frames: List[np.ndarray] = [np.asarray(f) for f in frames]
        self.tick_s = max(0.0, float(tick_s))
        self.loop_last = loop_last
        self.delivered = 0

    async def frames(self) -> AsyncIterator[np.ndarray]:
        idx = 0
        while not self.closed:
            if idx < len(self._frames):
                frame = self._frames[idx]
                idx += 1
            elif self.loop_last and self._frames:
                frame = self._frames[-1]
            else:
                return
            self.delivered += 1
            yield frame
            await asyncio.sleep(self.tick_s)


class SyntheticCaptureService(AudioCaptureService):
    def __init__(
        self,
        frames: Iterable[np.ndarray],
        *,
        sample_rate: Optional[float] = None,
        fft_size: Optional[int] = None,
        loop_last: bool = False,
    ):
        self._frames = list(frames)
        self._sample_rate = sample_rate
        self._fft_size = fft_size
        self.loop_last = loop_last
        self.handles: List[SyntheticCaptureHandle] = []

    def start(self, profile: CaptureProfile) -> SyntheticCaptureHandle:
        tick_s = 1.0 / profile.tick_hz if profile.tick_hz > 0 else 0.0
        handle = SyntheticCaptureHandle(
            self._frames,
            self._sample_rate if self._sample_rate is not None else profile.sample_rate,
            self._fft_size if self._fft_size is not None else profile.fft_size,
            tick_s=tick_s,
            loop_last=self.loop_last,
        )
        self.handles.append(handle)
        return handle
