"""Microphone capture via sounddevice, emitting byte spectra per tick."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, AsyncIterator

import numpy as np

from melontap.capture.base import AudioCaptureService, CaptureHandle
from melontap.dsp.analyser import SpectrumAnalyser
from melontap.io.profiles import CaptureProfile
from melontap.util.errors import CaptureFailure, PermissionDenied, UnsupportedEnvironment
from melontap.util.logging import get_logger

try:  # pragma: no cover - optional dependency
    import sounddevice as sd  # type: ignore

    HAVE_SOUNDDEVICE = True
except Exception:  # pragma: no cover - optional dependency (PortAudio may be missing)
    HAVE_SOUNDDEVICE = False
    sd = None  # type: ignore

logger = get_logger(__name__)

_PERMISSION_HINTS = ("permission", "denied", "not authorized", "access")


class SampleRing:
    """Fixed-size float32 history of the most recent samples. Thread-safe."""

    def __init__(self, capacity: int):
        self.capacity = int(capacity)
        self.buffer = np.zeros(self.capacity, dtype=np.float32)
        self.write_idx = 0
        self.lock = threading.Lock()

    def push(self, samples: np.ndarray) -> None:
        samples = np.asarray(samples, dtype=np.float32).reshape(-1)
        n = samples.size
        if n == 0:
            return
        with self.lock:
            if n >= self.capacity:
                self.buffer[:] = samples[-self.capacity :]
                self.write_idx = 0
                return
            end = self.write_idx + n
            if end <= self.capacity:
                self.buffer[self.write_idx : end] = samples
            else:
                split = self.capacity - self.write_idx
                self.buffer[self.write_idx :] = samples[:split]
                self.buffer[: n - split] = samples[split:]
            self.write_idx = end % self.capacity

    def latest(self) -> np.ndarray:
        """Oldest-to-newest copy of the buffer."""
        with self.lock:
            return np.concatenate((self.buffer[self.write_idx :], self.buffer[: self.write_idx]))


def _classify_stream_error(exc: BaseException) -> Exception:
    text = str(exc).lower()
    if any(hint in text for hint in _PERMISSION_HINTS):
        return PermissionDenied(f"Microphone access denied: {exc}")
    return CaptureFailure(f"Could not open audio input: {exc}")


class MicrophoneCaptureHandle(CaptureHandle):
    def __init__(self, profile: CaptureProfile, sample_rate: float):
        super().__init__(sample_rate, profile.fft_size)
        self.tick_s = 1.0 / profile.tick_hz if profile.tick_hz > 0 else 0.0
        self.ring = SampleRing(profile.fft_size)
        self.analyser = SpectrumAnalyser(
            profile.fft_size,
            min_db=profile.min_db,
            max_db=profile.max_db,
            smoothing=profile.smoothing,
        )
        self.stream: Any = None
        self.overflows = 0

    def _callback(self, indata, frames, time_info, status) -> None:
        if status and getattr(status, "input_overflow", False):
            self.overflows += 1
        self.ring.push(indata[:, 0] if indata.ndim > 1 else indata)

    async def frames(self) -> AsyncIterator[np.ndarray]:
        while not self.closed:
            yield self.analyser.byte_frequency_data(self.ring.latest())
            await asyncio.sleep(self.tick_s)

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        stream = self.stream
        self.stream = None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as exc:
            logger.debug("Stream close error: %s", exc)
        logger.info("Input stream stopped")


class MicrophoneCaptureService(AudioCaptureService):
    """Live capture from the default (or a named) input device."""

    def _resolve_device(self, profile: CaptureProfile) -> Any:
        if profile.device is None:
            return None
        text = str(profile.device).strip()
        return int(text) if text.isdigit() else text

    def start(self, profile: CaptureProfile) -> MicrophoneCaptureHandle:
        if not HAVE_SOUNDDEVICE:
            raise UnsupportedEnvironment("sounddevice/PortAudio not available; install with: pip install sounddevice")
        device = self._resolve_device(profile)
        try:
            info = sd.query_devices(device, kind="input")
        except (ValueError, sd.PortAudioError) as exc:
            raise UnsupportedEnvironment(f"No usable audio input device: {exc}") from exc

        sample_rate = float(profile.sample_rate or info.get("default_samplerate") or 0.0)
        handle = MicrophoneCaptureHandle(profile, sample_rate)
        logger.debug("Opening input stream on '%s' at %.0f Hz", info.get("name", device), sample_rate)
        try:
            handle.stream = sd.InputStream(
                device=device,
                channels=1,
                samplerate=sample_rate,
                dtype="float32",
                callback=handle._callback,
                blocksize=0,
            )
            handle.stream.start()
        except sd.PortAudioError as exc:
            handle.close()
            raise _classify_stream_error(exc) from exc
        logger.info("Input stream started (%d Hz, %d-point FFT)", int(sample_rate), profile.fft_size)
        return handle
