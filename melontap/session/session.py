"""A single tap measurement: one capture handle, one detection window."""

from __future__ import annotations

import time
import uuid
from typing import Optional

from melontap.capture.base import AudioCaptureService, CaptureHandle
from melontap.detection.detector import ThumpDetector
from melontap.detection.types import (
    DetectionEvent,
    DetectionWindow,
    RipenessResult,
    ThresholdPair,
)
from melontap.io.profiles import SessionConfig
from melontap.scoring.ripeness import compute
from melontap.util.errors import CaptureFailure, MelonTapError
from melontap.util.logging import get_logger, log_exception
from melontap.visual.sink import VisualizationSink, dispatch

logger = get_logger(__name__)


class Session:
    """Listen on one capture handle until a thump is scored or ``stop()``.

    The configuration is a snapshot taken at start; the detection window and
    thresholds are derived from it once and stay fixed for the session.
    """

    def __init__(
        self,
        config: SessionConfig,
        detector: ThumpDetector,
        capture: AudioCaptureService,
        handle: CaptureHandle,
        *,
        sink: Optional[VisualizationSink] = None,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.config = config
        self.detector = detector
        self.capture = capture
        self.handle = handle
        self.sink = sink
        self.event: Optional[DetectionEvent] = None
        self.result: Optional[RipenessResult] = None
        self.error: Optional[BaseException] = None
        self.stopped = False
        self.started_at = time.monotonic()
        detector.start(config.mass_kg, config.sensitivity, handle.sample_rate, handle.fft_size)
        if detector.window is None or detector.thresholds is None:
            raise RuntimeError("Detector started without a detection window")
        self.window: DetectionWindow = detector.window
        self.thresholds: ThresholdPair = detector.thresholds
        self.frames_seen = 0
        logger.info(
            "Listening: band bins [%d, %d) at %.3f Hz/bin, thresholds abs=%.0f rel=%.0f, mass=%.2f kg",
            self.window.min_index,
            self.window.max_index,
            self.window.bin_hz,
            self.thresholds.absolute_threshold,
            self.thresholds.relative_threshold,
            config.mass_kg,
            extra={"session_id": self.session_id},
        )

    @property
    def completed(self) -> bool:
        return self.result is not None

    async def run(self) -> Optional[RipenessResult]:
        """Consume frames until detection or stop; return the result, if any."""
        try:
            async for frame in self.handle.frames():
                if self.stopped:
                    break
                dispatch(self.sink, frame, self.window.min_index, self.window.max_index)
                if self.stopped:
                    break
                self.frames_seen += 1
                event = self.detector.evaluate(frame)
                if event is not None:
                    self._complete(event)
                    break
        except MelonTapError as exc:
            self.error = exc
            raise
        except Exception as exc:
            self.error = exc
            log_exception(
                logger,
                "Frame stream failed",
                error_type=CaptureFailure.error_type,
                session_id=self.session_id,
            )
            raise CaptureFailure(f"Frame stream failed: {exc}") from exc
        finally:
            self.stop()
        return self.result

    def _complete(self, event: DetectionEvent) -> None:
        self.event = event
        self.result = compute(event.base_frequency_hz, self.config.mass_kg)
        self.detector.acknowledge()
        logger.info(
            "Thump at %.1f Hz (peak %.0f over mean %.1f): index=%.0f score=%.1f brix=%.1f verdict=%s",
            event.base_frequency_hz,
            event.peak_amplitude,
            event.average_amplitude,
            self.result.ripeness_index,
            self.result.ripeness_score,
            self.result.sweetness_brix,
            self.result.verdict.value,
            extra={
                "session_id": self.session_id,
                "frequency_hz": event.base_frequency_hz,
                "frame_index": self.frames_seen,
                "duration_ms": int((time.monotonic() - self.started_at) * 1000),
            },
        )

    def stop(self) -> None:
        """End the session and release capture. Safe to call repeatedly."""
        if self.stopped:
            return
        self.stopped = True
        self.detector.stop()
        self.capture.stop(self.handle)
        logger.debug(
            "Session stopped after %d frames",
            self.frames_seen,
            extra={"session_id": self.session_id},
        )
