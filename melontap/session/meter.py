"""Long-lived controller that runs one measurement session at a time."""

from __future__ import annotations

import asyncio
import functools
from dataclasses import replace
from typing import Optional

from melontap.capture.base import AudioCaptureService
from melontap.detection.detector import ThumpDetector
from melontap.detection.types import DetectorState, RipenessResult
from melontap.io.profiles import CaptureProfile, SessionConfig
from melontap.session.session import Session
from melontap.util.errors import MelonTapError
from melontap.util.logging import get_logger
from melontap.visual.sink import VisualizationSink

logger = get_logger(__name__)


class ThumpMeter:
    """Owns one detector and at most one active :class:`Session`.

    Configuration changes made while a session is listening are kept as the
    pending configuration and apply from the next :meth:`start`.
    """

    def __init__(
        self,
        capture: AudioCaptureService,
        *,
        capture_profile: Optional[CaptureProfile] = None,
        config: Optional[SessionConfig] = None,
        sink: Optional[VisualizationSink] = None,
    ):
        self.capture = capture
        self.capture_profile = capture_profile or CaptureProfile()
        self.config = config or SessionConfig()
        self.sink = sink
        self.detector = ThumpDetector()
        self.session: Optional[Session] = None
        self.last_error: Optional[BaseException] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> DetectorState:
        return self.detector.state

    @property
    def listening(self) -> bool:
        return self.detector.listening

    @property
    def result(self) -> Optional[RipenessResult]:
        return self.session.result if self.session is not None else None

    def configure(self, *, mass_kg: Optional[float] = None, sensitivity: Optional[int] = None) -> SessionConfig:
        """Update the pending configuration used by the next session."""
        changes = {}
        if mass_kg is not None:
            changes["mass_kg"] = mass_kg
        if sensitivity is not None:
            changes["sensitivity"] = sensitivity
        self.config = replace(self.config, **changes)
        if self.listening and changes:
            logger.info("Configuration change deferred to the next session: %s", changes)
        return self.config

    def start(self) -> Session:
        """Begin listening. Must be called with an event loop running.

        Any active session is stopped first. On failure the detector is left
        idle, ``last_error`` is set and the error propagates.
        """
        loop = asyncio.get_running_loop()
        self.stop()
        self.session = None
        self.last_error = None
        handle = None
        try:
            config = self.config.validated()
            handle = self.capture.start(self.capture_profile)
            session = Session(config, self.detector, self.capture, handle, sink=self.sink)
        except MelonTapError as exc:
            self.last_error = exc
            self.detector.stop()
            if handle is not None:
                self.capture.stop(handle)
            logger.error("Session not started: %s", exc, extra={"error_type": exc.error_type})
            raise
        self.session = session
        self._task = loop.create_task(session.run(), name=f"melontap-session-{session.session_id}")
        self._task.add_done_callback(functools.partial(self._on_task_done, session))
        return session

    def _on_task_done(self, session: Session, task: asyncio.Task) -> None:
        # A later start() replaces self.session; errors from older sessions are stale.
        if task.cancelled() or session is not self.session:
            return
        exc = task.exception()
        if exc is not None:
            self.last_error = exc

    async def wait(self) -> Optional[RipenessResult]:
        """Wait for the active session to finish and return its result."""
        task = self._task
        if task is None:
            return self.result
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled():
                return self.result
            raise

    def stop(self) -> None:
        """Stop the active session. No-op when idle; safe from a frame callback."""
        session = self.session
        task = self._task
        self._task = None
        if session is not None:
            session.stop()
        if task is not None and not task.done():
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                task.cancel()
