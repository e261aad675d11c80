import numpy as np
import pytest

from melontap.detection.detector import ThumpDetector
from melontap.detection.types import DetectorState
from melontap.util.errors import ValidationError

SAMPLE_RATE = 48_000
FFT_SIZE = 16_384
BINS = FFT_SIZE // 2
BIN_HZ = SAMPLE_RATE / FFT_SIZE


def _listening_detector(sensitivity: int = 8) -> ThumpDetector:
    detector = ThumpDetector()
    detector.start(4.5, sensitivity, SAMPLE_RATE, FFT_SIZE)
    return detector


def _frame(level: float = 20.0) -> np.ndarray:
    return np.full(BINS, level, dtype=np.float64)


def test_start_rejects_non_positive_mass_and_stays_idle() -> None:
    detector = ThumpDetector()
    with pytest.raises(ValidationError):
        detector.start(0, 8, SAMPLE_RATE, FFT_SIZE)
    assert detector.state is DetectorState.IDLE
    with pytest.raises(ValidationError):
        detector.start(-1.0, 8, SAMPLE_RATE, FFT_SIZE)
    assert detector.state is DetectorState.IDLE


def test_start_computes_window_and_thresholds_once() -> None:
    detector = _listening_detector(sensitivity=8)
    assert detector.state is DetectorState.LISTENING
    assert (detector.window.min_index, detector.window.max_index) == (34, 102)
    assert detector.thresholds.absolute_threshold == 80
    assert detector.thresholds.relative_threshold == 21


def test_evaluate_ignores_frames_while_idle() -> None:
    detector = ThumpDetector()
    frame = _frame()
    frame[51] = 250.0
    assert detector.evaluate(frame) is None
    assert detector.frames_seen == 0


def test_quiet_frame_keeps_listening() -> None:
    detector = _listening_detector()
    assert detector.evaluate(_frame(20.0)) is None
    assert detector.state is DetectorState.LISTENING
    assert detector.frames_seen == 1


def test_loud_flat_frame_fails_relative_prominence() -> None:
    detector = _listening_detector()
    frame = _frame(200.0)
    frame[60] = 215.0
    assert detector.evaluate(frame) is None
    assert detector.state is DetectorState.LISTENING


def test_peak_must_exceed_absolute_threshold_strictly() -> None:
    detector = _listening_detector()
    frame = _frame(0.0)
    frame[51] = 80.0
    assert detector.evaluate(frame) is None
    frame[51] = 81.0
    event = detector.evaluate(frame)
    assert event is not None
    assert event.peak_index == 51


def test_peaks_outside_band_are_ignored() -> None:
    detector = _listening_detector()
    frame = _frame(10.0)
    frame[20] = 255.0
    frame[150] = 255.0
    assert detector.evaluate(frame) is None


def test_thump_emits_base_frequency_and_moves_to_detected() -> None:
    detector = _listening_detector()
    frame = _frame(20.0)
    frame[50:53] = [120.0, 210.0, 130.0]
    event = detector.evaluate(frame)
    assert event is not None
    assert event.peak_index == 51
    assert event.base_frequency_hz == pytest.approx(51 * BIN_HZ)
    assert event.peak_amplitude == 210.0
    assert detector.state is DetectorState.DETECTED
    assert detector.evaluate(frame) is None
    detector.acknowledge()
    assert detector.state is DetectorState.IDLE


def test_degenerate_window_never_detects() -> None:
    detector = ThumpDetector()
    detector.start(4.5, 20, SAMPLE_RATE, 32)
    assert detector.window.degenerate
    for level in (0.0, 128.0, 255.0):
        frame = np.full(16, level)
        frame[0] = 255.0
        assert detector.evaluate(frame) is None
    assert detector.state is DetectorState.LISTENING


def test_short_frame_is_clipped_to_available_bins() -> None:
    detector = _listening_detector()
    frame = np.zeros(60)
    frame[40] = 200.0
    event = detector.evaluate(frame)
    assert event is not None
    assert event.peak_index == 40


def test_stop_is_idempotent_from_any_state() -> None:
    detector = ThumpDetector()
    detector.stop()
    detector.stop()
    assert detector.state is DetectorState.IDLE
    detector.start(4.5, 8, SAMPLE_RATE, FFT_SIZE)
    detector.stop()
    assert detector.state is DetectorState.IDLE
    assert detector.evaluate(_frame(255.0)) is None


def test_restart_while_listening_resets_session_state() -> None:
    detector = _listening_detector(sensitivity=8)
    detector.evaluate(_frame())
    detector.start(3.0, 15, SAMPLE_RATE, FFT_SIZE)
    assert detector.state is DetectorState.LISTENING
    assert detector.frames_seen == 0
    assert detector.mass_kg == 3.0
    assert detector.thresholds.absolute_threshold == 10


def test_listening_without_window_is_an_error() -> None:
    detector = ThumpDetector()
    detector.state = DetectorState.LISTENING
    with pytest.raises(RuntimeError):
        detector.evaluate(np.zeros(BINS))
