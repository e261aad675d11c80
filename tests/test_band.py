import numpy as np

from melontap.detection.types import DetectionWindow
from melontap.dsp.band import band_statistics, bin_width_hz, detection_window


def test_detection_window_for_default_capture() -> None:
    window = detection_window(48_000, 16_384)
    assert window.bin_hz == 48_000 / 16_384
    assert window.min_index == 34
    assert window.max_index == 102
    assert not window.degenerate
    assert window.width == 68


def test_detection_window_rounds_half_up() -> None:
    window = detection_window(640, 16)
    assert window.bin_hz == 40.0
    assert window.min_index == 3
    assert window.max_index == 8


def test_detection_window_degenerate_for_coarse_bins() -> None:
    window = detection_window(48_000, 32)
    assert window.min_index == 0
    assert window.max_index == 0
    assert window.degenerate


def test_detection_window_degenerate_for_invalid_inputs() -> None:
    assert bin_width_hz(0, 1024) == 0.0
    assert bin_width_hz(48_000, 0) == 0.0
    assert detection_window(float("nan"), 1024).degenerate
    assert detection_window(-1.0, 1024).degenerate


def test_band_statistics_reports_first_peak_and_mean() -> None:
    frame = np.zeros(20)
    frame[5] = 90.0
    frame[7] = 90.0
    frame[12] = 200.0  # outside the band
    window = DetectionWindow(min_index=4, max_index=10, bin_hz=10.0)
    peak, peak_index, average = band_statistics(frame, window)
    assert peak == 90.0
    assert peak_index == 5
    assert average == 30.0


def test_band_statistics_clips_window_to_frame_length() -> None:
    frame = [0.0, 0.0, 10.0, 40.0]
    window = DetectionWindow(min_index=2, max_index=10, bin_hz=1.0)
    peak, peak_index, average = band_statistics(frame, window)
    assert (peak, peak_index, average) == (40.0, 3, 25.0)


def test_band_statistics_none_when_band_missing() -> None:
    assert band_statistics(np.ones(8), DetectionWindow(min_index=10, max_index=20, bin_hz=1.0)) is None
    assert band_statistics(np.ones(8), DetectionWindow(min_index=3, max_index=3, bin_hz=1.0)) is None
