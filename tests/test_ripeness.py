import numpy as np
import pytest

from melontap.detection.types import Verdict
from melontap.scoring.ripeness import classify, compute, result_from_index
from melontap.util.errors import ValidationError


def test_compute_reference_tap() -> None:
    result = compute(120.0, 4.5)
    assert result.ripeness_index == pytest.approx(120.0 ** 2 * 4.5 ** (2.0 / 3.0))
    assert result.ripeness_index == pytest.approx(39_250.0, rel=1e-3)
    assert result.verdict is Verdict.RIPE
    assert result.verdict_class == "good"
    assert result.sweetness_brix == 13.0
    assert result.ripeness_score == 100.0
    assert result.base_frequency_hz == 120.0


def test_normalization_anchors_are_exact() -> None:
    best = result_from_index(100.0, 60_000.0)
    assert best.ripeness_score == 100.0
    assert best.sweetness_brix == 12.0
    worst = result_from_index(100.0, 95_000.0)
    assert worst.ripeness_score == 0.0


def test_score_and_brix_clamp_outside_anchors() -> None:
    low = result_from_index(50.0, 10_000.0)
    assert low.ripeness_score == 100.0
    assert low.sweetness_brix == 13.0
    high = result_from_index(400.0, 200_000.0)
    assert high.ripeness_score == 0.0
    assert high.sweetness_brix == 5.0


def test_midpoint_values_are_linear() -> None:
    result = result_from_index(100.0, 77_500.0)
    assert result.ripeness_score == pytest.approx(50.0)
    assert result.sweetness_brix == pytest.approx(12.0 - 4.0 * 17_500.0 / 30_000.0)


def test_verdict_boundaries() -> None:
    assert classify(73_999.999) is Verdict.RIPE
    assert classify(74_000.0) is Verdict.BORDERLINE
    assert classify(84_999.999) is Verdict.BORDERLINE
    assert classify(85_000.0) is Verdict.UNRIPE
    assert result_from_index(1.0, 74_000.0).verdict_class == "warn"
    assert result_from_index(1.0, 85_000.0).verdict_class == "bad"


def test_compute_rejects_non_positive_mass() -> None:
    with pytest.raises(ValidationError):
        compute(150.0, 0.0)
    with pytest.raises(ValidationError):
        compute(150.0, -2.0)
    with pytest.raises(ValueError):
        compute(150.0, float("nan"))


def test_compute_is_deterministic() -> None:
    first = compute(163.7, 5.25)
    second = compute(163.7, 5.25)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_outputs_stay_in_range_across_frequencies() -> None:
    for freq in np.linspace(0.0, 400.0, 81):
        for mass in (1.0, 4.5, 12.0):
            result = compute(float(freq), mass)
            assert 0.0 <= result.ripeness_score <= 100.0
            assert 5.0 <= result.sweetness_brix <= 13.0


def test_to_dict_is_json_ready() -> None:
    payload = compute(180.0, 4.5).to_dict()
    assert payload["verdict"] == "unripe"
    assert set(payload) == {
        "base_frequency_hz",
        "ripeness_index",
        "ripeness_score",
        "sweetness_brix",
        "verdict",
        "verdict_class",
        "label",
    }
