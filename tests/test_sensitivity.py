from melontap.dsp.sensitivity import clamp_sensitivity, thresholds


def test_thresholds_follow_linear_dial_mapping() -> None:
    for s in range(1, 21):
        pair = thresholds(s)
        assert pair.absolute_threshold == 160 - 10 * s
        assert pair.relative_threshold == 45 - 3 * s


def test_thresholds_strictly_decrease_with_sensitivity() -> None:
    pairs = [thresholds(s) for s in range(1, 21)]
    for lower, higher in zip(pairs[:-1], pairs[1:]):
        assert higher.absolute_threshold < lower.absolute_threshold
        assert higher.relative_threshold < lower.relative_threshold


def test_out_of_range_dial_values_are_clamped() -> None:
    assert thresholds(0) == thresholds(1)
    assert thresholds(-5) == thresholds(1)
    assert thresholds(25) == thresholds(20)
    assert clamp_sensitivity(float("inf")) == 20.0
    assert clamp_sensitivity(float("-inf")) == 1.0
