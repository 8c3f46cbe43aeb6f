import math

import pytest

from motionlab.render.scale import (
    DEFAULT_SCALE,
    format_tick,
    nice_scale,
    scale_for_values,
    tick_decimals,
)


@pytest.mark.parametrize("lo, hi", [(5.0, 5.0), (float("nan"), 1.0), (0.0, float("inf"))])
def test_degenerate_ranges_get_default(lo, hi):
    scale = nice_scale(lo, hi)
    assert scale == DEFAULT_SCALE
    assert scale.ticks == [0.0, 10.0]
    assert scale.step == 10.0


def test_zero_to_ten():
    scale = nice_scale(0.0, 10.0)
    assert scale.step == 2.0
    assert scale.min == -2.0
    assert scale.max == 12.0
    assert scale.ticks == [-2.0, 0.0, 2.0, 4.0, 6.0, 8.0, 10.0, 12.0]


def test_lock_zero_for_positive_data():
    scale = nice_scale(0.0, 10.0, lock_zero_if_positive=True)
    assert scale.min == 0.0
    assert scale.ticks[0] == 0.0
    assert scale.max == 12.0


def test_lock_zero_ignored_for_negative_data():
    scale = nice_scale(-3.0, 10.0, lock_zero_if_positive=True)
    assert scale.min < -3.0


@pytest.mark.parametrize("lo, hi", [
    (0.0, 1.0),
    (-0.37, 0.52),
    (0.013, 0.0191),
    (3.3, 3.31),
    (-1234.0, 98765.0),
    (2.0, 3.0),
    (-9.8, -0.2),
    (0.0, 0.966),
])
def test_scale_contains_data_with_even_ticks(lo, hi):
    scale = nice_scale(lo, hi)
    assert scale.min <= lo
    assert scale.max >= hi
    assert 2 <= len(scale.ticks) <= 11
    for a, b in zip(scale.ticks, scale.ticks[1:]):
        assert b - a == pytest.approx(scale.step, abs=1e-4)
    assert scale.ticks[0] == pytest.approx(scale.min, abs=1e-4)
    assert scale.ticks[-1] == pytest.approx(scale.max, abs=1e-4)


@pytest.mark.parametrize("lo, hi", [(0, 7), (0, 13), (0, 0.27), (0, 410), (-5, 5), (0, 17)])
def test_steps_are_nice_numbers(lo, hi):
    step = nice_scale(lo, hi).step
    mantissa = step / 10 ** math.floor(math.log10(step))
    assert round(mantissa, 6) in (1, 2, 2.5, 5)


def test_same_input_same_scale():
    assert nice_scale(0.12, 3.4, True) == nice_scale(0.12, 3.4, True)


def test_scale_for_values_skips_missing():
    assert scale_for_values([]) == DEFAULT_SCALE
    assert scale_for_values([None, float("nan")]) == DEFAULT_SCALE
    assert scale_for_values([1.0, None, 3.0]) == nice_scale(1.0, 3.0)


@pytest.mark.parametrize("step, decimals", [
    (1.0, 0),
    (10.0, 0),
    (0.5, 1),
    (2.5, 1),
    (0.25, 2),
    (0.1 + 0.2, 1),
    (0.0005, 4),
])
def test_tick_decimals(step, decimals):
    assert tick_decimals(step) == decimals


def test_format_tick_has_no_float_noise():
    assert format_tick(0.1 + 0.2, 0.1) == "0.3"
    assert format_tick(-1e-17, 0.5) == "0.0"
    assert format_tick(12.0, 2.0) == "12"
    assert nice_scale(0.0, 1.0).labels()[:3] == ["-0.2", "0.0", "0.2"]


@pytest.mark.parametrize("lo, hi", [(-1e308, 1e308), (-1.7e308, 1e307)])
def test_range_beyond_float_limits_gets_default(lo, hi):
    assert nice_scale(lo, hi) == DEFAULT_SCALE
    assert scale_for_values([lo, 0.0, hi]) == DEFAULT_SCALE
