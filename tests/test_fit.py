import math

import numpy as np
import pytest

from motionlab.physics.fit import LINEAR, QUADRATIC, fit, fit_linear, r_squared, valid_pairs
from motionlab.physics.model import PositionSample, VelocitySample


def _positions(xs, ys):
    return [PositionSample(time=t, x=y, y=0.0, uncertainty=0.0) for t, y in zip(xs, ys)]


def test_linear_perfect_fit():
    xs = [0.0, 1.0, 2.0, 3.0, 4.0]
    result = fit("linear", _positions(xs, [2 * x + 3 for x in xs]), "time", "x")
    assert result.kind == LINEAR
    assert result.coefficients["m"] == pytest.approx(2.0)
    assert result.coefficients["b"] == pytest.approx(3.0)
    assert result.r2 == pytest.approx(1.0)
    # extrapolates beyond the sampled range
    assert result.predict(10.0) == pytest.approx(23.0)
    assert result.equation() == "y = 2.0000x + 3.0000"


def test_quadratic_perfect_fit():
    xs = [-2.0, -1.0, 0.0, 1.0, 2.0, 3.0]
    result = fit("quadratic", _positions(xs, [1.5 * x * x - 2 * x + 0.5 for x in xs]), "time", "x")
    assert result.kind == QUADRATIC
    assert result.coefficients["A"] == pytest.approx(1.5, abs=1e-9)
    assert result.coefficients["B"] == pytest.approx(-2.0, abs=1e-9)
    assert result.coefficients["C"] == pytest.approx(0.5, abs=1e-9)
    assert result.r2 == pytest.approx(1.0)
    assert result.equation(y_var="x", x_var="t") == "x = 1.5000t² + -2.0000t + 0.5000"


def test_quadratic_matches_numpy_on_noisy_data():
    rng = np.random.default_rng(7)
    xs = np.linspace(0.0, 1.2, 25)
    ys = -4.9 * xs ** 2 + 3.1 * xs + 0.2 + rng.normal(0.0, 0.01, len(xs))
    result = fit("quadratic", _positions(xs, ys), "time", "x")
    expected = np.polyfit(xs, ys, 2)
    got = [result.coefficients[k] for k in ("A", "B", "C")]
    assert got == pytest.approx(list(expected), abs=1e-6)
    assert 0.99 < result.r2 < 1.0


@pytest.mark.parametrize("xs", [[1.0, 1.0, 2.0], [2.0, 2.0, 2.0]])
def test_quadratic_on_repeated_x_is_singular(xs):
    samples = _positions(xs, [1.0, 2.0, 3.0])
    assert fit("quadratic", samples, "time", "x") is None


def test_insufficient_points():
    assert fit("linear", _positions([1.0], [1.0]), "time", "x") is None
    assert fit("quadratic", _positions([1.0, 2.0], [1.0, 4.0]), "time", "x") is None


def test_linear_vertical_data_is_degenerate():
    assert fit("linear", _positions([3.0, 3.0, 3.0], [1.0, 2.0, 5.0]), "time", "x") is None


def test_constant_y_gives_nan_r2():
    result = fit("linear", _positions([0.0, 1.0, 2.0], [5.0, 5.0, 5.0]), "time", "x")
    assert result.coefficients["m"] == pytest.approx(0.0)
    assert math.isnan(result.r2)
    assert result.r2_text() == "N/A"
    assert result.to_dict()["r2"] is None


def test_non_finite_pairs_are_filtered():
    samples = _positions([0.0, 1.0, 2.0, 3.0], [3.0, float("nan"), 7.0, 9.0])
    x, y = valid_pairs(samples, "time", "x")
    assert list(x) == [0.0, 2.0, 3.0]
    result = fit("linear", samples, "time", "x")
    assert result.n == 3
    assert result.coefficients["m"] == pytest.approx(2.0)


def test_velocity_series_has_no_position_fields():
    samples = [VelocitySample(t, 1.0, 2.0) for t in (0.0, 0.5, 1.0)]
    assert fit("linear", samples, "x", "vx") is None
    assert fit("linear", samples, "time", "vy").coefficients["m"] == pytest.approx(0.0)


def test_model_selection():
    samples = _positions([0.0, 1.0, 2.0], [0.0, 1.0, 2.0])
    assert fit("none", samples, "time", "x") is None
    with pytest.raises(ValueError):
        fit("cubic", samples, "time", "x")


def test_predict_accepts_arrays():
    result = fit_linear(np.array([0.0, 1.0]), np.array([1.0, 3.0]))
    assert list(result.predict(np.array([2.0, 3.0]))) == pytest.approx([5.0, 7.0])


def test_r2_is_not_clamped_for_worse_than_mean_models():
    x = np.array([0.0, 1.0, 2.0])
    y = np.array([1.0, 2.0, 3.0])
    assert r_squared(x, y, lambda v: v * 0 + 100) < 0
    assert r_squared(x, y, lambda v: v + 1) == pytest.approx(1.0)
