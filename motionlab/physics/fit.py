from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging
import math

import numpy as np

from .linsolve import solve_linear_system

logger = logging.getLogger(__name__)

LINEAR = "linear"
QUADRATIC = "quadratic"
NONE = "none"
FIT_MODELS = (NONE, LINEAR, QUADRATIC)

LINEAR_DENOM_EPS = 1e-9


@dataclass(frozen=True)
class FitResult:
    kind: str
    coefficients: Dict[str, float]
    r2: float
    n: int

    def predict(self, x):
        """Evaluate the fitted polynomial; works on scalars and numpy arrays."""
        c = self.coefficients
        if self.kind == LINEAR:
            return c["m"] * x + c["b"]
        return c["A"] * x * x + c["B"] * x + c["C"]

    @property
    def model_name(self) -> str:
        return "Linear Regression" if self.kind == LINEAR else "Quadratic Fit"

    def equation(self, y_var: str = "y", x_var: str = "x", decimals: int = 4) -> str:
        c = self.coefficients
        if self.kind == LINEAR:
            return f"{y_var} = {c['m']:.{decimals}f}{x_var} + {c['b']:.{decimals}f}"
        return (f"{y_var} = {c['A']:.{decimals}f}{x_var}² + "
                f"{c['B']:.{decimals}f}{x_var} + {c['C']:.{decimals}f}")

    def r2_text(self, decimals: int = 4) -> str:
        # NaN when every y is identical: fit quality is undefined, not an error
        return "N/A" if math.isnan(self.r2) else f"{self.r2:.{decimals}f}"

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind,
            "coefficients": dict(self.coefficients),
            "r2": None if math.isnan(self.r2) else self.r2,
            "n": self.n,
            "equation": self.equation(),
        }


def valid_pairs(samples: Sequence, x_key: str, y_key: str) -> Tuple[np.ndarray, np.ndarray]:
    """(x, y) arrays of the samples whose selected fields are both finite."""
    xs: List[float] = []
    ys: List[float] = []
    for s in samples:
        x, y = s.get(x_key), s.get(y_key)
        if x is None or y is None:
            continue
        if math.isfinite(x) and math.isfinite(y):
            xs.append(x)
            ys.append(y)
    return np.array(xs, dtype=float), np.array(ys, dtype=float)


def r_squared(x: np.ndarray, y: np.ndarray, predict: Callable) -> float:
    y_mean = y.mean()
    ss_tot = float(np.sum((y - y_mean) ** 2))
    ss_res = float(np.sum((y - predict(x)) ** 2))
    if ss_tot == 0.0:
        return float("nan")
    return 1.0 - ss_res / ss_tot


def fit_linear(x: np.ndarray, y: np.ndarray) -> Optional[FitResult]:
    n = len(x)
    if n < 2:
        return None
    sx, sy = x.sum(), y.sum()
    sxy = (x * y).sum()
    sxx = (x * x).sum()
    denom = n * sxx - sx * sx
    if abs(denom) < LINEAR_DENOM_EPS:
        logger.debug("Linear fit degenerate: denominator %.3e", denom)
        return None
    slope = (n * sxy - sx * sy) / denom
    intercept = (sy - slope * sx) / n
    result = FitResult(LINEAR, {"m": float(slope), "b": float(intercept)}, 0.0, n)
    return _with_r2(result, x, y)


def fit_quadratic(x: np.ndarray, y: np.ndarray) -> Optional[FitResult]:
    """Least-squares ``y = A x^2 + B x + C`` through the normal equations."""
    n = len(x)
    if n <= 2:
        return None
    sx, sx2, sx3, sx4 = (np.sum(x ** k) for k in (1, 2, 3, 4))
    sy = y.sum()
    sxy = (x * y).sum()
    sx2y = (x * x * y).sum()
    matrix = [[sx4, sx3, sx2],
              [sx3, sx2, sx],
              [sx2, sx, n]]
    solution = solve_linear_system(matrix, [sx2y, sxy, sy])
    if solution.singular:
        logger.debug("Quadratic fit degenerate: singular normal equations (n=%d)", n)
        return None
    a, b, c = (float(v) for v in solution.x)
    result = FitResult(QUADRATIC, {"A": a, "B": b, "C": c}, 0.0, n)
    return _with_r2(result, x, y)


def _with_r2(result: FitResult, x: np.ndarray, y: np.ndarray) -> FitResult:
    return FitResult(result.kind, result.coefficients, r_squared(x, y, result.predict), result.n)


def fit(kind: str, samples: Sequence, x_key: str, y_key: str) -> Optional[FitResult]:
    """Fit ``kind`` to the (x_key, y_key) pairs of ``samples``.

    Returns None for ``"none"``, too few finite pairs, or a degenerate
    system; never raises for bad data.
    """
    if kind == NONE or kind is None:
        return None
    if kind not in (LINEAR, QUADRATIC):
        raise ValueError(f"Unknown fit model: {kind!r}")
    x, y = valid_pairs(samples, x_key, y_key)
    if kind == LINEAR:
        return fit_linear(x, y)
    return fit_quadratic(x, y)
