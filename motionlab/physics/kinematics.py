"""Position and velocity series from clicked track points.

Velocities use three-point finite differences: one-sided second-order
stencils at the two ends and a central difference inside. All three are
exact for linear motion at any sample spacing.
"""
from typing import Iterable, List, Sequence, Tuple
import logging

import numpy as np

from motionlab.calib.transform import CalibrationState
from motionlab.physics.model import PositionSample, VelocitySample
from motionlab.tracking.track import TrackedPoint

logger = logging.getLogger(__name__)

MIN_DT = 1e-4
MIN_POINTS_FOR_VELOCITY = 3


def _sorted(points: Iterable[TrackedPoint]) -> List[TrackedPoint]:
    return sorted(points, key=lambda p: p.time)


def _calibrated(points: Sequence[TrackedPoint], calibration: CalibrationState) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    t = np.array([p.time for p in points], dtype=float)
    xy = np.array([calibration.to_physical(p.x, p.y) for p in points], dtype=float).reshape(-1, 2)
    return t, xy[:, 0], xy[:, 1]


def _time_offset(t: np.ndarray, zero_time: bool) -> float:
    return float(t.min()) if zero_time and len(t) else 0.0


def position_samples(
    points: Iterable[TrackedPoint],
    calibration: CalibrationState,
    zero_time: bool = True,
    uncertainty_px: float = 0.0,
) -> List[PositionSample]:
    """Calibrated positions, ordered by time.

    Args:
        points: Track points in any order
        calibration: Origin, rotation and scale to apply
        zero_time: Shift times so the earliest point reads 0 s
        uncertainty_px: Click blur radius, reported in physical units

    Returns:
        A new list with one sample per point
    """
    pts = _sorted(points)
    if not pts:
        return []
    t, x, y = _calibrated(pts, calibration)
    t0 = _time_offset(t, zero_time)
    err = calibration.uncertainty_m(uncertainty_px)
    return [
        PositionSample(time=float(t[i] - t0), x=float(x[i]), y=float(y[i]), uncertainty=err)
        for i in range(len(pts))
    ]


def _one_sided(f0: float, f1: float, f2: float, h1: float, h2: float) -> float:
    """Derivative at the first of three samples lying ``h1``, ``h2`` away.

    Differentiated quadratic through the three samples. For even spacing
    (``h2 == 2*h1``) this is ``(-3f0 + 4f1 - f2) / (2*h1)``; a negative
    ``h`` gives the backward form ``(3f0 - 4f1 + f2) / (2*|h1|)``.
    """
    return (-(h1 + h2) / (h1 * h2) * f0
            + h2 / (h1 * (h2 - h1)) * f1
            - h1 / (h2 * (h2 - h1)) * f2)


def _derivative(f: np.ndarray, t: np.ndarray, i: int):
    """Three-point derivative of ``f`` at index ``i``; None for a degenerate window."""
    n = len(f) - 1
    if i == 0:
        if t[1] - t[0] <= MIN_DT or t[2] - t[1] <= MIN_DT:
            return None
        return _one_sided(f[0], f[1], f[2], t[1] - t[0], t[2] - t[0])
    if i == n:
        if t[n] - t[n - 1] <= MIN_DT or t[n - 1] - t[n - 2] <= MIN_DT:
            return None
        return _one_sided(f[n], f[n - 1], f[n - 2], t[n - 1] - t[n], t[n - 2] - t[n])
    span = t[i + 1] - t[i - 1]
    if span <= MIN_DT:
        return None
    return (f[i + 1] - f[i - 1]) / span


def velocity_samples(
    points: Iterable[TrackedPoint],
    calibration: CalibrationState,
    zero_time: bool = True,
) -> List[VelocitySample]:
    """Velocity at each point's own timestamp.

    Fewer than three points give an empty list. Samples whose difference
    window spans no more than ``MIN_DT`` seconds (duplicate timestamps) are
    left out rather than reported as infinite.
    """
    pts = _sorted(points)
    if len(pts) < MIN_POINTS_FOR_VELOCITY:
        return []
    t, x, y = _calibrated(pts, calibration)
    t0 = _time_offset(t, zero_time)

    out: List[VelocitySample] = []
    for i in range(len(pts)):
        vx = _derivative(x, t, i)
        vy = _derivative(y, t, i)
        if vx is None or vy is None:
            logger.debug("Skipping velocity at t=%.4f: degenerate time window", t[i])
            continue
        out.append(VelocitySample(time=float(t[i] - t0), vx=float(vx), vy=float(vy)))
    return out


def rounded(samples, decimals: int):
    """Display copy of a sample list with every field rounded."""
    if decimals is None:
        return list(samples)
    return [type(s)(**{k: round(v, decimals) for k, v in s.to_dict().items()}) for s in samples]
