from dataclasses import dataclass, asdict
from typing import Dict, Optional
import numpy as np


POSITION_KEYS = ("time", "x", "y")
VELOCITY_KEYS = ("vx", "vy")
QUANTITIES = POSITION_KEYS + VELOCITY_KEYS


@dataclass(frozen=True)
class PositionSample:
    time: float         # s
    x: float            # m (px while uncalibrated)
    y: float            # m, up is positive once an origin is set
    uncertainty: float  # m

    def get(self, key: str) -> Optional[float]:
        return getattr(self, key, None) if key in POSITION_KEYS else None

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class VelocitySample:
    time: float  # s
    vx: float    # m/s
    vy: float    # m/s

    def get(self, key: str) -> Optional[float]:
        if key == "time" or key in VELOCITY_KEYS:
            return getattr(self, key)
        return None

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class Ballistics2D:
    """Drag-free projectile in a y-up frame, used to synthesize tracks."""
    g: float = 9.80665

    def position(self, p0: np.ndarray, v0: np.ndarray, t: float) -> np.ndarray:
        # p = p0 + v0*t + 0.5*a*t^2; a = (0, -g)
        return p0 + v0 * t + np.array([0.0, -0.5 * self.g * t * t])

    def trajectory(self, p0: np.ndarray, v0: np.ndarray, ts: np.ndarray) -> np.ndarray:
        pts = [self.position(p0, v0, float(t)) for t in ts]
        return np.stack(pts, axis=0)
