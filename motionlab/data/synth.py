from typing import Optional, Tuple
import numpy as np

from motionlab.physics.model import Ballistics2D
from motionlab.tracking.track import Track


def synthetic_projectile_track(
    name: str = "Object A",
    duration_s: float = 1.0,
    fps: float = 30.0,
    v0: Tuple[float, float] = (3.0, 4.0),
    origin_px: Tuple[float, float] = (100.0, 600.0),
    pixels_per_meter: float = 200.0,
    noise_px: float = 0.0,
    seed: Optional[int] = None,
) -> Track:
    """Clicks one would place on a video of a thrown ball.

    The ball starts at ``origin_px`` with velocity ``v0`` (m/s, y up) and
    falls under gravity; positions are converted to pixels (y down).
    """
    rng = np.random.default_rng(seed)
    model = Ballistics2D()
    ts = np.arange(0.0, duration_s + 1e-9, 1.0 / fps)
    traj = model.trajectory(np.zeros(2), np.array(v0, dtype=float), ts)

    xs = origin_px[0] + traj[:, 0] * pixels_per_meter
    ys = origin_px[1] - traj[:, 1] * pixels_per_meter
    if noise_px > 0:
        xs = xs + rng.normal(0.0, noise_px, len(ts))
        ys = ys + rng.normal(0.0, noise_px, len(ts))

    track = Track(name)
    for t, x, y in zip(ts, xs, ys):
        track.add_point(float(x), float(y), float(t))
    return track
