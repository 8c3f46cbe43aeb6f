from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union
import logging
import math

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

DEFAULT_UNCERTAINTY_PX = 10.0
MAX_UNCERTAINTY_PX = 50.0


class InvalidCalibration(ValueError):
    """Raised when a reference distance cannot produce a usable scale."""


def to_physical(
    raw_x: float,
    raw_y: float,
    origin: Optional[Point] = None,
    rotation_rad: float = 0.0,
    pixels_per_meter: Optional[float] = None,
) -> Tuple[float, float]:
    """Convert a pixel position into the calibrated frame.

    With an origin set, the point is translated to it, rotated by
    ``-rotation_rad`` and its Y component flipped so that up is positive.
    Without one the raw pixel axes are kept. Either way the result is
    divided by ``pixels_per_meter`` when a non-zero scale is known.
    """
    if origin is None:
        x, y = raw_x, raw_y
    else:
        dx = raw_x - origin[0]
        dy = raw_y - origin[1]
        cos = math.cos(rotation_rad)
        sin = math.sin(rotation_rad)
        x = dx * cos + dy * sin
        # image y-down to world y-up, after rotating
        y = -(-dx * sin + dy * cos)

    if pixels_per_meter:
        x /= pixels_per_meter
        y /= pixels_per_meter
    return x, y


def pixels_per_meter_from_reference(p1: Point, p2: Point, distance_m: Union[float, str]) -> float:
    """Scale from two reference pixels and the real distance between them."""
    try:
        meters = float(distance_m)
    except (TypeError, ValueError):
        raise InvalidCalibration(f"Distance is not a number: {distance_m!r}")
    if not math.isfinite(meters) or meters <= 0:
        raise InvalidCalibration(f"Distance must be a positive number, got {distance_m!r}")

    dist_px = math.hypot(p2[0] - p1[0], p2[1] - p1[1])
    if dist_px <= 0:
        raise InvalidCalibration("Reference points coincide")
    return dist_px / meters


@dataclass(frozen=True)
class CalibrationState:
    """Origin, axis rotation and scale of one project.

    Instances are immutable; every setter returns a new state so a rejected
    calibration can never leave a half-applied scale behind.
    """
    origin: Optional[Point] = None
    rotation_rad: float = 0.0
    pixels_per_meter: Optional[float] = None

    @property
    def is_scaled(self) -> bool:
        return bool(self.pixels_per_meter)

    @property
    def unit(self) -> str:
        return "m" if self.is_scaled else "px"

    def to_physical(self, raw_x: float, raw_y: float) -> Tuple[float, float]:
        return to_physical(raw_x, raw_y, self.origin, self.rotation_rad, self.pixels_per_meter)

    def with_origin(self, x: float, y: float) -> "CalibrationState":
        # a freshly placed origin starts with unrotated axes
        return replace(self, origin=(float(x), float(y)), rotation_rad=0.0)

    def with_axis_handle(self, handle_x: float, handle_y: float) -> "CalibrationState":
        """Rotate the axes so +X points from the origin towards the handle."""
        if self.origin is None:
            return self
        angle = math.atan2(handle_y - self.origin[1], handle_x - self.origin[0])
        return replace(self, rotation_rad=angle)

    def with_rotation(self, rotation_rad: float) -> "CalibrationState":
        return replace(self, rotation_rad=float(rotation_rad))

    def clear_origin(self) -> "CalibrationState":
        return replace(self, origin=None, rotation_rad=0.0)

    def calibrated(self, p1: Point, p2: Point, distance_m: Union[float, str]) -> "CalibrationState":
        """Return a copy scaled from a two-point reference.

        Raises:
            InvalidCalibration: the distance is not a finite positive number
                or the reference points coincide. ``self`` is untouched.
        """
        ppm = pixels_per_meter_from_reference(p1, p2, distance_m)
        logger.info("Calibrated scale: %.2f px/m", ppm)
        return replace(self, pixels_per_meter=ppm)

    def reset_scale(self) -> "CalibrationState":
        return replace(self, pixels_per_meter=None)

    def uncertainty_m(self, uncertainty_px: float) -> float:
        """Blur radius in physical units; 0 until a scale is known."""
        if not self.is_scaled:
            return 0.0
        radius = min(max(float(uncertainty_px), 0.0), MAX_UNCERTAINTY_PX)
        return radius / self.pixels_per_meter
