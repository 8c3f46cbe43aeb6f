from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Optional
import math

from motionlab.calib.transform import CalibrationState, MAX_UNCERTAINTY_PX
from motionlab.physics import kinematics
from motionlab.physics.fit import FitResult, FIT_MODELS, NONE, fit
from motionlab.physics.model import (
    PositionSample,
    QUANTITIES,
    VELOCITY_KEYS,
    VelocitySample,
)
from motionlab.render.scale import AxisScale, scale_for_values
from motionlab.tracking.track import TrackedPoint
from motionlab.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AnalysisSettings:
    plot_x: str = "time"
    plot_y: str = "x"
    fit_model: str = NONE
    zero_time: bool = True
    uncertainty_px: float = 10.0
    decimals: Optional[int] = 3

    def __post_init__(self):
        for axis in (self.plot_x, self.plot_y):
            if axis not in QUANTITIES:
                raise ValueError(f"Unknown quantity: {axis!r}")
        if self.fit_model not in FIT_MODELS:
            raise ValueError(f"Unknown fit model: {self.fit_model!r}")
        if not 0 <= self.uncertainty_px <= MAX_UNCERTAINTY_PX:
            raise ValueError(f"uncertainty_px must be within 0-{MAX_UNCERTAINTY_PX:g}, got {self.uncertainty_px!r}")

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], **overrides) -> "AnalysisSettings":
        values = dict(cfg.get("analysis", {}))
        values.update({k: v for k, v in overrides.items() if v is not None})
        known = {k: values[k] for k in asdict(cls()) if k in values}
        return cls(**known)


def axis_label(quantity: str, unit: str = "m") -> str:
    labels = {
        "time": "Time (s)",
        "x": f"X Position ({unit})",
        "y": f"Y Position ({unit})",
        "vx": f"Velocity ({unit}/s)",
        "vy": f"Velocity ({unit}/s)",
    }
    return labels[quantity]


def axis_variable(quantity: str, axis: str) -> str:
    """Symbol used for ``quantity`` in an exported equation."""
    if quantity == "time":
        return "t"
    if quantity in VELOCITY_KEYS:
        return "v"
    if axis == "x":
        return "x"
    return quantity


@dataclass
class Analysis:
    positions: List[PositionSample]
    velocities: List[VelocitySample]
    settings: AnalysisSettings
    fit: Optional[FitResult]
    x_scale: AxisScale
    y_scale: AxisScale
    unit: str = "m"
    rows: List[Dict[str, Optional[float]]] = field(default_factory=list)

    @property
    def active(self) -> List:
        if self.settings.plot_y in VELOCITY_KEYS:
            return self.velocities
        return self.positions

    @property
    def x_label(self) -> str:
        return axis_label(self.settings.plot_x, self.unit)

    @property
    def y_label(self) -> str:
        return axis_label(self.settings.plot_y, self.unit)

    @property
    def title(self) -> str:
        model = self.fit.model_name if self.fit else "Plot"
        y_name = self.y_label.split("(")[0].strip()
        x_name = self.x_label.split("(")[0].strip()
        return f"{model} of {y_name} vs {x_name}"

    def legend_equation(self) -> Optional[str]:
        if self.fit is None:
            return None
        return self.fit.equation(
            y_var=axis_variable(self.settings.plot_y, "y"),
            x_var=axis_variable(self.settings.plot_x, "x"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "positions": [p.to_dict() for p in self.positions],
            "velocities": [v.to_dict() for v in self.velocities],
            "settings": asdict(self.settings),
            "fit": self.fit.to_dict() if self.fit else None,
            "x_scale": self.x_scale.to_dict(),
            "y_scale": self.y_scale.to_dict(),
            "x_label": self.x_label,
            "y_label": self.y_label,
            "title": self.title,
            "rows": self.rows,
        }


def _chart_rows(samples: Iterable, settings: AnalysisSettings, fit_result: Optional[FitResult]):
    rows = []
    for s in samples:
        x, y = s.get(settings.plot_x), s.get(settings.plot_y)
        fit_y = None
        if fit_result is not None and x is not None and math.isfinite(x):
            fit_y = float(fit_result.predict(x))
        rows.append({"x": x, "y": y, "fit_y": fit_y})
    return rows


def analyze_track(
    points: Iterable[TrackedPoint],
    calibration: CalibrationState,
    settings: Optional[AnalysisSettings] = None,
) -> Analysis:
    """Run the full engine on one track.

    Positions and velocities are computed at full precision; the fit and
    axis scales use the same rounded values that the table and CSV show,
    so every consumer sees one consistent data set.
    """
    settings = settings or AnalysisSettings()
    points = list(points)

    positions = kinematics.position_samples(
        points, calibration, zero_time=settings.zero_time, uncertainty_px=settings.uncertainty_px
    )
    velocities = kinematics.velocity_samples(points, calibration, zero_time=settings.zero_time)
    positions = kinematics.rounded(positions, settings.decimals)
    velocities = kinematics.rounded(velocities, settings.decimals)

    active = velocities if settings.plot_y in VELOCITY_KEYS else positions
    fit_result = fit(settings.fit_model, active, settings.plot_x, settings.plot_y)
    if settings.fit_model != NONE and fit_result is None:
        logger.debug("No %s fit for %s vs %s (%d samples)",
                     settings.fit_model, settings.plot_y, settings.plot_x, len(active))

    x_scale = scale_for_values(
        (s.get(settings.plot_x) for s in active), lock_zero_if_positive=settings.plot_x == "time"
    )
    y_scale = scale_for_values(s.get(settings.plot_y) for s in active)

    return Analysis(
        positions=positions,
        velocities=velocities,
        settings=settings,
        fit=fit_result,
        x_scale=x_scale,
        y_scale=y_scale,
        unit=calibration.unit,
        rows=_chart_rows(active, settings, fit_result),
    )
