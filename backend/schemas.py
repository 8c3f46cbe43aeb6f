from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class StrictInput(BaseModel):
    # NaN/inf would reach the engine and break JSON responses
    model_config = ConfigDict(allow_inf_nan=False)


class PointIn(StrictInput):
    x: float
    y: float
    time: float


class PointOut(BaseModel):
    id: int
    x: float
    y: float
    time: float


class OriginIn(StrictInput):
    x: float
    y: float


class AxisIn(StrictInput):
    # either a handle position or an explicit angle
    handle_x: Optional[float] = None
    handle_y: Optional[float] = None
    rotation_rad: Optional[float] = None


class ScaleIn(StrictInput):
    p1: Tuple[float, float]
    p2: Tuple[float, float]
    distance_m: Union[float, str] = Field(..., description="Real distance between p1 and p2; parsed as a number")


class CalibrationIn(StrictInput):
    origin: Optional[Tuple[float, float]] = None
    rotation_rad: float = 0.0
    pixels_per_meter: Optional[float] = Field(None, gt=0)


class CalibrationOut(BaseModel):
    origin: Optional[Tuple[float, float]] = None
    rotation_rad: float = 0.0
    pixels_per_meter: Optional[float] = None


class SettingsIn(BaseModel):
    # also bound from query parameters; range checks happen in AnalysisSettings
    plot_x: Optional[str] = None
    plot_y: Optional[str] = None
    fit_model: Optional[str] = None
    zero_time: Optional[bool] = None
    uncertainty_px: Optional[float] = None


class AnalyzeRequest(BaseModel):
    points: List[PointIn]
    calibration: CalibrationIn = CalibrationIn()
    settings: SettingsIn = SettingsIn()
