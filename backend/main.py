from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from pathlib import Path
from typing import Any, Dict
import math
import os

from motionlab.calib.transform import CalibrationState, InvalidCalibration, MAX_UNCERTAINTY_PX
from motionlab.config import DEFAULT_CONFIG_PATH, LEGEND_POSITIONS, load_config
from motionlab.pipeline import Analysis, AnalysisSettings, analyze_track
from motionlab.render.export import encode_png, motion_csv_text, render_graph
from motionlab.tracking.track import Track
from motionlab.utils.logger import get_logger

from .schemas import (
    AnalyzeRequest,
    AxisIn,
    CalibrationOut,
    OriginIn,
    PointIn,
    PointOut,
    ScaleIn,
    SettingsIn,
)
from .session_manager import Session, SessionManager

CONFIG = Path(os.environ.get("MOTIONLAB_CONFIG", DEFAULT_CONFIG_PATH))
CFG: Dict = load_config(CONFIG if CONFIG.exists() else None)

logger = get_logger("backend", log_level=CFG["logging"]["level"], log_file=CFG["logging"]["file"])

app = FastAPI(title="MotionLab Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

sessions = SessionManager()


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # rejected NaN/inf inputs are echoed back as text; strict JSON has no literal for them
    return JSONResponse(status_code=422, content={"detail": _json_safe(jsonable_encoder(exc.errors()))})


def _session(session_id: str) -> Session:
    session = sessions.get(session_id)
    if not session:
        raise HTTPException(404, detail="Session not found")
    return session


def _track(session: Session, name: str) -> Track:
    track = session.project.track(name, create=False)
    if track is None:
        raise HTTPException(404, detail="Track not found")
    return track


def _settings(settings: SettingsIn, session: Session = None) -> AnalysisSettings:
    overrides = settings.model_dump()
    if overrides.get("uncertainty_px") is None and session is not None:
        overrides["uncertainty_px"] = session.project.uncertainty_px
    try:
        return AnalysisSettings.from_config(CFG, **overrides)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _calibration_out(cal: CalibrationState) -> CalibrationOut:
    return CalibrationOut(origin=cal.origin, rotation_rad=cal.rotation_rad, pixels_per_meter=cal.pixels_per_meter)


def _analysis(session_id: str, track_name: str, settings: SettingsIn) -> Analysis:
    session = _session(session_id)
    with session.lock:
        points = _track(session, track_name).sorted_points()
        calibration = session.project.calibration
    return analyze_track(points, calibration, _settings(settings, session))


@app.post("/sessions")
async def create_session():
    session = sessions.create_session()
    return {"session_id": session.id}


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str):
    if not sessions.delete(session_id):
        raise HTTPException(404, detail="Session not found")
    return {"deleted": session_id}


@app.get("/sessions/{session_id}")
async def get_session(session_id: str):
    session = _session(session_id)
    with session.lock:
        return {
            "calibration": _calibration_out(session.project.calibration),
            "tracks": {name: len(t) for name, t in session.project.tracks.items()},
        }


@app.post("/sessions/{session_id}/tracks/{track_name}/points", response_model=PointOut)
async def add_point(session_id: str, track_name: str, point: PointIn):
    session = _session(session_id)
    with session.lock:
        p = session.project.track(track_name).add_point(point.x, point.y, point.time)
    return PointOut(id=p.id, x=p.x, y=p.y, time=p.time)


@app.put("/sessions/{session_id}/tracks/{track_name}/points/{point_id}", response_model=PointOut)
async def move_point(session_id: str, track_name: str, point_id: int, point: OriginIn):
    session = _session(session_id)
    with session.lock:
        p = _track(session, track_name).move_point(point_id, point.x, point.y)
    if p is None:
        raise HTTPException(404, detail="Point not found")
    return PointOut(id=p.id, x=p.x, y=p.y, time=p.time)


@app.delete("/sessions/{session_id}/tracks/{track_name}/points/{point_id}")
async def delete_point(session_id: str, track_name: str, point_id: int):
    session = _session(session_id)
    with session.lock:
        removed = _track(session, track_name).remove_point(point_id)
    if not removed:
        raise HTTPException(404, detail="Point not found")
    return {"deleted": point_id}


@app.put("/sessions/{session_id}/origin", response_model=CalibrationOut)
async def set_origin(session_id: str, origin: OriginIn):
    session = sessions.update_calibration(session_id, lambda c: c.with_origin(origin.x, origin.y))
    if not session:
        raise HTTPException(404, detail="Session not found")
    return _calibration_out(session.project.calibration)


@app.delete("/sessions/{session_id}/origin", response_model=CalibrationOut)
async def clear_origin(session_id: str):
    session = sessions.update_calibration(session_id, lambda c: c.clear_origin())
    if not session:
        raise HTTPException(404, detail="Session not found")
    return _calibration_out(session.project.calibration)


@app.put("/sessions/{session_id}/axis", response_model=CalibrationOut)
async def set_axis(session_id: str, axis: AxisIn):
    if axis.rotation_rad is not None:
        fn = lambda c: c.with_rotation(axis.rotation_rad)  # noqa: E731
    elif axis.handle_x is not None and axis.handle_y is not None:
        fn = lambda c: c.with_axis_handle(axis.handle_x, axis.handle_y)  # noqa: E731
    else:
        raise HTTPException(status_code=400, detail="Give rotation_rad or handle_x/handle_y")
    session = sessions.update_calibration(session_id, fn)
    if not session:
        raise HTTPException(404, detail="Session not found")
    return _calibration_out(session.project.calibration)


@app.post("/sessions/{session_id}/scale", response_model=CalibrationOut)
async def set_scale(session_id: str, scale: ScaleIn):
    try:
        session = sessions.update_calibration(
            session_id, lambda c: c.calibrated(scale.p1, scale.p2, scale.distance_m)
        )
    except InvalidCalibration as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not session:
        raise HTTPException(404, detail="Session not found")
    return _calibration_out(session.project.calibration)


@app.delete("/sessions/{session_id}/scale", response_model=CalibrationOut)
async def reset_scale(session_id: str):
    session = sessions.update_calibration(session_id, lambda c: c.reset_scale())
    if not session:
        raise HTTPException(404, detail="Session not found")
    return _calibration_out(session.project.calibration)


@app.put("/sessions/{session_id}/uncertainty")
async def set_uncertainty(session_id: str, uncertainty_px: float):
    if not 0 <= uncertainty_px <= MAX_UNCERTAINTY_PX:
        raise HTTPException(status_code=400, detail=f"uncertainty_px must be within 0-{MAX_UNCERTAINTY_PX:g}")
    session = _session(session_id)
    with session.lock:
        session.project.uncertainty_px = uncertainty_px
    return {"uncertainty_px": uncertainty_px}


@app.delete("/sessions/{session_id}/tracks/{track_name}")
async def delete_track(session_id: str, track_name: str):
    session = _session(session_id)
    with session.lock:
        removed = session.project.remove_track(track_name)
    if not removed:
        raise HTTPException(404, detail="Track not found")
    return {"deleted": track_name}


@app.get("/sessions/{session_id}/tracks/{track_name}/analysis")
def track_analysis(session_id: str, track_name: str, settings: SettingsIn = Depends()):
    return _analysis(session_id, track_name, settings).to_dict()


@app.get("/sessions/{session_id}/tracks/{track_name}/export.csv")
def track_csv(session_id: str, track_name: str, settings: SettingsIn = Depends()):
    analysis = _analysis(session_id, track_name, settings)
    return Response(
        content=motion_csv_text(analysis),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{CFG["export"]["csv_name"]}"'},
    )


@app.get("/sessions/{session_id}/tracks/{track_name}/graph.png")
def track_graph(session_id: str, track_name: str, legend: str = None, settings: SettingsIn = Depends()):
    if legend is not None and legend not in LEGEND_POSITIONS:
        raise HTTPException(status_code=400, detail=f"legend must be one of {LEGEND_POSITIONS}")
    analysis = _analysis(session_id, track_name, settings)
    image = render_graph(analysis, CFG["export"], legend=legend)
    return Response(content=encode_png(image), media_type="image/png")


@app.post("/analyze")
def analyze(req: AnalyzeRequest):
    track = Track("request")
    for p in req.points:
        track.add_point(p.x, p.y, p.time)
    cal = req.calibration
    calibration = CalibrationState(
        origin=tuple(cal.origin) if cal.origin else None,
        rotation_rad=cal.rotation_rad,
        pixels_per_meter=cal.pixels_per_meter,
    )
    return analyze_track(track.sorted_points(), calibration, _settings(req.settings)).to_dict()
