import argparse
import csv
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from motionlab.calib.transform import CalibrationState, InvalidCalibration  # noqa: E402
from motionlab.config import DEFAULT_CONFIG_PATH, load_config  # noqa: E402
from motionlab.data.synth import synthetic_projectile_track  # noqa: E402
from motionlab.physics.fit import FIT_MODELS  # noqa: E402
from motionlab.physics.model import QUANTITIES  # noqa: E402
from motionlab.pipeline import AnalysisSettings, analyze_track  # noqa: E402
from motionlab.render.export import write_graph_png, write_motion_csv  # noqa: E402
from motionlab.tracking.track import Project  # noqa: E402
from motionlab.utils.logger import get_logger  # noqa: E402


def read_points(path: Path, project: Project) -> None:
    """Load ``time,x,y[,track]`` rows into ``project``."""
    with open(path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            name = (row.get("track") or "Object A").strip()
            project.track(name).add_point(float(row["x"]), float(row["y"]), float(row["time"]))


def build_calibration(args) -> CalibrationState:
    cal = CalibrationState()
    if args.origin:
        cal = cal.with_origin(*args.origin)
        if args.rotation is not None:
            cal = cal.with_rotation(args.rotation)
    if args.ppm is not None:
        cal = CalibrationState(cal.origin, cal.rotation_rad, args.ppm if args.ppm > 0 else None)
    elif args.reference:
        x1, y1, x2, y2, meters = args.reference
        cal = cal.calibrated((x1, y1), (x2, y2), meters)
    return cal


def main():
    parser = argparse.ArgumentParser(description="Analyze clicked motion points and export CSV + graph")
    parser.add_argument("--input", type=str, default=None, help="CSV with time,x,y[,track] columns (pixels, seconds)")
    parser.add_argument("--outdir", type=str, default="outputs", help="Output directory for results")
    parser.add_argument("--config", type=str, default=None, help="Path to config file")
    parser.add_argument("--track", type=str, default=None, help="Track to analyze (default: first)")
    parser.add_argument("--origin", type=float, nargs=2, metavar=("X", "Y"), help="Origin in pixels")
    parser.add_argument("--rotation", type=float, default=None, help="Axis rotation in radians")
    parser.add_argument("--ppm", type=float, default=None, help="Pixels per meter")
    parser.add_argument("--reference", type=float, nargs=5, metavar=("X1", "Y1", "X2", "Y2", "METERS"),
                        help="Two reference pixels and the real distance between them")
    parser.add_argument("--plot-x", choices=QUANTITIES, default=None)
    parser.add_argument("--plot-y", choices=QUANTITIES, default=None)
    parser.add_argument("--fit", choices=FIT_MODELS, default=None)
    parser.add_argument("--video-time", action="store_true", help="Keep absolute video time instead of t=0 at start")
    args = parser.parse_args()

    config_path = args.config or (DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None)
    cfg = load_config(config_path)
    logger = get_logger("motionlab", log_level=cfg["logging"]["level"], log_file=cfg["logging"]["file"])

    project = Project()
    if args.input:
        read_points(Path(args.input), project)
    else:
        logger.info("No input given, generating a synthetic projectile track...")
        project.tracks["Object A"] = synthetic_projectile_track()
        if args.ppm is None and not args.reference:
            args.ppm = 200.0
        if not args.origin:
            args.origin = (100.0, 600.0)

    if not project.tracks:
        parser.error("input contains no points")
    name = args.track or next(iter(project.tracks))
    track = project.track(name, create=False)
    if track is None:
        parser.error(f"unknown track {name!r}; have {sorted(project.tracks)}")

    try:
        calibration = build_calibration(args)
    except InvalidCalibration as e:
        parser.error(str(e))

    settings = AnalysisSettings.from_config(
        cfg,
        plot_x=args.plot_x,
        plot_y=args.plot_y,
        fit_model=args.fit,
        zero_time=False if args.video_time else None,
    )
    analysis = analyze_track(track.sorted_points(), calibration, settings)

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    write_motion_csv(analysis, outdir / cfg["export"]["csv_name"])
    write_graph_png(analysis, outdir / cfg["export"]["graph_name"], cfg["export"])

    if analysis.fit is not None:
        print(analysis.fit.equation(), f"R² = {analysis.fit.r2_text()}")
    else:
        print("No fit")
    print("Done. Outputs in:", outdir)


if __name__ == "__main__":
    main()
