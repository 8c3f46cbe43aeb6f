from pathlib import Path
from typing import Any, Dict, Optional, Union
import csv
import io

import cv2
import numpy as np

from motionlab.config import DEFAULTS
from motionlab.pipeline import Analysis
from motionlab.utils.logger import get_logger
from .overlay import (
    PlotArea,
    draw_dashed_polyline,
    draw_grid,
    draw_legend,
    draw_markers,
    put_centered,
    put_vertical,
)

logger = get_logger("export")

TREND_SAMPLES = 200


def motion_csv_text(analysis: Analysis) -> str:
    """Position block, a blank line, then the velocity block."""
    unit = analysis.unit
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["Time (s)", f"X ({unit})", f"Y ({unit})", f"Uncertainty ({unit})"])
    for p in analysis.positions:
        writer.writerow([p.time, p.x, p.y, p.uncertainty])
    writer.writerow([])
    writer.writerow(["Velocity Data", "Time (s)", f"Vx ({unit}/s)", f"Vy ({unit}/s)"])
    for v in analysis.velocities:
        writer.writerow(["", v.time, v.vx, v.vy])
    return buf.getvalue()


def write_motion_csv(analysis: Analysis, output_path: Union[str, Path]) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(motion_csv_text(analysis), encoding="utf-8")
    logger.info(f"Wrote {len(analysis.positions)} positions, {len(analysis.velocities)} velocities to {output_path}")
    return output_path


def _ascii(text: str) -> str:
    # Hershey fonts only cover ASCII
    return text.replace("²", "^2")


def render_graph(analysis: Analysis, export_cfg: Optional[Dict[str, Any]] = None,
                 legend: Optional[str] = None) -> np.ndarray:
    """Render the active series, trend line and legend as a BGR image.

    The axes use ``analysis.x_scale`` / ``analysis.y_scale`` as they are, so
    the exported ticks are the ones the live chart shows.
    """
    cfg = dict(DEFAULTS["export"])
    cfg.update(export_cfg or {})
    legend = legend or cfg["legend"]
    width, height = int(cfg["width"]), int(cfg["height"])

    canvas = np.full((height, width, 3), 255, dtype=np.uint8)
    area = PlotArea(
        left=int(cfg["margin_left"]),
        top=int(cfg["margin_top"]),
        right=width - int(cfg["margin_right"]),
        bottom=height - int(cfg["margin_bottom"]),
        x_scale=analysis.x_scale,
        y_scale=analysis.y_scale,
    )

    draw_grid(canvas, area, analysis.x_scale.labels(), analysis.y_scale.labels(), tuple(cfg["grid_color"]))

    if analysis.fit is not None:
        xs = np.linspace(analysis.x_scale.min, analysis.x_scale.max, TREND_SAMPLES)
        curve = np.column_stack([xs, analysis.fit.predict(xs)])
        draw_dashed_polyline(canvas, area, curve, tuple(cfg["fit_color"]))

    rows = analysis.rows
    draw_markers(canvas, area, [r["x"] for r in rows], [r["y"] for r in rows], tuple(cfg["point_color"]))

    put_centered(canvas, _ascii(analysis.title), width // 2, int(cfg["margin_top"]) // 2 + 12, font_scale=1.1)
    put_centered(canvas, _ascii(analysis.x_label), (area.left + area.right) // 2, height - 25, font_scale=0.9)
    put_vertical(canvas, _ascii(analysis.y_label), 25, (area.top + area.bottom) // 2, font_scale=0.9)

    if analysis.fit is not None:
        draw_legend(canvas, area, [
            _ascii(analysis.legend_equation()),
            f"R^2 = {analysis.fit.r2_text()}",
        ], legend)
    return canvas


def encode_png(image: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", image)
    if not ok:
        raise RuntimeError("PNG encoding failed")
    return buf.tobytes()


def write_graph_png(analysis: Analysis, output_path: Union[str, Path],
                    export_cfg: Optional[Dict[str, Any]] = None, legend: Optional[str] = None) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image = render_graph(analysis, export_cfg, legend)
    if not cv2.imwrite(str(output_path), image):
        raise RuntimeError(f"Could not write graph: {output_path}")
    logger.info(f"Wrote graph to {output_path}")
    return output_path
