from typing import List, Optional, Sequence, Tuple
import cv2
import numpy as np

from .scale import AxisScale

Color = Tuple[int, int, int]
BLACK: Color = (0, 0, 0)
FONT = cv2.FONT_HERSHEY_SIMPLEX
PX_LIMIT = 1e6


class PlotArea:
    """Maps data coordinates onto a pixel rectangle of a canvas."""

    def __init__(self, left: int, top: int, right: int, bottom: int, x_scale: AxisScale, y_scale: AxisScale):
        self.left, self.top, self.right, self.bottom = left, top, right, bottom
        self.x_scale = x_scale
        self.y_scale = y_scale

    def to_px(self, x: float, y: float) -> Tuple[int, int]:
        xs, ys = self.x_scale, self.y_scale
        fx = (x - xs.min) / (xs.max - xs.min)
        fy = (y - ys.min) / (ys.max - ys.min)
        px = self.left + fx * (self.right - self.left)
        py = self.bottom - fy * (self.bottom - self.top)
        # keep far-off extrapolation within int32 for OpenCV
        px = min(max(px, -PX_LIMIT), PX_LIMIT)
        py = min(max(py, -PX_LIMIT), PX_LIMIT)
        return int(round(px)), int(round(py))

    @property
    def rect(self) -> Tuple[int, int, int, int]:
        return self.left, self.top, self.right - self.left, self.bottom - self.top


def draw_grid(canvas: np.ndarray, area: PlotArea, labels_x: Sequence[str], labels_y: Sequence[str],
              color: Color, font_scale: float = 0.6) -> np.ndarray:
    """Grid lines and tick labels at every tick of both scales, plus a border."""
    for tick, label in zip(area.x_scale.ticks, labels_x):
        px, _ = area.to_px(tick, area.y_scale.min)
        cv2.line(canvas, (px, area.top), (px, area.bottom), color, 1, cv2.LINE_AA)
        (w, h), _ = cv2.getTextSize(label, FONT, font_scale, 2)
        cv2.putText(canvas, label, (px - w // 2, area.bottom + h + 12), FONT, font_scale, BLACK, 2, cv2.LINE_AA)
    for tick, label in zip(area.y_scale.ticks, labels_y):
        _, py = area.to_px(area.x_scale.min, tick)
        cv2.line(canvas, (area.left, py), (area.right, py), color, 1, cv2.LINE_AA)
        (w, h), _ = cv2.getTextSize(label, FONT, font_scale, 2)
        cv2.putText(canvas, label, (area.left - w - 10, py + h // 2), FONT, font_scale, BLACK, 2, cv2.LINE_AA)
    cv2.rectangle(canvas, (area.left, area.top), (area.right, area.bottom), BLACK, 1)
    return canvas


def draw_markers(canvas: np.ndarray, area: PlotArea, xs: Sequence[float], ys: Sequence[float],
                 color: Color, radius: int = 5) -> np.ndarray:
    for x, y in zip(xs, ys):
        if x is None or y is None or not (np.isfinite(x) and np.isfinite(y)):
            continue
        cv2.circle(canvas, area.to_px(x, y), radius, color, -1, cv2.LINE_AA)
    return canvas


def draw_dashed_polyline(canvas: np.ndarray, area: PlotArea, points: np.ndarray, color: Color,
                         thickness: int = 2, dash: int = 5, gap: int = 3) -> np.ndarray:
    """Dashed curve through ``points`` (data units), clipped to the plot area."""
    px = [area.to_px(float(x), float(y)) for x, y in points]
    carry = 0.0  # dash phase carried across segments
    for p0, p1 in zip(px[:-1], px[1:]):
        inside, c0, c1 = cv2.clipLine(area.rect, p0, p1)
        if not inside:
            continue
        seg = np.array(c1, dtype=float) - np.array(c0, dtype=float)
        length = float(np.hypot(*seg))
        if length == 0:
            continue
        pos = 0.0
        while pos < length:
            phase = (carry + pos) % (dash + gap)
            if phase < dash:
                run = min(dash - phase, length - pos)
                a = np.array(c0) + seg * (pos / length)
                b = np.array(c0) + seg * ((pos + run) / length)
                cv2.line(canvas, tuple(int(v) for v in a), tuple(int(v) for v in b), color, thickness, cv2.LINE_AA)
            else:
                run = min(dash + gap - phase, length - pos)
            pos += run
        carry = (carry + length) % (dash + gap)
    return canvas


def put_centered(canvas: np.ndarray, text: str, center_x: int, baseline_y: int,
                 font_scale: float = 1.0, thickness: int = 2) -> np.ndarray:
    (w, _), _ = cv2.getTextSize(text, FONT, font_scale, thickness)
    cv2.putText(canvas, text, (center_x - w // 2, baseline_y), FONT, font_scale, BLACK, thickness, cv2.LINE_AA)
    return canvas


def put_vertical(canvas: np.ndarray, text: str, center_x: int, center_y: int,
                 font_scale: float = 0.8, thickness: int = 2) -> np.ndarray:
    """Text rotated 90 degrees counter-clockwise, for the Y axis label."""
    (w, h), base = cv2.getTextSize(text, FONT, font_scale, thickness)
    strip = np.full((h + base + 4, w + 4, 3), 255, dtype=np.uint8)
    cv2.putText(strip, text, (2, h + 2), FONT, font_scale, BLACK, thickness, cv2.LINE_AA)
    strip = cv2.rotate(strip, cv2.ROTATE_90_COUNTERCLOCKWISE)
    sh, sw = strip.shape[:2]
    y0 = max(0, center_y - sh // 2)
    x0 = max(0, center_x - sw // 2)
    y1 = min(canvas.shape[0], y0 + sh)
    x1 = min(canvas.shape[1], x0 + sw)
    canvas[y0:y1, x0:x1] = np.minimum(canvas[y0:y1, x0:x1], strip[: y1 - y0, : x1 - x0])
    return canvas


def draw_legend(canvas: np.ndarray, area: PlotArea, lines: List[str], position: str,
                font_scale: float = 0.7, padding: int = 16) -> Optional[Tuple[int, int, int, int]]:
    """Boxed text in a corner of the plot area; returns the box as (x, y, w, h)."""
    if position == "none" or not lines:
        return None
    sizes = [cv2.getTextSize(t, FONT, font_scale, 2)[0] for t in lines]
    line_h = max(h for _, h in sizes) + 14
    box_w = max(w for w, _ in sizes) + 2 * padding
    box_h = line_h * len(lines) + padding
    x = area.left + padding if "left" in position else area.right - padding - box_w
    y = area.top + padding if "top" in position else area.bottom - padding - box_h
    cv2.rectangle(canvas, (x, y), (x + box_w, y + box_h), (255, 255, 255), -1)
    cv2.rectangle(canvas, (x, y), (x + box_w, y + box_h), BLACK, 1)
    for i, text in enumerate(lines):
        cv2.putText(canvas, text, (x + padding, y + padding + line_h * i + sizes[i][1]),
                    FONT, font_scale, BLACK, 2, cv2.LINE_AA)
    return x, y, box_w, box_h
