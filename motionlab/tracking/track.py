from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional
import itertools

from motionlab.calib.transform import CalibrationState, DEFAULT_UNCERTAINTY_PX


@dataclass(frozen=True)
class TrackedPoint:
    """A position clicked on a video frame."""
    id: int
    x: float     # pixels
    y: float     # pixels, increasing downward
    time: float  # seconds of video time


class Track:
    """Ordered set of clicked points for one object.

    Points may be added in any order; ``sorted_points`` is what the engine
    consumes. Ties in time keep their insertion order.
    """

    def __init__(self, name: str, points: Optional[Iterable[TrackedPoint]] = None):
        self.name = name
        self._points: List[TrackedPoint] = list(points or [])
        start = max((p.id for p in self._points), default=0) + 1
        self._ids = itertools.count(start)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self._points)

    def __repr__(self) -> str:
        return f"Track({self.name!r}, {len(self._points)} points)"

    @property
    def points(self) -> List[TrackedPoint]:
        return list(self._points)

    def add_point(self, x: float, y: float, time: float) -> TrackedPoint:
        point = TrackedPoint(next(self._ids), float(x), float(y), float(time))
        self._points.append(point)
        return point

    def move_point(self, point_id: int, x: float, y: float) -> Optional[TrackedPoint]:
        """Drag-correct a point; its timestamp is kept."""
        for i, p in enumerate(self._points):
            if p.id == point_id:
                self._points[i] = replace(p, x=float(x), y=float(y))
                return self._points[i]
        return None

    def remove_point(self, point_id: int) -> bool:
        before = len(self._points)
        self._points = [p for p in self._points if p.id != point_id]
        return len(self._points) != before

    def sorted_points(self) -> List[TrackedPoint]:
        return sorted(self._points, key=lambda p: p.time)


@dataclass
class Project:
    """Tracks sharing one calibration, as edited in a single session."""
    calibration: CalibrationState = field(default_factory=CalibrationState)
    tracks: Dict[str, Track] = field(default_factory=dict)
    uncertainty_px: float = DEFAULT_UNCERTAINTY_PX

    def track(self, name: str, create: bool = True) -> Optional[Track]:
        if name not in self.tracks and create:
            self.tracks[name] = Track(name)
        return self.tracks.get(name)

    def remove_track(self, name: str) -> bool:
        return self.tracks.pop(name, None) is not None
