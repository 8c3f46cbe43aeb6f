from pathlib import Path
from typing import Any, Dict, Optional, Union
import copy
import os

import yaml

from motionlab.physics.fit import FIT_MODELS
from motionlab.physics.model import QUANTITIES

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = ROOT / "configs" / "defaults.yaml"

LEGEND_POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right", "none")

DEFAULTS: Dict[str, Any] = {
    "analysis": {
        "plot_x": "time",
        "plot_y": "x",
        "fit_model": "none",
        "zero_time": True,
        "uncertainty_px": 10,
        "decimals": 3,
    },
    "export": {
        "csv_name": "motion_data.csv",
        "graph_name": "graph.png",
        "width": 1200,
        "height": 800,
        "margin_left": 120,
        "margin_right": 40,
        "margin_top": 100,
        "margin_bottom": 110,
        "legend": "top-left",
        "point_color": [255, 0, 0],
        "fit_color": [0, 0, 255],
        "grid_color": [175, 163, 156],
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}


class ConfigError(ValueError):
    pass


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    # only keys known to the defaults are taken over
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if key not in out:
            continue
        if isinstance(out[key], dict):
            if not isinstance(value, dict):
                raise ConfigError(f"Section '{key}' must be a mapping")
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def validate(cfg: Dict[str, Any]) -> Dict[str, Any]:
    analysis = cfg["analysis"]
    for axis in ("plot_x", "plot_y"):
        if analysis[axis] not in QUANTITIES:
            raise ConfigError(f"analysis.{axis} must be one of {QUANTITIES}, got {analysis[axis]!r}")
    if analysis["fit_model"] not in FIT_MODELS:
        raise ConfigError(f"analysis.fit_model must be one of {FIT_MODELS}, got {analysis['fit_model']!r}")
    if cfg["export"]["legend"] not in LEGEND_POSITIONS:
        raise ConfigError(f"export.legend must be one of {LEGEND_POSITIONS}")
    return cfg


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load a YAML config merged over the built-in defaults.

    ``LOG_LEVEL`` in the environment overrides ``logging.level``.
    """
    user: Dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            user = yaml.safe_load(f) or {}
        if not isinstance(user, dict):
            raise ConfigError(f"Config root must be a mapping: {path}")

    cfg = validate(_merge(DEFAULTS, user))
    if os.environ.get("LOG_LEVEL"):
        cfg["logging"]["level"] = os.environ["LOG_LEVEL"]
    return cfg
