"""Round-number axis ranges shared by the live chart and every export."""
from dataclasses import dataclass, field
from typing import Iterable, List
import math

TARGET_TICKS = 6
PADDING_FRACTION = 0.05
TICK_DECIMALS = 4


@dataclass(frozen=True)
class AxisScale:
    min: float
    max: float
    step: float
    ticks: List[float] = field(default_factory=list)

    def labels(self) -> List[str]:
        return [format_tick(t, self.step) for t in self.ticks]

    def to_dict(self):
        return {"min": self.min, "max": self.max, "step": self.step, "ticks": list(self.ticks)}


DEFAULT_SCALE = AxisScale(0.0, 10.0, 10.0, [0.0, 10.0])


def _nice_step(raw_step: float) -> float:
    mag = math.floor(math.log10(raw_step))
    mag_pow = 10.0 ** mag
    mantissa = raw_step / mag_pow
    if mantissa < 1.5:
        nice = 1.0
    elif mantissa < 2.25:
        nice = 2.0
    elif mantissa < 3.5:
        nice = 2.5
    elif mantissa < 7.5:
        nice = 5.0
    else:
        nice = 10.0
    return nice * mag_pow


def nice_scale(min_value: float, max_value: float, lock_zero_if_positive: bool = False) -> AxisScale:
    """Padded axis bounds snapped to a 1/2/2.5/5 x 10^k step.

    Args:
        min_value: Smallest data value on the axis
        max_value: Largest data value on the axis
        lock_zero_if_positive: Start the axis at exactly 0 when all data is
            non-negative (used for time axes)

    Returns:
        AxisScale covering ``[min_value, max_value]`` with about six ticks.
        Non-finite, zero-width or overflowing input gives ``DEFAULT_SCALE``.
    """
    if not (math.isfinite(min_value) and math.isfinite(max_value)) or min_value == max_value:
        return DEFAULT_SCALE

    value_range = max_value - min_value
    padding = 1.0 if value_range == 0 else value_range * PADDING_FRACTION
    padded_min = min_value - padding
    padded_max = max_value + padding
    if lock_zero_if_positive and min_value >= 0:
        padded_min = 0.0
    if not math.isfinite(padded_max - padded_min):
        # span beyond float range
        return DEFAULT_SCALE

    step = _nice_step((padded_max - padded_min) / TARGET_TICKS)
    nice_min = math.floor(padded_min / step) * step
    nice_max = math.ceil(padded_max / step) * step

    count = int(round((nice_max - nice_min) / step))
    ticks = [round(nice_min + i * step, TICK_DECIMALS) for i in range(count + 1)]
    return AxisScale(nice_min, nice_max, step, ticks)


def scale_for_values(values: Iterable[float], lock_zero_if_positive: bool = False) -> AxisScale:
    finite = [v for v in values if v is not None and math.isfinite(v)]
    if not finite:
        return DEFAULT_SCALE
    return nice_scale(min(finite), max(finite), lock_zero_if_positive)


def tick_decimals(step: float) -> int:
    """Decimals needed to print multiples of ``step`` without float noise."""
    if not math.isfinite(step) or step == 0:
        return 0
    clean = round(abs(step), 10)
    if clean == int(clean):
        return 0
    text = f"{clean:.10f}".rstrip("0")
    return len(text.split(".")[1])


def format_tick(value: float, step: float) -> str:
    text = f"{value:.{tick_decimals(step)}f}"
    # avoid "-0" / "-0.0" labels
    if float(text) == 0:
        text = text.lstrip("-")
    return text
