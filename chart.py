"""
ASCII line charts of the gas price series.

Plotting is done by asciichartpy. The series is windowed and resampled to
the configured width first, and the caption is centred below the plot.
"""
import sys
import time
from typing import List, Optional, Sequence

import asciichartpy
import numpy as np

from schemas import ChartConfig

CLEAR_SCREEN = "\033[2J\033[H"


def trim_window(series: Sequence[float], window_size: int) -> List[float]:
    """Keep the trailing `window_size` values; 0 keeps everything."""
    data = list(series)
    if window_size > 0 and len(data) > window_size:
        data = data[len(data) - window_size:]
    return data


def resample(values: np.ndarray, width: int) -> np.ndarray:
    """Linearly interpolate `values` onto `width` evenly spaced points."""
    if width <= 0 or len(values) == 0 or len(values) == width:
        return values
    if len(values) == 1:
        return np.full(width, values[0])
    positions = np.linspace(0, len(values) - 1, width)
    return np.interp(positions, np.arange(len(values)), values)


def _axis_column(line: str) -> int:
    positions = [line.find(symbol) for symbol in ("┤", "┼")]
    return min(p for p in positions if p >= 0)


def render(series: Sequence[float], config: ChartConfig) -> str:
    data = trim_window(series, config.window_size)
    values = np.asarray(data, dtype=float)
    # NULL and non-finite rows cannot be scaled onto the chart
    values = values[np.isfinite(values)]

    if len(values) == 0:
        return " " * config.offset + config.caption

    values = resample(values, config.width)
    chart = asciichartpy.plot(values.tolist(), {
        "height": config.height,
        "offset": config.offset,
        "format": "{:8.%df} " % config.precision,
    })
    lines = chart.split("\n")

    # Centre the caption under the plotted cells
    plot_width = max(len(values) - 1, 0)
    padding = _axis_column(lines[0]) + 1 + max((plot_width - len(config.caption)) // 2, 0)
    lines.append("")
    lines.append(" " * padding + config.caption)
    return "\n".join(lines)


class RefreshThrottle:
    """
    Limits how often frames are emitted. A frame is allowed when the clock
    has reached the next allowed time, which then moves 1/fps ahead.
    """

    def __init__(self, fps: float, clock=time.monotonic):
        self.interval = 1.0 / fps if fps > 0 else 0.0
        self._clock = clock
        self._next_allowed: Optional[float] = None

    def ready(self) -> bool:
        now = self._clock()
        if self._next_allowed is not None and now < self._next_allowed:
            return False
        self._next_allowed = now + self.interval
        return True


class ChartRenderer:
    def __init__(self, config: ChartConfig, out=None, clock=time.monotonic):
        self.config = config
        self.out = out
        self.throttle = RefreshThrottle(config.fps, clock)

    def draw(self, series: Sequence[float]) -> Optional[str]:
        """Write a frame for `series` unless throttled; returns the frame or None."""
        if not self.throttle.ready():
            return None

        data = trim_window(series, self.config.window_size)
        frame = render(data, self.config) + f"\n\nData =  {data}"
        if self.config.clear_screen:
            frame = CLEAR_SCREEN + frame

        out = self.out if self.out is not None else sys.stdout
        out.write(frame + "\n")
        out.flush()
        return frame
