"""
Chess clock: one countdown per side, only the side to move loses time.

The Game starts it for the side to move, hands it over after every move and stops it once the game is over.
A side whose countdown reached zero has lost on time.
"""

import time
from typing import Callable, Optional

from src.chess.pieces import Color

DEFAULT_SECONDS_PER_SIDE = 600


class Clock:
    def __init__(
        self,
        seconds_per_side: float = DEFAULT_SECONDS_PER_SIDE,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        if seconds_per_side <= 0:
            raise ValueError(f"A clock needs a positive amount of time, got {seconds_per_side}")
        self._time_source = time_source
        self._remaining: dict[Color, float] = {color: float(seconds_per_side) for color in Color}
        self._active_color: Optional[Color] = None
        self._turn_start: Optional[float] = None

    @property
    def active_color(self) -> Optional[Color]:
        return self._active_color

    @property
    def is_running(self) -> bool:
        return self._active_color is not None

    def start(self, color: Color) -> None:
        """Run the clock of `color`. A clock that was running for the other side is charged first."""
        self.stop()
        self._active_color = color
        self._turn_start = self._time_source()

    def stop(self) -> None:
        if self._active_color is None or self._turn_start is None:
            return
        elapsed = self._time_source() - self._turn_start
        self._remaining[self._active_color] = max(0.0, self._remaining[self._active_color] - elapsed)
        self._active_color = None
        self._turn_start = None

    def switch(self) -> None:
        """Hand the running clock over to the other side"""
        if self._active_color is None:
            return
        self.start(self._active_color.opposite)

    def remaining(self, color: Color) -> float:
        """Seconds left, including the time spent on the turn in progress"""
        remaining = self._remaining[color]
        if self._active_color == color and self._turn_start is not None:
            remaining -= self._time_source() - self._turn_start
        return max(0.0, remaining)

    def is_time_up(self, color: Color) -> bool:
        return self.remaining(color) <= 0.0

    def time_up_color(self) -> Optional[Color]:
        for color in Color:
            if self.is_time_up(color):
                return color
        return None

    def format_time(self, color: Color) -> str:
        """MM:SS, or SS.mmm in the last minute"""
        remaining = self.remaining(color)
        minutes, seconds = divmod(int(remaining), 60)
        if minutes > 0:
            return f"{minutes:02d}:{seconds:02d}"
        millis = int((remaining - int(remaining)) * 1000)
        return f"{seconds:02d}.{millis:03d}"
