from __future__ import annotations

import time
from typing import Callable, Dict, Optional

from .move import Color


DEFAULT_CLOCK_MS = 5 * 60 * 1000


class ChessClock:
    """Per-side countdown clock; at most one side runs at a time.

    Time is read from ``now`` (seconds, monotonic) so tests can drive it.
    Remaining time never goes below zero; a side at zero has flagged.
    """

    def __init__(
        self,
        initial_ms: int = DEFAULT_CLOCK_MS,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        if initial_ms <= 0:
            raise ValueError("initial_ms must be > 0")
        self.initial_ms = initial_ms
        self._now = now
        self._remaining: Dict[Color, int] = {Color.WHITE: initial_ms, Color.BLACK: initial_ms}
        self._running: Optional[Color] = None
        self._since = 0.0

    @property
    def running(self) -> Optional[Color]:
        return self._running

    def start(self, color: Color) -> None:
        """Stop whichever side is running and start ``color``'s clock."""
        self.stop()
        self._running = color
        self._since = self._now()

    def stop(self) -> None:
        if self._running is None:
            return
        self._remaining[self._running] = self.remaining_ms(self._running)
        self._running = None

    def reset(self) -> None:
        self._running = None
        self._remaining = {Color.WHITE: self.initial_ms, Color.BLACK: self.initial_ms}

    def remaining_ms(self, color: Color) -> int:
        left = self._remaining[color]
        if color is self._running:
            left -= int((self._now() - self._since) * 1000)
        return max(0, left)

    def flagged(self) -> Optional[Color]:
        """The side whose time has run out, if any."""
        for color in (Color.WHITE, Color.BLACK):
            if self.remaining_ms(color) == 0:
                return color
        return None

    def snapshot(self) -> Dict[str, int]:
        return {c.value: self.remaining_ms(c) for c in (Color.WHITE, Color.BLACK)}
