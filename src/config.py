from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from src.engine.move import Color


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def depth(self) -> int:
        """Search depth in plies for this tier."""
        return _DEPTHS[self]


_DEPTHS = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 2,
    Difficulty.HARD: 3,
}


@dataclass(frozen=True)
class Settings:
    """Process configuration for the local play host.

    Loaded from ``CHESS_*`` environment variables; every field has a default
    so an empty environment is valid.
    """

    default_difficulty: Difficulty = Difficulty.MEDIUM
    ai_color: Color = Color.BLACK
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000
    clock_seconds: int = 300

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: If a variable holds an unknown difficulty, color, log
                level, a non-integer port, or a clock length that is not a
                positive integer.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        raw_difficulty = env.get("CHESS_DIFFICULTY", defaults.default_difficulty.value)
        try:
            difficulty = Difficulty(raw_difficulty.lower())
        except ValueError as e:
            raise ValueError(f"invalid CHESS_DIFFICULTY: {raw_difficulty!r}") from e

        raw_color = env.get("CHESS_AI_COLOR", defaults.ai_color.value)
        try:
            ai_color = Color(raw_color.lower())
        except ValueError as e:
            raise ValueError(f"invalid CHESS_AI_COLOR: {raw_color!r}") from e

        log_level = env.get("CHESS_LOG_LEVEL", defaults.log_level).upper()
        if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid CHESS_LOG_LEVEL: {log_level!r}")

        raw_port = env.get("CHESS_PORT", str(defaults.port))
        try:
            port = int(raw_port)
        except ValueError as e:
            raise ValueError(f"invalid CHESS_PORT: {raw_port!r}") from e

        raw_clock = env.get("CHESS_CLOCK_SECONDS", str(defaults.clock_seconds))
        try:
            clock_seconds = int(raw_clock)
        except ValueError as e:
            raise ValueError(f"invalid CHESS_CLOCK_SECONDS: {raw_clock!r}") from e
        if clock_seconds <= 0:
            raise ValueError(f"invalid CHESS_CLOCK_SECONDS: {raw_clock!r}")

        return cls(
            default_difficulty=difficulty,
            ai_color=ai_color,
            log_level=log_level,
            host=env.get("CHESS_HOST", defaults.host),
            port=port,
            clock_seconds=clock_seconds,
        )
