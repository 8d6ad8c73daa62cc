from __future__ import annotations

import pytest

from src.config import Difficulty, Settings
from src.engine.move import Color


def test_difficulty_maps_to_depth() -> None:
    assert [d.depth for d in (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)] == [1, 2, 3]


def test_defaults_without_environment() -> None:
    s = Settings.from_env({})
    assert s == Settings()
    assert s.default_difficulty is Difficulty.MEDIUM
    assert s.ai_color is Color.BLACK
    assert s.log_level == "INFO"
    assert s.port == 8000


def test_environment_overrides() -> None:
    s = Settings.from_env(
        {
            "CHESS_DIFFICULTY": "Hard",
            "CHESS_AI_COLOR": "WHITE",
            "CHESS_LOG_LEVEL": "debug",
            "CHESS_HOST": "0.0.0.0",
            "CHESS_PORT": "9001",
            "CHESS_CLOCK_SECONDS": "600",
        }
    )
    assert s.default_difficulty is Difficulty.HARD
    assert s.ai_color is Color.WHITE
    assert s.log_level == "DEBUG"
    assert s.host == "0.0.0.0"
    assert s.port == 9001
    assert s.clock_seconds == 600


@pytest.mark.parametrize(
    "key,value",
    [
        ("CHESS_DIFFICULTY", "grandmaster"),
        ("CHESS_AI_COLOR", "green"),
        ("CHESS_LOG_LEVEL", "loud"),
        ("CHESS_PORT", "http"),
        ("CHESS_CLOCK_SECONDS", "0"),
        ("CHESS_CLOCK_SECONDS", "soon"),
    ],
)
def test_invalid_values_raise(key: str, value: str) -> None:
    with pytest.raises(ValueError, match=key):
        Settings.from_env({key: value})


def test_create_app_applies_settings() -> None:
    from fastapi.testclient import TestClient

    from src.protocol.http.app import create_app

    app = create_app(Settings(default_difficulty=Difficulty.EASY, ai_color=Color.WHITE))
    client = TestClient(app)
    body = client.post("/api/games", json={"mode": "local"}).json()
    assert body["difficulty"] == "easy"
    assert body["ai_color"] == "white"
