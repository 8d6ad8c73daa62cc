from __future__ import annotations

import logging

from fastapi.testclient import TestClient

from src.protocol.http.app import create_app


def test_healthz_ok() -> None:
    client = TestClient(create_app())
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert "x-request-id" in r.headers


def test_each_request_gets_its_own_id() -> None:
    client = TestClient(create_app())
    ids = {client.get("/healthz").headers["x-request-id"] for _ in range(3)}
    assert len(ids) == 3


def test_error_body_carries_the_header_request_id() -> None:
    client = TestClient(create_app())
    r = client.get("/api/games/missing/state")
    assert r.status_code == 404
    assert r.json()["error"]["request_id"] == r.headers["x-request-id"]


def test_health_log_has_no_game_id(caplog) -> None:
    client = TestClient(create_app())
    caplog.set_level(logging.INFO, logger="src.protocol.http.logging_middleware")
    client.get("/healthz")
    records = [rec for rec in caplog.records if rec.getMessage() == "request"]
    assert records
    assert getattr(records[-1], "game_id") is None
    assert getattr(records[-1], "path") == "/healthz"
