# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared test fixtures and configuration."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from servercat.api.app import create_app
from servercat.core.config import Settings


class FakeClock:
    """Manually advanced clock for time-dependent components."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def make_settings(log_dir: Path) -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        params: dict[str, Any] = {"log_dir": log_dir, "enable_background_tasks": False}
        params.update(overrides)
        return Settings(_env_file=None, **params)

    return _make


@pytest.fixture
def make_app(make_settings: Callable[..., Settings]) -> Callable[..., FastAPI]:
    def _make(**overrides: Any) -> FastAPI:
        return create_app(make_settings(**overrides))

    return _make


@pytest.fixture
def app(make_app: Callable[..., FastAPI]) -> FastAPI:
    return make_app()


@pytest.fixture
async def client(app: FastAPI):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def bearer(app: FastAPI, role: str = "admin", subject: str | None = None) -> dict[str, str]:
    """Authorization header carrying a fresh credential for *role*."""
    token = app.state.services.issuer.issue(subject or f"{role}-1", role).token
    return {"Authorization": f"Bearer {token}"}


def read_log(log_dir: Path, name: str) -> list[dict[str, Any]]:
    """Parse every JSON line of ``log_dir / name``; a missing file reads as empty."""
    path = log_dir / name
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


@pytest.fixture
def auth_headers(app: FastAPI) -> Callable[..., dict[str, str]]:
    def _headers(role: str = "admin", subject: str | None = None) -> dict[str, str]:
        return bearer(app, role, subject)

    return _headers


@pytest.fixture
def security_events(log_dir: Path) -> Callable[[str], list[dict[str, Any]]]:
    """Reader for the JSON-lines log files the app under test wrote."""

    def _read(name: str = "security.log") -> list[dict[str, Any]]:
        return read_log(log_dir, name)

    return _read
