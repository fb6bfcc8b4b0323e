"""Tests for app construction and the background attempt guard cleanup."""

import time
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from dashguard.core.config import settings
from dashguard.services.attempt_guard import AttemptGuard


def _wait_until(condition, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def test_state_holds_injected_stores(
    app: FastAPI, limiter, attempt_guard: AttemptGuard
) -> None:
    assert app.state.rate_limiter is limiter
    assert app.state.attempt_guard is attempt_guard


def test_lifespan_prunes_idle_attempts(
    app: FastAPI,
    attempt_guard: AttemptGuard,
    clock: Mock,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "join_prune_interval_ms", 10)
    attempt_guard.check("join:ip:10.0.0.1")
    clock.return_value = 120_000.0

    with TestClient(app):
        assert _wait_until(lambda: len(attempt_guard) == 0)


def test_lifespan_keeps_blocked_callers(
    app: FastAPI,
    attempt_guard: AttemptGuard,
    clock: Mock,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "join_prune_interval_ms", 10)
    for _ in range(4):
        attempt_guard.check("join:ip:10.0.0.2")
    attempt_guard.check("join:ip:10.0.0.3")
    clock.return_value = 100_000.0

    with TestClient(app):
        assert _wait_until(lambda: len(attempt_guard) == 1)
        assert not attempt_guard.check("join:ip:10.0.0.2").allowed


def test_zero_interval_disables_prune(
    app: FastAPI,
    attempt_guard: AttemptGuard,
    clock: Mock,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings.app, "join_prune_interval_ms", 0)
    attempt_guard.check("join:ip:10.0.0.1")
    clock.return_value = 120_000.0

    with TestClient(app):
        time.sleep(0.05)

    assert len(attempt_guard) == 1
