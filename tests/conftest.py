"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so no .env file is loaded, and provides environment
defaults that the settings object reads at import time.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

os.environ.setdefault(
    "APP_API_KEYS",
    "admin-key:alice:ADMIN,user-key:bob,manager-key:carol:MANAGER",
)
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from dashguard.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter  # noqa: E402
from dashguard.core.app_factory import create_app  # noqa: E402
from dashguard.services.attempt_guard import AttemptGuard  # noqa: E402


@pytest.fixture
def clock() -> Mock:
    """Millisecond clock frozen at t=0; tests move it via ``return_value``."""
    return Mock(return_value=0.0)


@pytest.fixture
def limiter(clock: Mock) -> InMemoryFixedWindowRateLimiter:
    return InMemoryFixedWindowRateLimiter(clock=clock)


@pytest.fixture
def attempt_guard(clock: Mock) -> AttemptGuard:
    return AttemptGuard(max_attempts=3, window_ms=60_000, block_ms=120_000, clock=clock)


@pytest.fixture
def app(limiter: InMemoryFixedWindowRateLimiter, attempt_guard: AttemptGuard) -> FastAPI:
    return create_app(rate_limiter=limiter, attempt_guard=attempt_guard)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
