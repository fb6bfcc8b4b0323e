"""HTTP tests for join code verification with lockout."""

import pytest
from fastapi.testclient import TestClient

from dashguard.core.config import settings
from dashguard.services.attempt_guard import AttemptGuard


@pytest.fixture(autouse=True)
def join_code(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(settings.app, "join_code", "cargo-2024")
    return "cargo-2024"


def test_correct_code_is_accepted(client: TestClient, join_code: str) -> None:
    response = client.post("/v1/join/verify", json={"code": join_code})

    assert response.status_code == 200
    assert response.json()["valid"] is True


def test_wrong_code_consumes_attempts(client: TestClient) -> None:
    first = client.post("/v1/join/verify", json={"code": "nope"}).json()
    second = client.post("/v1/join/verify", json={"code": "nope"}).json()

    assert first == {"valid": False, "remaining": 2, "message": "Invalid join code"}
    assert second["remaining"] == 1


def test_blocked_after_too_many_attempts(client: TestClient, join_code: str) -> None:
    for _ in range(3):
        client.post("/v1/join/verify", json={"code": "nope"})

    response = client.post("/v1/join/verify", json={"code": join_code})

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "120"
    assert "Too many failed attempts" in response.json()["detail"]


def test_success_resets_attempts(
    client: TestClient, attempt_guard: AttemptGuard, join_code: str
) -> None:
    client.post("/v1/join/verify", json={"code": "nope"})
    response = client.post("/v1/join/verify", json={"code": join_code})

    assert len(attempt_guard) == 0
    assert response.json()["remaining"] == attempt_guard.max_attempts == 3


def test_missing_configuration_is_400(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings.app, "join_code", None)

    response = client.post("/v1/join/verify", json={"code": "anything"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "join_code_not_configured"


def test_empty_code_is_rejected_by_validation(client: TestClient) -> None:
    response = client.post("/v1/join/verify", json={"code": ""})
    assert response.status_code == 422
