"""Unit tests for session resolution from API keys."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from dashguard.core.auth import (
    ANONYMOUS,
    lookup_session,
    parse_api_key_sessions,
    requires_role,
    resolve_session,
)
from dashguard.core.errors import (
    AuthenticationAppError,
    AuthorizationAppError,
    ValidationAppError,
)
from dashguard.schemas.session import Role


class _FakeRequest:
    def __init__(self, headers: dict[str, str] | None = None) -> None:
        self.headers = headers or {}
        self.state = SimpleNamespace()


class TestParseApiKeySessions:
    """Test parsing of key:user_id[:ROLE] entries."""

    def test_parse_entries_with_and_without_role(self) -> None:
        result = parse_api_key_sessions("k1:alice:ADMIN,k2:bob")

        assert result["k1"].id == "alice"
        assert result["k1"].role is Role.ADMIN
        assert result["k2"].role is Role.USER

    def test_parse_trims_whitespace(self) -> None:
        result = parse_api_key_sessions(" k1 : alice : MANAGER ,  k2:bob ")
        assert set(result) == {"k1", "k2"}
        assert result["k1"].role is Role.MANAGER

    @pytest.mark.parametrize("value", [None, "", "  ,  , "])
    def test_parse_empty_returns_empty_mapping(self, value) -> None:
        assert parse_api_key_sessions(value) == {}

    @pytest.mark.parametrize("value", ["just-a-key", "k1:", ":alice", "k1:a:USER:extra"])
    def test_parse_rejects_malformed_entries(self, value: str) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            parse_api_key_sessions(value)
        assert exc_info.value.code == "invalid_api_key_entry"

    def test_parse_rejects_unknown_role(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            parse_api_key_sessions("k1:alice:admin")
        assert exc_info.value.code == "unknown_role"

    def test_parse_rejects_duplicate_keys(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            parse_api_key_sessions("k1:alice,k1:bob")
        assert exc_info.value.code == "duplicate_api_key"


class TestLookupSession:
    @patch("dashguard.core.auth.settings")
    def test_known_key_resolves_user(self, mock_settings) -> None:
        mock_settings.app.api_keys = "k1:alice:OWNER"

        session = lookup_session("k1")

        assert session.user is not None
        assert session.user.id == "alice"
        assert session.user.role is Role.OWNER

    @patch("dashguard.core.auth.settings")
    def test_unknown_key_is_anonymous(self, mock_settings) -> None:
        mock_settings.app.api_keys = "k1:alice"
        assert lookup_session("nope") is ANONYMOUS

    def test_missing_key_is_anonymous(self) -> None:
        assert lookup_session(None) is ANONYMOUS
        assert lookup_session("") is ANONYMOUS


class TestResolveSession:
    @pytest.mark.asyncio
    @patch("dashguard.core.auth.settings")
    async def test_resolves_once_and_caches(self, mock_settings) -> None:
        mock_settings.app.api_keys = "k1:alice"
        request = _FakeRequest({"X-API-Key": "k1"})

        first = await resolve_session(request)
        mock_settings.app.api_keys = "k1:someone-else"
        second = await resolve_session(request)

        assert first is second
        assert request.state.session is first
        assert first.user.id == "alice"

    @pytest.mark.asyncio
    async def test_no_header_is_anonymous(self) -> None:
        session = await resolve_session(_FakeRequest())
        assert session.user is None


class TestRequiresRoleDependency:
    @pytest.mark.asyncio
    @patch("dashguard.core.auth.settings")
    async def test_allows_listed_role(self, mock_settings) -> None:
        mock_settings.app.api_keys = "k1:alice:ADMIN"
        dependency = requires_role([Role.ADMIN])

        session = await dependency(_FakeRequest({"X-API-Key": "k1"}))

        assert session.user.id == "alice"

    @pytest.mark.asyncio
    @patch("dashguard.core.auth.settings")
    async def test_rejects_unlisted_role(self, mock_settings) -> None:
        mock_settings.app.api_keys = "k1:bob"
        dependency = requires_role([Role.ADMIN])

        with pytest.raises(AuthorizationAppError):
            await dependency(_FakeRequest({"X-API-Key": "k1"}))

    @pytest.mark.asyncio
    async def test_rejects_anonymous(self) -> None:
        with pytest.raises(AuthenticationAppError):
            await requires_role([])(_FakeRequest())

    @pytest.mark.asyncio
    @patch("dashguard.core.auth.settings")
    async def test_single_role_string(self, mock_settings) -> None:
        mock_settings.app.api_keys = "k1:alice:ADMIN,k2:bob"
        dependency = requires_role("ADMIN")

        session = await dependency(_FakeRequest({"X-API-Key": "k1"}))
        assert session.user.id == "alice"

        with pytest.raises(AuthorizationAppError):
            await dependency(_FakeRequest({"X-API-Key": "k2"}))
