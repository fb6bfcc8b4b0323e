"""Unit tests for the role-based authorization guard."""

import pytest

from dashguard.core.authz import require_role
from dashguard.core.errors import (
    AuthenticationAppError,
    AuthErrorKind,
    AuthorizationAppError,
)
from dashguard.schemas.session import Role, Session, SessionUser


def _session(role: Role = Role.USER) -> Session:
    return Session(user=SessionUser(id="u-1", role=role))


class TestUnauthenticated:
    """Missing identity always fails with UNAUTHORIZED."""

    def test_no_session(self) -> None:
        with pytest.raises(AuthenticationAppError) as exc_info:
            require_role(None)

        assert exc_info.value.kind is AuthErrorKind.UNAUTHORIZED
        assert exc_info.value.kind.http_status == 401

    def test_session_without_user(self) -> None:
        with pytest.raises(AuthenticationAppError):
            require_role(Session(user=None))

    def test_empty_roles_still_requires_identity(self) -> None:
        with pytest.raises(AuthenticationAppError):
            require_role(Session(), [])


class TestRoleMembership:
    """Role checks are exact membership tests."""

    def test_default_allows_user(self) -> None:
        session = _session(Role.USER)
        assert require_role(session) is session

    def test_admin_not_implicitly_user(self) -> None:
        with pytest.raises(AuthorizationAppError) as exc_info:
            require_role(_session(Role.ADMIN))

        assert exc_info.value.kind is AuthErrorKind.FORBIDDEN
        assert exc_info.value.kind.http_status == 403

    def test_user_forbidden_from_admin(self) -> None:
        with pytest.raises(AuthorizationAppError) as exc_info:
            require_role(_session(Role.USER), ["ADMIN"])

        assert exc_info.value.details == {
            "required_roles": ["ADMIN"],
            "actual_role": "USER",
        }

    @pytest.mark.parametrize("roles", [["USER", "ADMIN"], ["ADMIN", "USER"], {Role.ADMIN, Role.USER}])
    def test_membership_is_order_independent(self, roles) -> None:
        session = _session(Role.ADMIN)
        assert require_role(session, roles) is session

    @pytest.mark.parametrize("role", list(Role))
    def test_empty_roles_accepts_any_authenticated_user(self, role: Role) -> None:
        session = _session(role)
        assert require_role(session, []) is session

    def test_matching_is_case_sensitive(self) -> None:
        with pytest.raises(AuthorizationAppError):
            require_role(_session(Role.ADMIN), ["admin"])

    def test_generator_roles_are_accepted(self) -> None:
        session = _session(Role.MANAGER)
        roles = (r for r in [Role.OWNER, Role.MANAGER])
        assert require_role(session, roles) is session

    @pytest.mark.parametrize("roles", ["ADMIN", Role.ADMIN])
    def test_single_role_is_not_split_into_characters(self, roles) -> None:
        session = _session(Role.ADMIN)
        assert require_role(session, roles) is session

    def test_single_role_forbidden_reports_whole_name(self) -> None:
        with pytest.raises(AuthorizationAppError) as exc_info:
            require_role(_session(Role.USER), "ADMIN")

        assert exc_info.value.details["required_roles"] == ["ADMIN"]
        assert exc_info.value.details["actual_role"] == "USER"


def test_session_user_defaults_to_user_role() -> None:
    user = SessionUser(id="u-2")
    assert user.role is Role.USER
    assert Session(user=user).is_authenticated
    assert not Session().is_authenticated
