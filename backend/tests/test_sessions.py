# Overview: Pytest coverage for login, session tokens and identity resolution.

"""
Session Tests

Covers:
- login with correct / wrong credentials
- token -> Identity resolution with tenant context pinned at login
- policies re-read from the role on every resolution
- absolute and idle expiry, revocation, cleanup
"""

from datetime import timedelta

import pytest

from posibel.errors import InvalidCredentialsError, MalformedAuthorizationError
from posibel.models import SessionToken
from posibel.policies import authorize
from posibel.services.session_service import hash_token
from posibel.time_utils import utcnow

from conftest import PASSWORD


@pytest.fixture
def login_a(services, db_session, user_a):
    result = services.auth.authenticate("user_a@acme.com", PASSWORD, user_agent="pytest")
    db_session.commit()
    return result


def _record(db_session, token) -> SessionToken:
    return db_session.query(SessionToken).filter_by(token_hash=hash_token(token)).one()


class TestAuthenticate:
    def test_login_returns_tenant_context(self, login_a, user_a, org_a, admin_role_a):
        assert len(login_a.token) == 64
        assert login_a.user_id == user_a.id
        assert login_a.organization_id == org_a.id
        assert login_a.role_id == admin_role_a.id
        assert login_a.expires_at.endswith("Z")

    def test_only_the_hash_is_stored(self, login_a, db_session):
        record = _record(db_session, login_a.token)
        assert record.token_hash != login_a.token
        assert record.user_agent == "pytest"

    def test_wrong_password_and_unknown_email_look_the_same(self, services, user_a):
        with pytest.raises(InvalidCredentialsError) as wrong:
            services.auth.authenticate("user_a@acme.com", "WrongPassword1")
        with pytest.raises(InvalidCredentialsError) as unknown:
            services.auth.authenticate("nobody@acme.com", PASSWORD)
        assert wrong.value.message == unknown.value.message

    def test_soft_deleted_user_cannot_log_in(self, services, repos, db_session, identity_a, user_a):
        repos.users.soft_delete_one(id=user_a.id, identity=identity_a)
        db_session.commit()
        with pytest.raises(InvalidCredentialsError):
            services.auth.authenticate("user_a@acme.com", PASSWORD)


class TestResolveIdentity:
    def test_resolves_to_login_context(self, services, login_a, org_a):
        identity = services.sessions.resolve_identity(login_a.token)
        assert identity.user_id == login_a.user_id
        assert identity.organization_id == org_a.id
        assert identity.permissions == frozenset({"*.*"})

    @pytest.mark.parametrize("token", [None, "", "0" * 64])
    def test_unknown_token_resolves_to_none(self, services, token):
        assert services.sessions.resolve_identity(token) is None

    def test_role_change_applies_to_existing_session(self, services, repos, db_session, login_a, admin_role_a):
        assert authorize("shop.delete", services.sessions.resolve_identity(login_a.token)) is True

        repos.roles.update_one(
            id=admin_role_a.id, values={"policies": ["shop.getMany"]}, identity=None
        )
        db_session.commit()

        identity = services.sessions.resolve_identity(login_a.token)
        assert identity.permissions == frozenset({"shop.getMany"})
        assert authorize("shop.delete", identity) is False
        assert authorize("shop.getMany", identity) is True

    def test_deleted_role_makes_identity_malformed(self, services, repos, db_session, login_a, admin_role_a):
        repos.roles.soft_delete_one(id=admin_role_a.id, identity=None)
        db_session.commit()

        identity = services.sessions.resolve_identity(login_a.token)
        assert identity.permissions is None
        with pytest.raises(MalformedAuthorizationError):
            authorize("shop.getMany", identity)

    def test_soft_deleted_user_loses_open_session(self, services, repos, db_session, login_a, identity_a, user_a):
        repos.users.soft_delete_one(id=user_a.id, identity=identity_a)
        db_session.commit()

        assert services.sessions.resolve_identity(login_a.token) is None

    def test_soft_deleted_organization_loses_open_session(self, services, repos, db_session, login_a, org_a):
        repos.organizations.soft_delete_one(id=org_a.id, identity=None)
        db_session.commit()

        assert services.sessions.resolve_identity(login_a.token) is None

    def test_resolution_touches_last_used(self, services, db_session, login_a):
        record = _record(db_session, login_a.token)
        record.last_used_at = utcnow() - timedelta(minutes=30)
        db_session.commit()
        before = _record(db_session, login_a.token).last_used_at

        services.sessions.resolve_identity(login_a.token)
        db_session.commit()

        assert _record(db_session, login_a.token).last_used_at > before

    def test_absolute_expiry(self, services, db_session, login_a):
        _record(db_session, login_a.token).expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()
        assert services.sessions.resolve_identity(login_a.token) is None

    def test_idle_timeout_revokes(self, services, db_session, login_a):
        _record(db_session, login_a.token).last_used_at = utcnow() - services.sessions.idle_timeout - timedelta(minutes=1)
        db_session.commit()

        assert services.sessions.resolve_identity(login_a.token) is None
        db_session.commit()

        record = _record(db_session, login_a.token)
        assert record.is_revoked is True
        assert record.revoked_reason == "Idle timeout"


class TestRevocation:
    def test_revoked_token_stops_resolving(self, services, db_session, login_a):
        assert services.sessions.revoke_session(login_a.token) is True
        db_session.commit()

        assert services.sessions.resolve_identity(login_a.token) is None
        assert services.sessions.revoke_session(login_a.token) is False

    def test_revoke_all_user_sessions(self, services, db_session, user_a, login_a):
        second = services.auth.authenticate("user_a@acme.com", PASSWORD)
        db_session.commit()

        assert services.sessions.revoke_all_user_sessions(user_a.id) == 2
        db_session.commit()
        assert services.sessions.resolve_identity(login_a.token) is None
        assert services.sessions.resolve_identity(second.token) is None

    def test_cleanup_removes_only_old_dead_sessions(self, services, db_session, user_a, login_a):
        old = services.auth.authenticate("user_a@acme.com", PASSWORD)
        db_session.commit()
        record = _record(db_session, old.token)
        record.created_at = utcnow() - timedelta(days=40)
        record.expires_at = utcnow() - timedelta(days=39)
        db_session.commit()

        assert services.sessions.cleanup_expired_sessions() == 1
        db_session.commit()
        assert db_session.query(SessionToken).count() == 1
        assert services.sessions.resolve_identity(login_a.token) is not None
