# Overview: Service-layer operations for session; opaque bearer tokens resolved to an Identity.

"""
Session Token Management Service with Multi-Tenant Support

WHY: Secure session management with automatic timeout and revocation.
Tokens are cryptographically secure, hashed in database, and time-limited.

MULTI-TENANT: Sessions capture organization_id, user_id and role_id at
creation time. This tenant context is immutable for the session lifetime.
Policies are deliberately NOT captured: resolve_identity() reads them from
the role row on every request, so a role edit takes effect immediately.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_ABSOLUTE_TIMEOUT_HOURS)
- Idle timeout (SESSION_IDLE_TIMEOUT_MINUTES)
- Revocable on logout
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta

from sqlalchemy import delete, or_, select, update

from ..identity import Identity
from ..models import Organization, SessionToken, User
from ..repositories import RoleRepository
from ..time_utils import as_utc, utcnow


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


class SessionService:
    def __init__(
        self,
        session,
        roles: RoleRepository,
        *,
        absolute_timeout: timedelta = timedelta(hours=24),
        idle_timeout: timedelta = timedelta(hours=2),
    ):
        self.session = session
        self.roles = roles
        self.absolute_timeout = absolute_timeout
        self.idle_timeout = idle_timeout

    def create_session(
        self,
        user: User,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[SessionToken, str]:
        """
        Create new session token for user with tenant context.

        Returns (session_record, plaintext_token). The record is flushed, not
        committed; the caller owns the transaction.
        """
        plaintext_token = generate_token()
        now = utcnow()

        record = SessionToken(
            user_id=user.id,
            organization_id=user.organization_id,
            role_id=user.role_id,
            token_hash=hash_token(plaintext_token),
            created_at=now,
            last_used_at=now,
            expires_at=now + self.absolute_timeout,
            user_agent=user_agent,
            ip_address=ip_address,
            is_revoked=False,
        )
        self.session.add(record)
        self.session.flush()
        return record, plaintext_token

    def _active_record(self, token: str) -> SessionToken | None:
        """Unrevoked session whose user and organization are both still live."""
        statement = (
            select(SessionToken)
            .join(User, User.id == SessionToken.user_id)
            .join(Organization, Organization.id == SessionToken.organization_id)
            .where(
                SessionToken.token_hash == hash_token(token),
                SessionToken.is_revoked.is_(False),
                User.deleted_at.is_(None),
                Organization.deleted_at.is_(None),
            )
        )
        return self.session.execute(statement).scalars().first()

    def resolve_identity(self, token: str | None) -> Identity | None:
        """
        Resolve a bearer token to the caller's Identity, or None.

        None when the token is unknown, revoked, past its absolute expiry,
        idle for too long (idle sessions are revoked on the spot), or owned by
        a soft-deleted user or organization. Updates
        last_used_at on success. Changes are flushed; the request's
        transaction commits them.

        A role that no longer exists yields an Identity without permissions,
        which the authorization decision reports as malformed.
        """
        if not token:
            return None

        record = self._active_record(token)
        if record is None:
            return None

        now = utcnow()
        if as_utc(record.expires_at) < now:
            return None

        if now - as_utc(record.last_used_at) > self.idle_timeout:
            self._revoke(record, "Idle timeout", now)
            return None

        record.last_used_at = now
        self.session.flush()

        role = self.roles.get_one(identity=None, where={"id": record.role_id})
        return Identity.build(
            user_id=record.user_id,
            organization_id=record.organization_id,
            role_id=record.role_id,
            permissions=role.policies if role is not None else None,
        )

    def _revoke(self, record: SessionToken, reason: str, now) -> None:
        record.is_revoked = True
        record.revoked_at = now
        record.revoked_reason = reason
        self.session.flush()

    def revoke_session(self, token: str, reason: str = "User logout") -> bool:
        """Returns True if an active session was revoked, False if not found."""
        record = self._active_record(token)
        if record is None:
            return False
        self._revoke(record, reason, utcnow())
        return True

    def revoke_all_user_sessions(self, user_id: int, reason: str = "Revoke all sessions") -> int:
        now = utcnow()
        result = self.session.execute(
            update(SessionToken)
            .where(SessionToken.user_id == user_id, SessionToken.is_revoked.is_(False))
            .values(is_revoked=True, revoked_at=now, revoked_reason=reason)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def cleanup_expired_sessions(self, older_than: timedelta = timedelta(days=30)) -> int:
        """
        Delete expired or revoked sessions created before the cutoff.

        Returns count of sessions deleted. Run periodically
        (`flask sessions cleanup`).
        """
        now = utcnow()
        result = self.session.execute(
            delete(SessionToken)
            .where(
                or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
                SessionToken.created_at < now - older_than,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
