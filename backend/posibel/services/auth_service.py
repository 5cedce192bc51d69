# Overview: Service-layer operations for auth; password hashing and credential checks.

"""
Authentication Service

WHY: Login happens before any tenant is known. The user is looked up by
email alone (email is globally unique), the bcrypt hash is verified, and a
session is opened that pins the user's organization and role.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, 12 by default)
- Unknown email and wrong password produce the same error
- The password hash is only loaded through UserRepository.get_by_auth
"""

from __future__ import annotations

from dataclasses import dataclass

import bcrypt

from ..errors import InvalidCredentialsError
from ..repositories import UserRepository
from .session_service import SessionService


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash password using bcrypt. Strength rules are enforced by validation."""
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for malformed hashes instead of raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


@dataclass(frozen=True)
class LoginResult:
    token: str
    user_id: int
    organization_id: int
    role_id: int
    expires_at: str | None


class AuthService:
    def __init__(self, users: UserRepository, sessions: SessionService):
        self.users = users
        self.sessions = sessions

    def authenticate(
        self,
        email: str,
        password: str,
        *,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> LoginResult:
        """
        Check credentials and open a session.

        Raises InvalidCredentialsError on unknown email or wrong password.
        The caller owns the transaction that persists the session row.
        """
        user = self.users.get_by_auth(email)
        if user is None or not verify_password(password, user.password):
            raise InvalidCredentialsError()

        session, token = self.sessions.create_session(
            user, user_agent=user_agent, ip_address=ip_address
        )
        return LoginResult(
            token=token,
            user_id=user.id,
            organization_id=user.organization_id,
            role_id=user.role_id,
            expires_at=session.to_dict()["expires_at"],
        )
