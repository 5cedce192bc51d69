# Overview: Services package.
# Wires repositories and services around one SQLAlchemy session.

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from ..repositories import Repositories
from .auth_service import AuthService, LoginResult, hash_password, verify_password
from .concurrency import run_with_retry, transaction
from .organization_service import OrganizationService
from .session_service import SessionService
from .user_service import UserService


@dataclass(frozen=True)
class Services:
    """
    Composition root for the data and service layers.

    Built once per app in create_app and stored at app.extensions["posibel"].
    Every collaborator receives its dependencies explicitly.
    """
    repositories: Repositories
    sessions: SessionService
    auth: AuthService
    users: UserService
    organizations: OrganizationService


def build_services(session, config) -> Services:
    repositories = Repositories.bind(session)
    sessions = SessionService(
        session,
        repositories.roles,
        absolute_timeout=timedelta(hours=config["SESSION_ABSOLUTE_TIMEOUT_HOURS"]),
        idle_timeout=timedelta(minutes=config["SESSION_IDLE_TIMEOUT_MINUTES"]),
    )
    users = UserService(session, repositories.users, bcrypt_rounds=config["BCRYPT_ROUNDS"])
    return Services(
        repositories=repositories,
        sessions=sessions,
        auth=AuthService(repositories.users, sessions),
        users=users,
        organizations=OrganizationService(session, repositories.organizations, repositories.roles, users),
    )


__all__ = [
    'Services', 'build_services',
    'AuthService', 'LoginResult', 'hash_password', 'verify_password',
    'OrganizationService', 'SessionService', 'UserService',
    'run_with_retry', 'transaction',
]
