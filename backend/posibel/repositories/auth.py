from __future__ import annotations

from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.orm import defer, undefer

from ..models import Role, User
from .base import EntityRepository, RelationConfig


class RoleRelation(str, Enum):
    USERS = "users"
    ORGANIZATION = "organization"


class RoleRepository(EntityRepository):
    model = Role
    entity_name = "role"
    Relation = RoleRelation
    RELATION_CONFIG = {
        RoleRelation.USERS: RelationConfig("users", "users"),
        RoleRelation.ORGANIZATION: RelationConfig("organization", "organization"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id", "name"})


class UserRelation(str, Enum):
    ROLE = "role"
    ORGANIZATION = "organization"


class UserRepository(EntityRepository):
    """
    Users, with the password hash kept out of every ordinary read.

    SECURITY: load_options() defers `password` with raiseload, so touching it
    on an entity from get_one/get_many raises instead of silently querying.
    Only get_by_auth() loads the hash.
    """

    model = User
    entity_name = "user"
    Relation = UserRelation
    RELATION_CONFIG = {
        UserRelation.ROLE: RelationConfig("role", "role"),
        UserRelation.ORGANIZATION: RelationConfig("organization", "organization"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id", "role_id", "email"})

    def load_options(self) -> list:
        return [defer(User.password, raiseload=True)]

    def get_by_auth(self, email: str) -> User | None:
        """
        Trusted lookup by email across all tenants, password hash included.

        Login happens before any tenant is known, and email is globally
        unique, so there is no identity to scope by. Never expose the result
        directly to a client.
        """
        statement = (
            select(User)
            .where(User.email == email, User.deleted_at.is_(None))
            .options(undefer(User.password))
            .execution_options(populate_existing=True)
        )
        return self.session.execute(statement).scalars().first()

    def email_exists(self, email: str) -> bool:
        """Global, case-insensitive uniqueness check; soft-deleted accounts included."""
        statement = select(User.id).where(func.lower(User.email) == email.strip().lower())
        return self.session.execute(statement).first() is not None
