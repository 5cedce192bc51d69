from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import EntityMixin


class Role(EntityMixin, db.Model):
    """
    Org-scoped role carrying a list of policy strings.

    `policies` is stored as a JSON list of Policy values. Order and duplicates
    carry no meaning; absence of a matching policy means "denied".
    """
    __tablename__ = "role"
    __table_args__ = (
        db.Index("ix_role_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    policies = db.Column(db.JSON, nullable=False, default=list)

    organization = db.relationship("Organization", back_populates="roles")
    users = db.relationship("User", back_populates="role", passive_deletes=True)

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "policies": list(self.policies or []),
            **self._timestamps(),
            **self._loaded_relations("organization", "users", nested=nested),
        }


class User(EntityMixin, db.Model):
    """
    User accounts for authentication and attribution.

    Email is unique across ALL tenants: login is by email alone, before any
    tenant is known. The password column holds a bcrypt hash and is never
    loaded by the user repository unless explicitly requested.
    """
    __tablename__ = "user"
    __table_args__ = (
        db.Index("ix_user_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    password = db.Column(db.String(255), nullable=False)

    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    role_id = db.Column(db.Integer, db.ForeignKey("role.id", ondelete="CASCADE"), nullable=False, index=True)

    organization = db.relationship("Organization", back_populates="users")
    role = db.relationship("Role", back_populates="users")

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "role_id": self.role_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            **self._timestamps(),
            **self._loaded_relations("organization", "role", nested=nested),
        }


class SessionToken(db.Model):
    """
    Opaque bearer session.

    Only the SHA-256 of the token is stored. The tenant, user and role ids are
    captured at login and are immutable for the session lifetime; policies
    are NOT captured and are re-read from the role on every request.
    """
    __tablename__ = "session_token"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role_id = db.Column(db.Integer, db.ForeignKey("role.id", ondelete="CASCADE"), nullable=False)

    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User")

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "role_id": self.role_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
