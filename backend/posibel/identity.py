# Overview: The authenticated caller's tenant, user, role and permission claims.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class Identity:
    """
    Claim set for one request.

    Produced by the session collaborator after token verification and passed
    explicitly to every repository call. `None` in place of an Identity means
    a trusted internal call with no tenant restriction.

    Fields are optional on purpose: a structurally broken identity must still
    be representable so the authorization decision can report it as malformed
    rather than crash.
    """

    user_id: int | None
    organization_id: int | None
    role_id: int | None
    permissions: frozenset[str] | None

    @classmethod
    def build(
        cls,
        *,
        user_id: int | None,
        organization_id: int | None,
        role_id: int | None,
        permissions: Iterable[str] | None,
    ) -> "Identity":
        return cls(
            user_id=user_id,
            organization_id=organization_id,
            role_id=role_id,
            permissions=frozenset(permissions) if permissions is not None else None,
        )

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "Identity":
        """Build from a decoded claim mapping (camelCase or snake_case keys)."""
        def pick(*keys):
            for key in keys:
                if key in claims:
                    return claims[key]
            return None

        permissions = pick("permissions", "policies")
        if permissions is not None and not isinstance(permissions, (list, tuple, set, frozenset)):
            permissions = None

        return cls.build(
            user_id=pick("user_id", "userId"),
            organization_id=pick("organization_id", "organizationId"),
            role_id=pick("role_id", "roleId"),
            permissions=permissions,
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "role_id": self.role_id,
            "permissions": sorted(self.permissions) if self.permissions is not None else None,
        }
