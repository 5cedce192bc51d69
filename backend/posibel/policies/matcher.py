# Overview: Permission matching and the per-request authorization decision.

from __future__ import annotations

from typing import Iterable

from ..errors import MalformedAuthorizationError, NotAuthenticatedError
from ..identity import Identity
from .definitions import WILDCARD, split_policy


def _segment_matches(required: str, granted: str) -> bool:
    return granted == required or granted == WILDCARD


def permission_satisfies(required: str, granted: Iterable[str]) -> bool:
    """
    True iff at least one granted permission matches the required one.

    Matching is per segment: the granted group equals the required group or
    is "*", and likewise for the action. There is a single wildcard level;
    "sale.*" grants every sale action and nothing outside the sale group.
    Granted strings that are not two segments never match.
    """
    required_parts = split_policy(str(required))
    if required_parts is None:
        return False
    required_group, required_action = required_parts

    for permission in granted:
        parts = split_policy(str(permission))
        if parts is None:
            continue
        group, action = parts
        if _segment_matches(required_group, group) and _segment_matches(required_action, action):
            return True
    return False


def validate_identity(identity: Identity | None) -> Identity:
    """
    Check that an identity is present and structurally sound.

    Raises NotAuthenticatedError when absent and MalformedAuthorizationError
    when tenant/user/role ids or the permission set are missing, or when any
    granted permission is not a two-segment string.
    """
    if identity is None:
        raise NotAuthenticatedError("Not authenticated")

    if (
        identity.permissions is None
        or not identity.organization_id
        or not identity.role_id
        or not identity.user_id
    ):
        raise MalformedAuthorizationError("Token not valid")

    for permission in identity.permissions:
        if split_policy(str(permission)) is None:
            raise MalformedAuthorizationError("Token not valid")

    return identity


def authorize(required: str, identity: Identity | None) -> bool:
    """
    Decide whether `identity` may perform the operation guarded by `required`.

    Returns False for a legitimate denial; raises for a missing or broken
    identity (see validate_identity).
    """
    identity = validate_identity(identity)
    return permission_satisfies(required, identity.permissions)
