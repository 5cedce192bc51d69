# Overview: Policy package.
# Re-exports the policy vocabulary and the authorization decision.

from .definitions import (
    ADMIN_ROLE_NAME,
    ADMIN_ROLE_POLICIES,
    POLICY_VALUES,
    Policy,
    PolicyGroup,
    is_known_policy,
    split_policy,
)
from .matcher import authorize, permission_satisfies, validate_identity

__all__ = [
    "ADMIN_ROLE_NAME",
    "ADMIN_ROLE_POLICIES",
    "POLICY_VALUES",
    "Policy",
    "PolicyGroup",
    "is_known_policy",
    "split_policy",
    "authorize",
    "permission_satisfies",
    "validate_identity",
]
