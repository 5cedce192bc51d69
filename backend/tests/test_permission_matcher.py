# Overview: Pytest coverage for permission matching and the authorization decision.

"""
Permission Matcher Tests

Verifies the two-segment wildcard rule:
- "*.*" grants everything
- "{group}.*" grants every action of that group only
- "*.{action}" grants that action in every group
- exact strings grant exactly themselves
and the authorization decision's failure modes (401 / 409 / False).
"""

import pytest

from posibel.errors import MalformedAuthorizationError, NotAuthenticatedError
from posibel.identity import Identity
from posibel.policies import Policy, authorize, permission_satisfies, split_policy


def _identity(permissions, /, **overrides):
    values = {"user_id": 1, "organization_id": 1, "role_id": 1, "permissions": permissions}
    values.update(overrides)
    return Identity.build(**values)


class TestPermissionSatisfies:
    @pytest.mark.parametrize(
        "required,granted,expected",
        [
            ("shop.getMany", ["*.*"], True),
            ("shop.getMany", ["shop.*"], True),
            ("shop.getMany", ["shop.getMany"], True),
            ("shop.getMany", ["*.getMany"], True),
            ("shop.getMany", ["shop.getById"], False),
            ("shop.getMany", ["sale.*"], False),
            ("shop.getMany", ["sale.getMany"], False),
            ("shop.getMany", [], False),
            ("productGroup.create", ["product.*"], False),
            ("productGroup.create", ["productGroup.*"], True),
            ("users.create", ["users.getMany", "users.create"], True),
        ],
    )
    def test_matching_table(self, required, granted, expected):
        assert permission_satisfies(required, granted) is expected

    def test_accepts_policy_enum_members(self):
        assert permission_satisfies(Policy.SALE_CREATE, [Policy.SALE]) is True
        assert permission_satisfies(Policy.SALE_CREATE, [Policy.SHOP]) is False

    def test_single_wildcard_level_only(self):
        """A group wildcard never leaks into a group with a shared prefix."""
        assert permission_satisfies("stockLevel.update", ["stock.*"]) is False

    def test_malformed_granted_strings_never_match(self):
        assert permission_satisfies("shop.getMany", ["shop", "shop.getMany.extra", ".*", "*."]) is False

    def test_malformed_required_never_matches(self):
        assert permission_satisfies("shop", ["*.*"]) is False

    def test_order_and_duplicates_do_not_matter(self):
        granted = ["sale.getMany", "shop.*", "sale.getMany"]
        assert permission_satisfies("shop.delete", granted) is True
        assert permission_satisfies("shop.delete", list(reversed(granted))) is True


class TestSplitPolicy:
    def test_two_segments(self):
        assert split_policy("shop.getMany") == ("shop", "getMany")

    @pytest.mark.parametrize("value", ["shop", "a.b.c", ".x", "x.", "", None, 5])
    def test_rejects_other_shapes(self, value):
        assert split_policy(value) is None


class TestAuthorize:
    def test_missing_identity_is_not_authenticated(self):
        with pytest.raises(NotAuthenticatedError):
            authorize("shop.getMany", None)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"permissions": None},
            {"organization_id": None},
            {"role_id": None},
            {"user_id": None},
        ],
    )
    def test_incomplete_identity_is_malformed(self, overrides):
        identity = _identity(["*.*"], **overrides)
        with pytest.raises(MalformedAuthorizationError) as exc_info:
            authorize("shop.getMany", identity)
        assert exc_info.value.message == "Token not valid"
        assert exc_info.value.status_code == 409

    def test_malformed_granted_permission_is_malformed(self):
        with pytest.raises(MalformedAuthorizationError):
            authorize("shop.getMany", _identity(["shop.getMany", "broken"]))

    def test_empty_permission_set_is_plain_denial(self):
        assert authorize("shop.getMany", _identity([])) is False

    def test_grant_and_denial(self):
        identity = _identity(["shop.*"])
        assert authorize("shop.delete", identity) is True
        assert authorize("sale.delete", identity) is False

    def test_identity_from_claims_accepts_camel_case(self):
        identity = Identity.from_claims(
            {"userId": 3, "organizationId": 4, "roleId": 5, "policies": ["*.*"]}
        )
        assert identity.organization_id == 4
        assert authorize("transaction.create", identity) is True
