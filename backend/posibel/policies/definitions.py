# Overview: Policy strings granted to roles and required by routes.

"""
Every permission is a two-segment string "{group}.{action}".

A role grants a list of these; "{group}.*" grants every action of a group and
"*.*" grants everything. Routes require exactly one concrete policy each.
"""

from enum import Enum


class PolicyGroup:
    """Policy groups, one per resource."""
    AUTH = "auth"
    USERS = "users"
    ROLE = "role"
    ORGANIZATION = "organization"
    SHOP = "shop"
    PRODUCT = "product"
    PRODUCT_GROUP = "productGroup"
    STOCK_LEVEL = "stockLevel"
    SALE = "sale"
    ORDERLINE = "orderline"
    TRANSACTION = "transaction"


WILDCARD = "*"
SEPARATOR = "."


class Policy(str, Enum):
    # Admin
    ADMIN = "*.*"
    # Auth
    AUTH = "auth.*"
    AUTH_LOGIN = "auth.login"
    # User
    USERS = "users.*"
    USERS_GET_MANY = "users.getMany"
    USERS_GET_BY_ID = "users.getById"
    USERS_CREATE = "users.create"
    # Role
    ROLE = "role.*"
    ROLE_GET_MANY = "role.getMany"
    ROLE_GET_BY_ID = "role.getById"
    ROLE_CREATE = "role.create"
    ROLE_UPDATE = "role.update"
    ROLE_DELETE = "role.delete"
    # Organization
    ORGANIZATION = "organization.*"
    ORGANIZATION_GET_BY_ID = "organization.getById"
    # Shop
    SHOP = "shop.*"
    SHOP_GET_MANY = "shop.getMany"
    SHOP_GET_BY_ID = "shop.getById"
    SHOP_CREATE = "shop.create"
    SHOP_UPDATE = "shop.update"
    SHOP_DELETE = "shop.delete"
    # Product
    PRODUCT = "product.*"
    PRODUCT_GET_MANY = "product.getMany"
    PRODUCT_GET_BY_ID = "product.getById"
    PRODUCT_CREATE = "product.create"
    PRODUCT_UPDATE = "product.update"
    PRODUCT_DELETE = "product.delete"
    # ProductGroup
    PRODUCT_GROUP = "productGroup.*"
    PRODUCT_GROUP_GET_MANY = "productGroup.getMany"
    PRODUCT_GROUP_GET_BY_ID = "productGroup.getById"
    PRODUCT_GROUP_CREATE = "productGroup.create"
    PRODUCT_GROUP_UPDATE = "productGroup.update"
    PRODUCT_GROUP_DELETE = "productGroup.delete"
    # StockLevel
    STOCK_LEVEL = "stockLevel.*"
    STOCK_LEVEL_GET_MANY = "stockLevel.getMany"
    STOCK_LEVEL_GET_BY_ID = "stockLevel.getById"
    STOCK_LEVEL_CREATE = "stockLevel.create"
    STOCK_LEVEL_UPDATE = "stockLevel.update"
    STOCK_LEVEL_DELETE = "stockLevel.delete"
    # Sale
    SALE = "sale.*"
    SALE_GET_MANY = "sale.getMany"
    SALE_GET_BY_ID = "sale.getById"
    SALE_CREATE = "sale.create"
    SALE_UPDATE = "sale.update"
    SALE_DELETE = "sale.delete"
    # Orderline
    ORDERLINE = "orderline.*"
    ORDERLINE_GET_MANY = "orderline.getMany"
    ORDERLINE_GET_BY_ID = "orderline.getById"
    ORDERLINE_CREATE = "orderline.create"
    ORDERLINE_UPDATE = "orderline.update"
    ORDERLINE_DELETE = "orderline.delete"
    # Transaction
    TRANSACTION = "transaction.*"
    TRANSACTION_GET_MANY = "transaction.getMany"
    TRANSACTION_GET_BY_ID = "transaction.getById"
    TRANSACTION_CREATE = "transaction.create"
    TRANSACTION_UPDATE = "transaction.update"
    TRANSACTION_DELETE = "transaction.delete"

    def __str__(self) -> str:
        return self.value


POLICY_VALUES = frozenset(policy.value for policy in Policy)

# Role created for the first user of every organization
ADMIN_ROLE_NAME = "admin"
ADMIN_ROLE_POLICIES = [Policy.ADMIN.value]


def split_policy(policy: str) -> tuple[str, str] | None:
    """
    Split "{group}.{action}" into its two segments.

    Returns None when the string is not exactly two non-empty segments.
    """
    if not isinstance(policy, str):
        return None
    parts = policy.split(SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def is_known_policy(policy: str) -> bool:
    return policy in POLICY_VALUES
