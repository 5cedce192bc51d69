from __future__ import annotations

from enum import Enum

from ..models import Organization, Shop
from .base import EntityRepository, RelationConfig


class OrganizationRelation(str, Enum):
    SHOPS = "shops"
    USERS = "users"
    ROLES = "roles"
    PRODUCTS = "products"
    PRODUCT_GROUPS = "productGroups"
    SALES = "sales"


class OrganizationRepository(EntityRepository):
    """Organizations scope to themselves: a caller only ever sees its own."""

    model = Organization
    entity_name = "organization"
    Relation = OrganizationRelation
    RELATION_CONFIG = {
        OrganizationRelation.SHOPS: RelationConfig("shops", "shops"),
        OrganizationRelation.USERS: RelationConfig("users", "users"),
        OrganizationRelation.ROLES: RelationConfig("roles", "roles"),
        OrganizationRelation.PRODUCTS: RelationConfig("products", "products"),
        OrganizationRelation.PRODUCT_GROUPS: RelationConfig("product_groups", "product_groups"),
        OrganizationRelation.SALES: RelationConfig("sales", "sales"),
    }
    WHERE_FIELDS = frozenset({"id", "name"})


class ShopRelation(str, Enum):
    ORGANIZATION = "organization"
    SALES = "sales"
    STOCK_LEVELS = "stockLevels"


class ShopRepository(EntityRepository):
    model = Shop
    entity_name = "shop"
    Relation = ShopRelation
    RELATION_CONFIG = {
        ShopRelation.ORGANIZATION: RelationConfig("organization", "organization"),
        ShopRelation.SALES: RelationConfig("sales", "sales"),
        ShopRelation.STOCK_LEVELS: RelationConfig("stock_levels", "stock_levels"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id", "name"})
