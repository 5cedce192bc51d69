from __future__ import annotations

from enum import Enum

from ..models import Product, ProductGroup, StockLevel
from .base import EntityRepository, RelationConfig


class ProductGroupRelation(str, Enum):
    PRODUCTS = "products"


class ProductGroupRepository(EntityRepository):
    model = ProductGroup
    entity_name = "product group"
    Relation = ProductGroupRelation
    RELATION_CONFIG = {
        ProductGroupRelation.PRODUCTS: RelationConfig("products", "products"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id", "name"})


class ProductRelation(str, Enum):
    PRODUCT_GROUP = "productGroup"
    ORDERLINES = "orderlines"
    STOCK_LEVELS = "stockLevels"


class ProductRepository(EntityRepository):
    model = Product
    entity_name = "product"
    Relation = ProductRelation
    RELATION_CONFIG = {
        ProductRelation.PRODUCT_GROUP: RelationConfig("product_group", "product_group"),
        ProductRelation.ORDERLINES: RelationConfig("orderlines", "orderlines"),
        ProductRelation.STOCK_LEVELS: RelationConfig("stock_levels", "stock_levels"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id", "product_group_id", "barcode", "name"})


class StockLevelRelation(str, Enum):
    PRODUCT = "product"
    SHOP = "shop"


class StockLevelRepository(EntityRepository):
    model = StockLevel
    entity_name = "stock level"
    Relation = StockLevelRelation
    RELATION_CONFIG = {
        StockLevelRelation.PRODUCT: RelationConfig("product", "product"),
        StockLevelRelation.SHOP: RelationConfig("shop", "shop"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id", "product_id", "shop_id"})
