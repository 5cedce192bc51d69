from __future__ import annotations

from enum import Enum

from ..models import Orderline, Sale, Transaction
from .base import EntityRepository, RelationConfig


class SaleRelation(str, Enum):
    SHOP = "shop"
    ORDERLINES = "orderlines"


class SaleRepository(EntityRepository):
    model = Sale
    entity_name = "sale"
    Relation = SaleRelation
    RELATION_CONFIG = {
        SaleRelation.SHOP: RelationConfig("shop", "shop"),
        SaleRelation.ORDERLINES: RelationConfig("orderlines", "orderlines"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id", "shop_id"})


class OrderlineRelation(str, Enum):
    PRODUCT = "product"
    SALE = "sale"


class OrderlineRepository(EntityRepository):
    model = Orderline
    entity_name = "orderline"
    Relation = OrderlineRelation
    RELATION_CONFIG = {
        OrderlineRelation.PRODUCT: RelationConfig("product", "product"),
        OrderlineRelation.SALE: RelationConfig("sale", "sale"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id", "sale_id", "product_id", "orderline_type"})


class TransactionRelation(str, Enum):
    ORGANIZATION = "organization"


class TransactionRepository(EntityRepository):
    model = Transaction
    entity_name = "transaction"
    Relation = TransactionRelation
    RELATION_CONFIG = {
        TransactionRelation.ORGANIZATION: RelationConfig("organization", "organization"),
    }
    WHERE_FIELDS = frozenset({"id", "organization_id"})
