# Overview: Repositories package.
# One identity-scoped repository per entity, bundled for injection.

from __future__ import annotations

from dataclasses import dataclass

from .base import Direction, EntityRepository, Join, JoinType, Order, Page, RelationConfig
from .tenant_filter import QueryKind, apply_tenant_filter, tenant_join_criteria
from .guard import guard_insert, guard_update
from .tenancy import OrganizationRelation, OrganizationRepository, ShopRelation, ShopRepository
from .auth import RoleRelation, RoleRepository, UserRelation, UserRepository
from .catalog import (
    ProductGroupRelation,
    ProductGroupRepository,
    ProductRelation,
    ProductRepository,
    StockLevelRelation,
    StockLevelRepository,
)
from .sales import (
    OrderlineRelation,
    OrderlineRepository,
    SaleRelation,
    SaleRepository,
    TransactionRelation,
    TransactionRepository,
)


@dataclass(frozen=True)
class Repositories:
    organizations: OrganizationRepository
    shops: ShopRepository
    roles: RoleRepository
    users: UserRepository
    product_groups: ProductGroupRepository
    products: ProductRepository
    stock_levels: StockLevelRepository
    sales: SaleRepository
    orderlines: OrderlineRepository
    transactions: TransactionRepository

    @classmethod
    def bind(cls, session) -> "Repositories":
        return cls(
            organizations=OrganizationRepository(session),
            shops=ShopRepository(session),
            roles=RoleRepository(session),
            users=UserRepository(session),
            product_groups=ProductGroupRepository(session),
            products=ProductRepository(session),
            stock_levels=StockLevelRepository(session),
            sales=SaleRepository(session),
            orderlines=OrderlineRepository(session),
            transactions=TransactionRepository(session),
        )


__all__ = [
    'Repositories',
    'EntityRepository', 'Join', 'JoinType', 'Order', 'Direction', 'Page', 'RelationConfig',
    'QueryKind', 'apply_tenant_filter', 'tenant_join_criteria',
    'guard_insert', 'guard_update',
    'OrganizationRepository', 'OrganizationRelation', 'ShopRepository', 'ShopRelation',
    'RoleRepository', 'RoleRelation', 'UserRepository', 'UserRelation',
    'ProductGroupRepository', 'ProductGroupRelation', 'ProductRepository', 'ProductRelation',
    'StockLevelRepository', 'StockLevelRelation',
    'SaleRepository', 'SaleRelation', 'OrderlineRepository', 'OrderlineRelation',
    'TransactionRepository', 'TransactionRelation',
]
