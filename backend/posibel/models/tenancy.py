from __future__ import annotations

from ..extensions import db
from .base import EntityMixin


class Organization(EntityMixin, db.Model):
    """
    Multi-tenant root: Every tenant is an Organization.

    All shops, users, roles, products, sales and stock belong to exactly one
    organization. The organization is not itself tenant-scoped; a scoped
    caller may only see its own organization, so the tenant column here is
    the primary key.

    Deleting an organization cascades to everything it owns (schema level).
    """
    __tablename__ = "organization"
    __tenant_column__ = "id"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    shops = db.relationship("Shop", back_populates="organization", passive_deletes=True)
    users = db.relationship("User", back_populates="organization", passive_deletes=True)
    roles = db.relationship("Role", back_populates="organization", passive_deletes=True)
    products = db.relationship("Product", back_populates="organization", passive_deletes=True)
    product_groups = db.relationship("ProductGroup", back_populates="organization", passive_deletes=True)
    stock_levels = db.relationship("StockLevel", back_populates="organization", passive_deletes=True)
    sales = db.relationship("Sale", back_populates="organization", passive_deletes=True)
    orderlines = db.relationship("Orderline", back_populates="organization", passive_deletes=True)
    transactions = db.relationship("Transaction", back_populates="organization", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            **self._timestamps(),
            **self._loaded_relations(
                "shops", "users", "roles", "products", "product_groups", "sales", nested=nested
            ),
        }


class Shop(EntityMixin, db.Model):
    """
    Shop within an organization.

    `meta` is opaque JSON owned by the client.
    """
    __tablename__ = "shop"
    __table_args__ = (
        db.Index("ix_shop_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    meta = db.Column(db.JSON, nullable=True)

    organization = db.relationship("Organization", back_populates="shops")
    sales = db.relationship("Sale", back_populates="shop", passive_deletes=True)
    stock_levels = db.relationship("StockLevel", back_populates="shop", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Shop id={self.id} name={self.name!r} organization_id={self.organization_id}>"

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "meta": self.meta,
            **self._timestamps(),
            **self._loaded_relations("organization", "sales", "stock_levels", nested=nested),
        }
