from __future__ import annotations

from ..extensions import db
from .base import EntityMixin, FixedDecimal, decimal_to_str


class ProductGroup(EntityMixin, db.Model):
    __tablename__ = "product_group"
    __table_args__ = (
        db.Index("ix_product_group_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )

    organization = db.relationship("Organization", back_populates="product_groups")
    products = db.relationship("Product", back_populates="product_group", passive_deletes=True)

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            **self._timestamps(),
            **self._loaded_relations("products", nested=nested),
        }


class Product(EntityMixin, db.Model):
    """
    Sellable product.

    Barcodes are unique per organization, not globally; two tenants may stock
    the same barcode. Price is exact fixed-point (14, 3).
    """
    __tablename__ = "product"
    __table_args__ = (
        db.UniqueConstraint("barcode", "organization_id", name="barcode_organization_id"),
        db.Index("ix_product_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(64), nullable=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    price = db.Column(FixedDecimal(14, 3), nullable=False)
    product_group_id = db.Column(
        db.Integer, db.ForeignKey("product_group.id", ondelete="CASCADE"), nullable=False, index=True
    )

    organization = db.relationship("Organization", back_populates="products")
    product_group = db.relationship("ProductGroup", back_populates="products")
    stock_levels = db.relationship("StockLevel", back_populates="product", passive_deletes=True)
    orderlines = db.relationship("Orderline", back_populates="product", passive_deletes=True)

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "product_group_id": self.product_group_id,
            "name": self.name,
            "barcode": self.barcode,
            "price": decimal_to_str(self.price),
            **self._timestamps(),
            **self._loaded_relations("product_group", "stock_levels", "orderlines", nested=nested),
        }


class StockLevel(EntityMixin, db.Model):
    """Amount of one product held by one shop."""
    __tablename__ = "stock_level"
    __table_args__ = (
        db.Index("ix_stock_level_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    amount = db.Column(FixedDecimal(10, 3), nullable=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    product_id = db.Column(db.Integer, db.ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shop.id", ondelete="CASCADE"), nullable=False, index=True)

    organization = db.relationship("Organization", back_populates="stock_levels")
    product = db.relationship("Product", back_populates="stock_levels")
    shop = db.relationship("Shop", back_populates="stock_levels")

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "product_id": self.product_id,
            "shop_id": self.shop_id,
            "amount": decimal_to_str(self.amount),
            **self._timestamps(),
            **self._loaded_relations("product", "shop", nested=nested),
        }
