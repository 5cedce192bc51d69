from __future__ import annotations

import enum

from ..extensions import db
from .base import EntityMixin, FixedDecimal, decimal_to_str


class OrderlineType(str, enum.Enum):
    SALE = "sale"
    RETURN = "return"


class Sale(EntityMixin, db.Model):
    """
    Sale document.

    shop_id is nullable: a sale may be recorded before it is attributed to a
    shop. Discounts and total are exact decimals.
    """
    __tablename__ = "sale"
    __table_args__ = (
        db.Index("ix_sale_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    shop_id = db.Column(db.Integer, db.ForeignKey("shop.id", ondelete="CASCADE"), nullable=True, index=True)

    discount_percentage = db.Column(FixedDecimal(10, 3), nullable=True, default=0)
    discount_amount = db.Column(FixedDecimal(10, 3), nullable=True, default=0)
    total_amount = db.Column(FixedDecimal(14, 3), nullable=False, default=0)

    organization = db.relationship("Organization", back_populates="sales")
    shop = db.relationship("Shop", back_populates="sales")
    orderlines = db.relationship("Orderline", back_populates="sale", passive_deletes=True)

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "shop_id": self.shop_id,
            "discount_percentage": decimal_to_str(self.discount_percentage),
            "discount_amount": decimal_to_str(self.discount_amount),
            "total_amount": decimal_to_str(self.total_amount),
            **self._timestamps(),
            **self._loaded_relations("shop", "orderlines", nested=nested),
        }


class Orderline(EntityMixin, db.Model):
    __tablename__ = "orderline"
    __table_args__ = (
        db.Index("ix_orderline_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    orderline_type = db.Column(
        db.Enum(
            OrderlineType,
            name="orderline_type",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=OrderlineType.SALE,
    )
    amount = db.Column(FixedDecimal(10, 3), nullable=False)
    discount_percentage = db.Column(FixedDecimal(10, 3), nullable=True)
    discount_amount = db.Column(FixedDecimal(10, 3), nullable=True, default=0)

    product_id = db.Column(db.Integer, db.ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sale.id", ondelete="CASCADE"), nullable=False, index=True)

    organization = db.relationship("Organization", back_populates="orderlines")
    product = db.relationship("Product", back_populates="orderlines")
    sale = db.relationship("Sale", back_populates="orderlines")

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "orderline_type": self.orderline_type.value if self.orderline_type else None,
            "amount": decimal_to_str(self.amount),
            "discount_percentage": decimal_to_str(self.discount_percentage),
            "discount_amount": decimal_to_str(self.discount_amount),
            **self._timestamps(),
            **self._loaded_relations("product", "sale", nested=nested),
        }


class Transaction(EntityMixin, db.Model):
    """Ledger anchor; carries nothing but its tenant for now."""
    __tablename__ = "transaction"
    __table_args__ = (
        db.Index("ix_transaction_organization_id", "organization_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )

    organization = db.relationship("Organization", back_populates="transactions")

    def to_dict(self, nested: bool = True) -> dict:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            **self._timestamps(),
            **self._loaded_relations("organization", nested=nested),
        }
