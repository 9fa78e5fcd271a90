# storefront/model/cart.py
from __future__ import annotations
from decimal import Decimal
from sqlalchemy.sql import func

from ..extensions import db
from ..utils.money import D, round_money

class Cart(db.Model):
    __tablename__ = "cart"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, server_default=func.now())
    modified_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    items = db.relationship(
        "CartItem",
        backref="cart",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.id.asc()"
    )

    # --------- money helpers / totals ----------
    def total_dec(self) -> Decimal:
        # sum of live product price * qty
        return round_money(sum((i.line_total_dec() for i in self.items), Decimal("0")))

    def total_for_products(self, product_ids) -> Decimal:
        wanted = set(product_ids or [])
        return round_money(sum((i.line_total_dec() for i in self.items if i.product_id in wanted), Decimal("0")))

    def item_count(self) -> int:
        return sum(int(i.quantity or 0) for i in self.items)

    def as_api(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "items": [i.as_api() for i in self.items],
            "item_count": self.item_count(),
            "total_cart_value": float(self.total_dec()),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
        }


class CartItem(db.Model):
    __tablename__ = "cart_item"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_cart_item_quantity_positive"),
    )

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("cart.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    variant_name = db.Column(db.String(64))
    variant_value = db.Column(db.String(64))

    product = db.relationship("Product", lazy="joined")

    # ---- price helpers ----
    def unit_price_dec(self) -> Decimal:
        return D(self.product.price if self.product else 0)

    def line_total_dec(self) -> Decimal:
        return round_money(self.unit_price_dec() * D(self.quantity))

    def as_api(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.product.name if self.product else None,
            "price": float(self.unit_price_dec()),
            "quantity": self.quantity,
            "variant": {"name": self.variant_name, "value": self.variant_value} if self.variant_name else None,
            "line_total": float(self.line_total_dec()),
        }
