# storefront/model/order.py
from ..extensions import db
from ..utils.money import to_float
from sqlalchemy.sql import func

class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, index=True)  # e.g., "ORD-20251022-101112345"
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    status = db.Column(db.String(20), default="pending", index=True)

    address_json = db.Column(db.JSON)  # shipping address snapshot
    shipping_method_id = db.Column(db.Integer, db.ForeignKey("shipping_method.id"), nullable=True)
    coupon_code = db.Column(db.String(64), nullable=True)

    # Money snapshot
    subtotal = db.Column(db.Numeric(12, 2))
    discount_total = db.Column(db.Numeric(12, 2))
    shipping_total = db.Column(db.Numeric(12, 2))
    total = db.Column(db.Numeric(12, 2))

    created_at = db.Column(db.DateTime, server_default=func.now(), index=True)

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "status": self.status,
            "user_id": self.user_id,
            "shipping_address": self.address_json,
            "shipping_method_id": self.shipping_method_id,
            "coupon_code": self.coupon_code,
            "money": {
                "subtotal": to_float(self.subtotal or 0),
                "discount_total": to_float(self.discount_total or 0),
                "shipping_total": to_float(self.shipping_total or 0),
                "total": to_float(self.total or 0),
            },
            "items": [i.as_api() for i in self.items],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, index=True)
    name = db.Column(db.String(255))
    unit_price = db.Column(db.Numeric(12, 2))
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(12, 2))

    def as_api(self):
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": to_float(self.unit_price or 0),
            "quantity": self.quantity,
            "line_total": to_float(self.line_total or 0),
        }
