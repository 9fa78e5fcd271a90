# --- storefront/model/coupon.py ---

from sqlalchemy.orm import validates
from sqlalchemy.sql import func

from ..extensions import db
from ..utils.money import to_float

COUPON_TYPES = ("percentage", "fixed")

class Coupon(db.Model):
    __tablename__ = "coupon"
    __table_args__ = (
        db.Index("ix_coupon_active_window", "active", "start_date", "end_date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)
    description = db.Column(db.String(255))

    # "percentage" or "fixed"
    ctype = db.Column(db.String(16), nullable=False, default="percentage")
    value = db.Column(db.Numeric(12, 2), nullable=False)

    min_purchase = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    max_discount = db.Column(db.Numeric(12, 2), nullable=True)      # None: uncapped

    active = db.Column(db.Boolean, nullable=False, default=True)
    start_date = db.Column(db.DateTime, nullable=False, server_default=func.now())
    end_date = db.Column(db.DateTime, nullable=False)

    usage_limit = db.Column(db.Integer, nullable=True)               # None: unlimited
    used_count = db.Column(db.Integer, nullable=False, default=0)
    per_user_limit = db.Column(db.Integer, nullable=False, default=1)

    # empty list: the whole cart is eligible
    applicable_product_ids = db.Column(db.JSON, nullable=False, default=list)

    created_by = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)
    created_at = db.Column(db.DateTime, server_default=func.now())

    redemptions = db.relationship("CouponRedemption", back_populates="coupon",
                                  cascade="all, delete-orphan", lazy="select")

    @validates("code")
    def _normalize_code(self, key, value):
        return (value or "").strip().upper()

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "ctype": self.ctype,
            "value": to_float(self.value),
            "min_purchase": to_float(self.min_purchase),
            "max_discount": to_float(self.max_discount),
            "active": bool(self.active),
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "usage_limit": self.usage_limit,
            "used_count": self.used_count or 0,
            "per_user_limit": self.per_user_limit,
            "applicable_product_ids": self.applicable_product_ids or [],
        }

class CouponRedemption(db.Model):
    __tablename__ = "coupon_redemption"
    __table_args__ = (
        db.Index("ix_redemption_coupon_user", "coupon_id", "user_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    coupon_id = db.Column(db.Integer, db.ForeignKey("coupon.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True)
    created_at = db.Column(db.DateTime, server_default=func.now())

    coupon = db.relationship("Coupon", back_populates="redemptions")
