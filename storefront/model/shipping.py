# storefront/model/shipping.py
from __future__ import annotations
from sqlalchemy import text
from sqlalchemy.sql import func

from ..extensions import db
from ..utils.money import D, to_float
from .mixins import DefaultableMixin

class ShippingMethod(DefaultableMixin, db.Model):
    __tablename__ = "shipping_method"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_shipping_price_non_negative"),
        # global scope: a single default method
        db.Index(
            "uq_shipping_single_default", "is_default",
            unique=True,
            sqlite_where=text("is_default"),
            postgresql_where=text("is_default"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.String(512))
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    min_days = db.Column(db.Integer, nullable=False)
    max_days = db.Column(db.Integer, nullable=False)
    handling_time = db.Column(db.Integer, nullable=False, default=1)  # days

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    free_shipping_threshold = db.Column(db.Numeric(12, 2), nullable=True)  # None: never free

    # restrictions
    countries = db.Column(db.JSON, nullable=False, default=list)           # available only here, when non-empty
    excluded_countries = db.Column(db.JSON, nullable=False, default=list)
    weight_limit = db.Column(db.Float, nullable=True)

    allowed_payment_methods = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def default_scope(self):
        return ()

    def default_scope_key(self):
        return ("shipping",)

    def is_free_shipping(self, order_total) -> bool:
        # a zero threshold counts as "not configured"
        if not self.free_shipping_threshold:
            return False
        return D(order_total) >= D(self.free_shipping_threshold)

    def is_available_for_country(self, country: str | None) -> bool:
        included = self.countries or []
        excluded = self.excluded_countries or []
        if not included and not excluded:
            return True
        country = (country or "").strip().upper()
        if country in excluded:
            return False
        if included and country not in included:
            return False
        return True

    def accepts_weight(self, weight) -> bool:
        if self.weight_limit is None or weight is None:
            return True
        return float(weight) <= self.weight_limit

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": to_float(self.price),
            "estimated_days": {"min": self.min_days, "max": self.max_days},
            "handling_time": self.handling_time,
            "is_active": bool(self.is_active),
            "is_default": bool(self.is_default),
            "free_shipping_threshold": to_float(self.free_shipping_threshold),
            "restrictions": {
                "countries": self.countries or [],
                "excluded_countries": self.excluded_countries or [],
                "weight_limit": self.weight_limit,
            },
            "allowed_payment_methods": self.allowed_payment_methods or [],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
