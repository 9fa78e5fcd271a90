# storefront/model/address.py
from sqlalchemy import text
from sqlalchemy.sql import func

from ..extensions import db
from .mixins import DefaultableMixin

ADDRESS_TYPES = ("shipping", "billing")

class Address(DefaultableMixin, db.Model):
    __tablename__ = "address"
    __table_args__ = (
        db.Index("ix_address_user_type", "user_id", "address_type"),
        # one default per (user, address_type)
        db.Index(
            "uq_address_default_per_type", "user_id", "address_type",
            unique=True,
            sqlite_where=text("is_default"),
            postgresql_where=text("is_default"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    address_type = db.Column(db.String(16), nullable=False, default="shipping")

    full_name = db.Column(db.String(180), nullable=False)
    address_line1 = db.Column(db.String(255), nullable=False)
    address_line2 = db.Column(db.String(255))
    city = db.Column(db.String(120), nullable=False)
    state = db.Column(db.String(120), nullable=False)
    postal_code = db.Column(db.String(32), nullable=False)
    country = db.Column(db.String(64), nullable=False)
    phone = db.Column(db.String(50), nullable=False)

    is_default = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=func.now())

    def default_scope(self):
        cls = type(self)
        return (cls.user_id == self.user_id, cls.address_type == self.address_type)

    def default_scope_key(self):
        return ("address", self.user_id, self.address_type)

    def as_api(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "address_type": self.address_type,
            "full_name": self.full_name,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "phone": self.phone,
            "is_default": bool(self.is_default),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def snapshot(self):
        data = self.as_api()
        data.pop("created_at", None)
        return data
