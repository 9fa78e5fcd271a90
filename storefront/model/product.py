# storefront/model/product.py
from ..extensions import db
from ..utils.money import to_float
from sqlalchemy.sql import func

class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    slug = db.Column(db.String(255), index=True)
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    status = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "price": to_float(self.price),
            "status": self.status,
        }
