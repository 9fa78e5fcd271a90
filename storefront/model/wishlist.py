#  --- storefront/model/wishlist.py ---
from sqlalchemy.sql import func

from ..extensions import db

wishlist_product = db.Table(
    "wishlist_product",
    db.Column("wishlist_id", db.Integer, db.ForeignKey("wishlist.id", ondelete="CASCADE"), primary_key=True),
    db.Column("product_id", db.Integer, db.ForeignKey("product.id", ondelete="CASCADE"), primary_key=True),
)

class Wishlist(db.Model):
    __tablename__ = "wishlist"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    products = db.relationship("Product", secondary=wishlist_product, lazy="selectin",
                               order_by="Product.id.asc()")

    def has_product(self, product_id: int) -> bool:
        return any(p.id == product_id for p in self.products)

    def as_api(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "products": [p.as_api() for p in self.products],
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
