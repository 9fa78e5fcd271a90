# storefront/model/inventory.py
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.sql import func

from ..extensions import db

class Inventory(db.Model):
    __tablename__ = "inventory"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        db.CheckConstraint("reserved_quantity >= 0", name="ck_inventory_reserved_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id"), nullable=False, index=True)
    sku = db.Column(db.String(64), unique=True, nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0, index=True)
    reserved_quantity = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=False, default=10)

    variants = db.Column(db.JSON, nullable=False, default=list)  # [{name, value, quantity, sku}]

    # location
    warehouse = db.Column(db.String(64))
    aisle = db.Column(db.String(32))
    shelf = db.Column(db.String(32))
    bin = db.Column(db.String(32))

    last_restocked = db.Column(db.DateTime)
    next_restock_date = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    product = db.relationship("Product", lazy="joined")

    @hybrid_property
    def available_quantity(self):
        return self.quantity - self.reserved_quantity

    @hybrid_property
    def is_low_stock(self):
        return self.quantity <= self.low_stock_threshold

    def as_api(self):
        return {
            "id": self.id,
            "product": {
                "id": self.product_id,
                "name": self.product.name if self.product else None,
                "price": float(self.product.price) if self.product and self.product.price is not None else None,
            },
            "sku": self.sku,
            "quantity": self.quantity,
            "reserved_quantity": self.reserved_quantity,
            "available_quantity": self.available_quantity,
            "low_stock_threshold": self.low_stock_threshold,
            "is_low_stock": bool(self.is_low_stock),
            "variants": self.variants or [],
            "location": {
                "warehouse": self.warehouse,
                "aisle": self.aisle,
                "shelf": self.shelf,
                "bin": self.bin,
            },
            "last_restocked": self.last_restocked.isoformat() if self.last_restocked else None,
            "next_restock_date": self.next_restock_date.isoformat() if self.next_restock_date else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
