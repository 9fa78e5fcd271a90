# storefront/model/payment.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy.sql import func

from ..extensions import db
from ..utils.money import D, round_money, to_float

PAYMENT_METHODS = ("credit_card", "paypal", "bank_transfer", "cash_on_delivery")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")
# status -> statuses an admin update may move it to; refunds go through apply_refund
PAYMENT_TRANSITIONS = {
    "pending": ("completed", "failed"),
    "completed": (),
    "failed": (),
    "refunded": (),
}

class Payment(db.Model):
    __tablename__ = "payment"
    __table_args__ = (
        db.Index("ix_payment_user_order", "user_id", "order_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="USD")
    method = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    transaction_id = db.Column(db.String(128))

    # payment details
    card_type = db.Column(db.String(32))
    last4 = db.Column(db.String(4))
    paypal_email = db.Column(db.String(255))
    bank_reference = db.Column(db.String(128))

    billing_address_id = db.Column(db.Integer, db.ForeignKey("address.id", ondelete="SET NULL"), nullable=True)

    refund_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    refund_reason = db.Column(db.String(255))
    refunded_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, server_default=func.now(), index=True)

    order = db.relationship("Order", lazy="joined")
    billing_address = db.relationship("Address", lazy="joined")

    def can_move_to(self, status: str) -> bool:
        return status == self.status or status in PAYMENT_TRANSITIONS.get(self.status, ())

    def outstanding_dec(self):
        """What this payment still holds against its order (pending or completed, net of refunds)."""
        if self.status not in ("pending", "completed"):
            return D(0)
        return self.refundable_dec()

    def refundable_dec(self):
        return round_money(D(self.amount) - D(self.refund_amount))

    def apply_refund(self, amount, reason: str | None, now: datetime):
        """Record a partial or full refund; raises ValueError when not refundable."""
        if self.status not in ("completed", "refunded"):
            raise ValueError("only completed payments can be refunded")
        amount = round_money(D(amount))
        if amount <= 0:
            raise ValueError("refund amount must be > 0")
        if amount > self.refundable_dec():
            raise ValueError(f"refund amount must be <= {self.refundable_dec()}")
        self.refund_amount = round_money(D(self.refund_amount) + amount)
        self.refund_reason = reason
        self.refunded_at = now
        if self.refundable_dec() <= 0:
            self.status = "refunded"

    def as_api(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "order": {
                "id": self.order_id,
                "status": self.order.status if self.order else None,
                "total": to_float(self.order.total) if self.order else None,
            },
            "amount": to_float(self.amount),
            "currency": self.currency,
            "method": self.method,
            "status": self.status,
            "transaction_id": self.transaction_id,
            "payment_details": {
                "card_type": self.card_type,
                "last4": self.last4,
                "paypal_email": self.paypal_email,
                "bank_reference": self.bank_reference,
            },
            "billing_address": self.billing_address.as_api() if self.billing_address else None,
            "refund_amount": to_float(self.refund_amount or 0),
            "refund_reason": self.refund_reason,
            "refunded_at": self.refunded_at.isoformat() if self.refunded_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
