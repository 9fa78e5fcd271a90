# storefront/payment/routes.py
from __future__ import annotations
import logging
from flask import request

from ..model import Address, Order, Payment, PAYMENT_METHODS, PAYMENT_STATUSES
from ..services import store
from ..utils.api import ok, err
from ..utils.decorators import current_user, is_admin, login_required_user, role_required
from ..utils.money import D, round_money
from ..utils.parsing import parse_int, parse_money, utcnow
from . import bp

log = logging.getLogger(__name__)

@bp.post("")
@login_required_user
def create_payment():
    """
    Body: { "order_id": int, "method": str, "amount"?: number, "currency"?: "USD",
            "payment_details"?: {...}, "billing_address_id"?: int }
    """
    user = current_user()
    data = request.get_json(silent=True) or {}

    order = store.find_one(Order, parse_int(data.get("order_id")))
    if not order or order.user_id != user.id:
        return err("order not found", 404)

    method = (data.get("method") or "").strip().lower()
    if method not in PAYMENT_METHODS:
        return err(f"method must be one of: {', '.join(PAYMENT_METHODS)}", 422)

    held = sum((p.outstanding_dec() for p in store.find_many(Payment, Payment.order_id == order.id)), D(0))
    outstanding = round_money(D(order.total) - held)
    if outstanding <= 0:
        return err("order is already fully paid", 409)

    amount = parse_money(data.get("amount"), "amount", allow_none=True)
    amount = outstanding if amount is None else amount
    if amount <= 0:
        return err("amount must be > 0", 422)
    if amount > outstanding:
        return err(f"amount must be <= {outstanding}", 422)

    billing_id = parse_int(data.get("billing_address_id"))
    if billing_id:
        billing = store.find_one(Address, billing_id)
        if not billing or billing.user_id != user.id:
            return err("billing address not found", 404)

    details = data.get("payment_details") or {}
    last4 = (str(details.get("last4") or "").strip() or None)
    if last4 and (len(last4) != 4 or not last4.isdigit()):
        return err("payment_details.last4 must be 4 digits", 422)

    p = Payment(
        user_id=user.id,
        order_id=order.id,
        amount=amount,
        currency=(data.get("currency") or "USD").strip().upper()[:3],
        method=method,
        status="pending",
        card_type=details.get("card_type"),
        last4=last4,
        paypal_email=details.get("paypal_email"),
        bank_reference=details.get("bank_reference"),
        billing_address_id=billing_id,
        refund_amount=D(0),
    )
    store.save(p)
    log.info("payment %s created for order %s (%s %s)", p.id, order.code, p.amount, p.currency)
    return ok("payment created", p.as_api(), status=201)

@bp.get("/user")
@login_required_user
def list_user_payments():
    items = store.find_many(Payment, Payment.user_id == current_user().id, order_by=Payment.id.desc())
    return ok("payments", [p.as_api() for p in items])

@bp.get("/<int:payment_id>")
@login_required_user
def get_payment(payment_id: int):
    p = store.find_one(Payment, payment_id)
    user = current_user()
    if not p or (p.user_id != user.id and not is_admin(user)):
        return err("payment not found", 404)
    return ok("payment", p.as_api())

# ---- admin -------------------------------------------------------------------

@bp.get("")
@role_required("admin")
def list_payments():
    criteria = []
    status = request.args.get("status")
    if status:
        criteria.append(Payment.status == status)
    items = store.find_many(Payment, *criteria, order_by=Payment.id.desc())
    return ok("payments", [p.as_api() for p in items])

@bp.put("/<int:payment_id>")
@role_required("admin")
def update_payment(payment_id: int):
    """Body: { "status"?: str, "transaction_id"?: str }"""
    p = store.find_one(Payment, payment_id)
    if not p:
        return err("payment not found", 404)
    data = request.get_json(silent=True) or {}
    if "status" in data:
        status = (data.get("status") or "").strip().lower()
        if status not in PAYMENT_STATUSES:
            return err(f"status must be one of: {', '.join(PAYMENT_STATUSES)}", 422)
        if status == "refunded":
            return err("use the refund endpoint to refund a payment", 422)
        if not p.can_move_to(status):
            return err(f"cannot change a {p.status} payment to {status}", 422)
        p.status = status
        if status == "completed" and p.order and p.order.status == "pending":
            p.order.status = "paid"
    if "transaction_id" in data:
        p.transaction_id = (data.get("transaction_id") or "").strip() or None
    store.save(p)
    return ok("payment updated", p.as_api())

@bp.post("/<int:payment_id>/refund")
@role_required("admin")
def refund_payment(payment_id: int):
    """Body: { "amount"?: number (default: everything still refundable), "reason"?: str }"""
    p = store.find_one(Payment, payment_id)
    if not p:
        return err("payment not found", 404)
    data = request.get_json(silent=True) or {}
    amount = parse_money(data.get("amount"), "amount", allow_none=True)
    p.apply_refund(p.refundable_dec() if amount is None else amount,
                   (data.get("reason") or "").strip() or None, utcnow())
    store.save(p)
    log.info("payment %s refunded %s (total refunded %s)", p.id, amount, p.refund_amount)
    return ok("refund processed", p.as_api())
