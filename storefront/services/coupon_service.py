# storefront/services/coupon_service.py
from __future__ import annotations
import logging
from datetime import datetime

from sqlalchemy import func, or_, select, update

from ..errors import ConstraintViolation
from ..extensions import db
from ..model import Coupon, CouponRedemption, COUPON_TYPES
from ..utils.money import D, Money, percent_of, round_money
from ..utils.parsing import (
    parse_bool, parse_money, parse_opt_int, require_datetime, utcnow,
)
from . import store

log = logging.getLogger(__name__)

# ---- evaluation --------------------------------------------------------------

def is_valid(coupon, now: datetime) -> bool:
    """Active, inside the inclusive [start_date, end_date] window, and under its usage limit."""
    if not coupon.active:
        return False
    if coupon.start_date is None or coupon.end_date is None:
        return False
    if now < coupon.start_date or now > coupon.end_date:
        return False
    if coupon.usage_limit is not None and (coupon.used_count or 0) >= coupon.usage_limit:
        return False
    return True

def calculate_discount(coupon, cart_total) -> Money:
    """
    Discount for ``cart_total``; does not check validity.

    Percentage coupons take ``value`` percent of the total, fixed coupons
    take ``value`` as is. Both are capped at ``max_discount`` when set.
    Fixed discounts are not capped at the cart total.
    """
    total = D(cart_total)
    if total < D(coupon.min_purchase or 0):
        return D(0)

    value = D(coupon.value)
    if coupon.ctype == "percentage":
        discount = percent_of(total, value)
    elif coupon.ctype == "fixed":
        discount = value
    else:
        discount = D(0)

    if coupon.max_discount is not None and discount > D(coupon.max_discount):
        discount = D(coupon.max_discount)
    if discount < 0:
        discount = D(0)
    return round_money(discount)

def user_redemption_count(coupon, user_id: int) -> int:
    stmt = (select(func.count())
            .select_from(CouponRedemption)
            .where(CouponRedemption.coupon_id == coupon.id, CouponRedemption.user_id == user_id))
    with store.guard():
        return db.session.execute(stmt).scalar_one()

def user_can_redeem(coupon, user_id: int | None) -> bool:
    if user_id is None or not coupon.per_user_limit:
        return True
    return user_redemption_count(coupon, user_id) < coupon.per_user_limit

def evaluate_coupon(coupon, cart_total, *, user_id: int | None = None, now: datetime | None = None) -> dict:
    """Checkout order: validity, then the per-user limit, then the discount."""
    now = now or utcnow()
    if not is_valid(coupon, now):
        return {"valid": False, "reason": "coupon is invalid or expired", "discount": D(0)}
    if not user_can_redeem(coupon, user_id):
        return {"valid": False, "reason": "coupon usage limit reached for this user", "discount": D(0)}
    if D(cart_total) < D(coupon.min_purchase or 0):
        return {"valid": False,
                "reason": f"minimum purchase is {round_money(D(coupon.min_purchase)):.2f}",
                "discount": D(0)}
    return {"valid": True, "reason": None, "discount": calculate_discount(coupon, cart_total)}

# ---- redemption --------------------------------------------------------------

def redeem_coupon(coupon, *, user_id: int, order_id: int | None = None) -> CouponRedemption:
    """
    Count one use of ``coupon`` for ``user_id``; the caller commits.

    The increment is a single conditional UPDATE so concurrent redemptions
    cannot push ``used_count`` past ``usage_limit``.
    """
    stmt = (
        update(Coupon)
        .where(Coupon.id == coupon.id,
               or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit))
        .values(used_count=Coupon.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    with store.guard():
        # serialize per-user checks on this coupon row
        db.session.execute(select(Coupon.id).where(Coupon.id == coupon.id).with_for_update())
        if not user_can_redeem(coupon, user_id):
            raise ConstraintViolation("coupon usage limit reached for this user", {"code": coupon.code})
        if db.session.execute(stmt).rowcount != 1:
            raise ConstraintViolation("coupon usage limit reached", {"code": coupon.code})

        redemption = CouponRedemption(coupon_id=coupon.id, user_id=user_id, order_id=order_id)
        db.session.add(redemption)
        db.session.flush()
    db.session.refresh(coupon, attribute_names=["used_count"])
    log.info("coupon %s redeemed by user %s (used %s/%s)",
             coupon.code, user_id, coupon.used_count, coupon.usage_limit)
    return redemption

# ---- lookups -------------------------------------------------------------------

def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()

def get_coupon_by_code(code: str | None) -> Coupon | None:
    code = normalize_code(code)
    if not code:
        return None
    found = store.find_many(Coupon, Coupon.code == code)
    return found[0] if found else None

def active_coupons(now: datetime | None = None):
    now = now or utcnow()
    candidates = store.find_many(
        Coupon,
        Coupon.active.is_(True), Coupon.start_date <= now, Coupon.end_date >= now,
        order_by=Coupon.end_date.asc(),
    )
    return [c for c in candidates if is_valid(c, now)]

# ---- payloads ------------------------------------------------------------------

def apply_coupon_payload(coupon: Coupon, data: dict, *, partial=False) -> Coupon:
    """Validate ``data`` onto ``coupon``; raises ValueError with a client-facing message."""
    def given(key):
        return not partial or key in data

    if given("code"):
        code = normalize_code(data.get("code"))
        if not code:
            raise ValueError("code is required")
        clash = get_coupon_by_code(code)
        if clash and clash.id != coupon.id:
            raise ValueError("Coupon code already exists")
        coupon.code = code

    if given("ctype") or given("type"):
        ctype = (data.get("ctype") or data.get("type") or "percentage").lower().strip()
        if ctype not in COUPON_TYPES:
            raise ValueError("ctype must be 'percentage' or 'fixed'")
        coupon.ctype = ctype

    if given("value"):
        value = parse_money(data.get("value"), "value")
        if value <= 0:
            raise ValueError("value must be > 0")
        coupon.value = value
    if coupon.ctype == "percentage" and coupon.value is not None and D(coupon.value) > 100:
        raise ValueError("percentage coupon value must be <= 100")

    if given("description"):
        coupon.description = (data.get("description") or "").strip() or None
    if given("min_purchase"):
        coupon.min_purchase = parse_money(data.get("min_purchase") or 0, "min_purchase")
    if given("max_discount"):
        coupon.max_discount = parse_money(data.get("max_discount"), "max_discount", allow_none=True)
    if given("active"):
        coupon.active = parse_bool(data.get("active"), default=True)

    if given("start_date"):
        coupon.start_date = require_datetime(data, "start_date") or coupon.start_date or utcnow()
    if given("end_date"):
        coupon.end_date = require_datetime(data, "end_date", required=not partial)
        if coupon.end_date is None:
            raise ValueError("end_date is required")
    if coupon.start_date and coupon.end_date and coupon.end_date < coupon.start_date:
        raise ValueError("end_date must be on or after start_date")

    if given("usage_limit"):
        usage_limit = parse_opt_int(data.get("usage_limit"), "usage_limit")
        if usage_limit is not None and usage_limit < 0:
            raise ValueError("usage_limit must be >= 0")
        coupon.usage_limit = usage_limit
    if given("per_user_limit"):
        per_user = parse_opt_int(data.get("per_user_limit", 1), "per_user_limit")
        coupon.per_user_limit = 1 if per_user is None else per_user
        if coupon.per_user_limit < 0:
            raise ValueError("per_user_limit must be >= 0")

    if given("applicable_product_ids"):
        ids = data.get("applicable_product_ids") or []
        if not isinstance(ids, list):
            raise ValueError("applicable_product_ids must be a list")
        try:
            coupon.applicable_product_ids = sorted({int(x) for x in ids})
        except (TypeError, ValueError):
            raise ValueError("applicable_product_ids must contain integers")
    return coupon

def create_coupon(data: dict, *, created_by: int | None) -> Coupon:
    c = Coupon(created_by=created_by, used_count=0, active=True, min_purchase=D(0),
               per_user_limit=1, applicable_product_ids=[])
    apply_coupon_payload(c, data)
    log.info("coupon %s created by user %s", c.code, created_by)
    return store.save(c)
