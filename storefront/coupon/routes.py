# storefront/coupon/routes.py
from __future__ import annotations
from flask import request

from ..model import Cart, Coupon
from ..services import cart_service, coupon_service, store
from ..utils.api import ok, err
from ..utils.decorators import current_user, optional_user, role_required
from ..utils.money import to_float
from ..utils.parsing import parse_money, utcnow
from . import bp

# ---- public ------------------------------------------------------------------

@bp.get("/active")
def list_active_coupons():
    items = coupon_service.active_coupons(utcnow())
    return ok("active coupons", [c.as_api() for c in items])

@bp.get("/validate/<code>")
@optional_user
def validate_coupon(code: str):
    """
    Query params:
      - total: cart total the discount is computed on (default 0)
    A signed-in caller also gets the per-user limit checked; a coupon limited
    to certain products is evaluated on the caller's own cart instead of total.
    """
    coupon = coupon_service.get_coupon_by_code(code)
    if not coupon:
        return err("invalid coupon code", 404)
    total = parse_money(request.args.get("total") or 0, "total")

    user = current_user()
    if coupon.applicable_product_ids and user:
        cart = cart_service.find_cart(user.id) or Cart(user_id=user.id)
        result = cart_service.evaluate_cart_coupon(cart, coupon, user_id=user.id, now=utcnow())
    else:
        result = coupon_service.evaluate_coupon(coupon, total, user_id=user.id if user else None, now=utcnow())
    return ok("coupon valid" if result["valid"] else "coupon not applicable", {
        "code": coupon.code,
        "valid": result["valid"],
        "reason": result["reason"],
        "restricted_to_products": coupon.applicable_product_ids or [],
        "discount": to_float(result["discount"]),
        "coupon": coupon.as_api(),
    })

# ---- admin -------------------------------------------------------------------

@bp.get("")
@role_required("admin")
def list_coupons():
    criteria = []
    active = request.args.get("active")
    if active is not None:
        criteria.append(Coupon.active.is_(active.lower() == "true"))
    items = store.find_many(Coupon, *criteria, order_by=Coupon.id.desc())
    return ok("ok", [c.as_api() for c in items])

@bp.post("")
@role_required("admin")
def create_coupon():
    data = request.get_json(silent=True) or {}
    c = coupon_service.create_coupon(data, created_by=current_user().id)
    return ok("Coupon created", c.as_api(), status=201)

@bp.get("/<int:coupon_id>")
@role_required("admin")
def get_coupon(coupon_id: int):
    c = store.find_one(Coupon, coupon_id)
    if not c:
        return err("coupon not found", 404)
    return ok("coupon", c.as_api())

@bp.put("/<int:coupon_id>")
@role_required("admin")
def update_coupon(coupon_id: int):
    c = store.find_one(Coupon, coupon_id)
    if not c:
        return err("coupon not found", 404)
    data = request.get_json(silent=True) or {}
    coupon_service.apply_coupon_payload(c, data, partial=True)
    store.save(c)
    return ok("Coupon updated", c.as_api())

@bp.delete("/<int:coupon_id>")
@role_required("admin")
def delete_coupon(coupon_id: int):
    c = store.find_one(Coupon, coupon_id)
    if not c:
        return err("coupon not found", 404)
    store.delete(c)
    return ok("Coupon deleted")
