# storefront/shipping/routes.py
from __future__ import annotations
from flask import request

from ..model import ShippingMethod
from ..services import shipping_service, store
from ..services.defaults import save_with_default
from ..utils.api import ok, err
from ..utils.decorators import role_required
from ..utils.parsing import parse_money
from . import bp

# ---- public ------------------------------------------------------------------

@bp.get("/active")
def list_active_methods():
    return ok("active shipping methods", [m.as_api() for m in shipping_service.active_methods()])

@bp.post("/calculate")
def calculate_shipping():
    """
    Body: { "order_total": number, "country": "KH", "weight"?: number, "shipping_method_id"?: int }
    Without a method id, every active method available for the destination is quoted.
    """
    data = request.get_json(silent=True) or {}
    total = parse_money(data.get("order_total") or 0, "order_total")
    country = (data.get("country") or "").strip().upper()
    if not country:
        return err("country is required", 422)
    weight = data.get("weight")
    if weight is not None:
        weight = float(parse_money(weight, "weight"))

    method_id = data.get("shipping_method_id")
    if method_id:
        m = store.find_one(ShippingMethod, int(method_id))
        if not m:
            return err("shipping method not found", 404)
        return ok("shipping quote", shipping_service.quote(m, total, country, weight))
    return ok("shipping options", shipping_service.calculate_options(total, country, weight))

# ---- admin -------------------------------------------------------------------

@bp.get("")
@role_required("admin")
def list_methods():
    items = store.find_many(ShippingMethod, order_by=ShippingMethod.id.asc())
    return ok("shipping methods", [m.as_api() for m in items])

@bp.post("")
@role_required("admin")
def create_method():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if name and store.find_many(ShippingMethod, ShippingMethod.name == name):
        return err("shipping method name already exists", 409)
    m = shipping_service.apply_shipping_payload(ShippingMethod(), data)
    save_with_default(m)
    return ok("shipping method created", m.as_api(), status=201)

@bp.get("/<int:method_id>")
@role_required("admin")
def get_method(method_id: int):
    m = store.find_one(ShippingMethod, method_id)
    if not m:
        return err("shipping method not found", 404)
    return ok("shipping method", m.as_api())

@bp.put("/<int:method_id>")
@role_required("admin")
def update_method(method_id: int):
    m = store.find_one(ShippingMethod, method_id)
    if not m:
        return err("shipping method not found", 404)
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if name and store.find_many(ShippingMethod, ShippingMethod.name == name, ShippingMethod.id != m.id):
        return err("shipping method name already exists", 409)
    shipping_service.apply_shipping_payload(m, data, partial=True)
    save_with_default(m)
    return ok("shipping method updated", m.as_api())

@bp.delete("/<int:method_id>")
@role_required("admin")
def delete_method(method_id: int):
    m = store.find_one(ShippingMethod, method_id)
    if not m:
        return err("shipping method not found", 404)
    store.delete(m)
    return ok("shipping method deleted")
