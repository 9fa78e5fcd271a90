# storefront/inventory/routes.py
from __future__ import annotations
from flask import request

from ..model import Inventory, Product
from ..services import inventory_service, store
from ..utils.api import ok, err
from ..utils.decorators import role_required
from ..utils.parsing import parse_int
from . import bp

_STAFF = ("admin", "seller")

@bp.get("")
@role_required(*_STAFF)
def list_inventory():
    """
    Query params:
      - warehouse=...
      - sku=... (prefix match)
    """
    criteria = []
    warehouse = request.args.get("warehouse")
    sku = request.args.get("sku")
    if warehouse:
        criteria.append(Inventory.warehouse == warehouse)
    if sku:
        criteria.append(Inventory.sku.ilike(f"{sku}%"))
    items = store.find_many(Inventory, *criteria, order_by=Inventory.id.asc())
    return ok("inventory", [i.as_api() for i in items])

@bp.get("/low-stock")
@role_required(*_STAFF)
def list_low_stock():
    items = store.find_many(Inventory, Inventory.is_low_stock, order_by=Inventory.quantity.asc())
    return ok("low stock inventory", [i.as_api() for i in items])

@bp.get("/product/<int:product_id>")
@role_required(*_STAFF)
def get_product_inventory(product_id: int):
    items = store.find_many(Inventory, Inventory.product_id == product_id)
    if not items:
        return err("inventory not found for this product", 404)
    return ok("inventory", items[0].as_api())

@bp.get("/<int:inventory_id>")
@role_required(*_STAFF)
def get_inventory(inventory_id: int):
    inv = store.find_one(Inventory, inventory_id)
    if not inv:
        return err("inventory not found", 404)
    return ok("inventory", inv.as_api())

@bp.post("")
@role_required(*_STAFF)
def create_inventory():
    data = request.get_json(silent=True) or {}
    inv = inventory_service.apply_inventory_payload(Inventory(reserved_quantity=0), data)
    if not store.find_one(Product, inv.product_id):
        return err("product not found", 404)
    if store.find_many(Inventory, Inventory.sku == inv.sku):
        return err("sku already exists", 409)
    store.save(inv)
    return ok("inventory created", inv.as_api(), status=201)

@bp.put("/<int:inventory_id>")
@role_required(*_STAFF)
def update_inventory(inventory_id: int):
    inv = store.find_one(Inventory, inventory_id)
    if not inv:
        return err("inventory not found", 404)
    data = request.get_json(silent=True) or {}
    sku = (data.get("sku") or "").strip()
    if sku and store.find_many(Inventory, Inventory.sku == sku, Inventory.id != inv.id):
        return err("sku already exists", 409)
    inventory_service.apply_inventory_payload(inv, data, partial=True)
    if (inv.quantity or 0) < (inv.reserved_quantity or 0):
        return err("quantity cannot drop below the reserved quantity", 422)
    store.save(inv)
    return ok("inventory updated", inv.as_api())

@bp.patch("/<int:inventory_id>/stock")
@role_required(*_STAFF)
def update_stock(inventory_id: int):
    """
    Body: { "quantity": int } | { "delta": int }, optional "restock": true
          { "reserve": int } | { "release": int }
    """
    inv = store.find_one(Inventory, inventory_id)
    if not inv:
        return err("inventory not found", 404)
    data = request.get_json(silent=True) or {}
    if "reserve" in data:
        inventory_service.reserve_stock(inv, parse_int(data.get("reserve"), 0))
    elif "release" in data:
        inventory_service.release_stock(inv, parse_int(data.get("release"), 0))
    else:
        inventory_service.update_stock(inv, data)
    return ok("stock updated", inv.as_api())
