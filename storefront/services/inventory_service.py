# storefront/services/inventory_service.py
from __future__ import annotations
import logging

from sqlalchemy import update

from ..errors import ConstraintViolation
from ..extensions import db
from ..model import Inventory
from ..utils.parsing import parse_int, parse_opt_int, require_datetime, utcnow
from . import store

log = logging.getLogger(__name__)

def _conditional_update(inv_id: int, criteria, values) -> bool:
    stmt = (
        update(Inventory)
        .where(Inventory.id == inv_id, *criteria)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    with store.guard():
        return db.session.execute(stmt).rowcount == 1

def _refresh(inv: Inventory):
    db.session.refresh(inv, attribute_names=["quantity", "reserved_quantity", "last_restocked"])
    return inv

def reserve_stock(inv: Inventory, qty: int, *, commit=True) -> Inventory:
    """Hold ``qty`` units; fails when fewer than ``qty`` are available."""
    if qty < 1:
        raise ValueError("quantity must be >= 1")
    done = _conditional_update(
        inv.id,
        (Inventory.quantity - Inventory.reserved_quantity >= qty,),
        {"reserved_quantity": Inventory.reserved_quantity + qty},
    )
    if not done:
        raise ConstraintViolation("not enough stock available", {"sku": inv.sku, "requested": qty})
    if commit:
        store.commit()
    return _refresh(inv)

def release_stock(inv: Inventory, qty: int, *, commit=True) -> Inventory:
    if qty < 1:
        raise ValueError("quantity must be >= 1")
    done = _conditional_update(
        inv.id,
        (Inventory.reserved_quantity >= qty,),
        {"reserved_quantity": Inventory.reserved_quantity - qty},
    )
    if not done:
        raise ConstraintViolation("cannot release more than is reserved", {"sku": inv.sku, "requested": qty})
    if commit:
        store.commit()
    return _refresh(inv)

def commit_sale(product_id: int, qty: int) -> bool:
    """
    Take ``qty`` sold units off a tracked product's stock; the caller commits.

    Returns False when the product has no inventory record (untracked).
    """
    rows = store.find_many(Inventory, Inventory.product_id == product_id, lock=True)
    if not rows:
        return False
    inv = rows[0]
    done = _conditional_update(
        inv.id,
        (Inventory.quantity - Inventory.reserved_quantity >= qty,),
        {"quantity": Inventory.quantity - qty},
    )
    if not done:
        name = inv.product.name if inv.product else product_id
        raise ConstraintViolation(f"{name} just sold out", {"product_id": product_id})
    _refresh(inv)
    if inv.is_low_stock:
        log.warning("low stock for sku %s: %s left (threshold %s)",
                    inv.sku, inv.quantity, inv.low_stock_threshold)
    return True

def update_stock(inv: Inventory, data: dict, *, now=None) -> Inventory:
    """
    Body: { "quantity": int } to set on-hand stock, or { "delta": int } to adjust it.
    "restock": true stamps last_restocked.
    """
    now = now or utcnow()
    if "quantity" in data:
        qty = parse_int(data.get("quantity"))
        if qty is None or qty < 0:
            raise ValueError("quantity must be an integer >= 0")
        if qty < (inv.reserved_quantity or 0):
            raise ValueError("quantity cannot drop below the reserved quantity")
        criteria, values = (Inventory.reserved_quantity <= qty,), {"quantity": qty}
    elif "delta" in data:
        delta = parse_int(data.get("delta"))
        if delta is None or delta == 0:
            raise ValueError("delta must be a non-zero integer")
        criteria = (Inventory.quantity + delta >= Inventory.reserved_quantity,
                    Inventory.quantity + delta >= 0)
        values = {"quantity": Inventory.quantity + delta}
    else:
        raise ValueError("quantity or delta is required")

    restock = bool(data.get("restock")) or ("delta" in data and parse_int(data.get("delta"), 0) > 0)
    if restock:
        values["last_restocked"] = now
    if not _conditional_update(inv.id, criteria, values):
        raise ConstraintViolation("stock adjustment would go below zero", {"sku": inv.sku})
    store.commit()
    log.info("stock updated for sku %s: %s", inv.sku, values)
    return _refresh(inv)

def apply_inventory_payload(inv: Inventory, data: dict, *, partial=False) -> Inventory:
    def given(key):
        return not partial or key in data

    if given("product_id"):
        pid = parse_int(data.get("product_id"))
        if not pid:
            raise ValueError("product_id is required")
        inv.product_id = pid
    if given("sku"):
        sku = (data.get("sku") or "").strip()
        if not sku:
            raise ValueError("sku is required")
        inv.sku = sku
    if given("quantity"):
        qty = parse_int(data.get("quantity", 0))
        if qty is None or qty < 0:
            raise ValueError("quantity must be an integer >= 0")
        inv.quantity = qty
    if given("low_stock_threshold"):
        threshold = parse_opt_int(data.get("low_stock_threshold", 10), "low_stock_threshold")
        inv.low_stock_threshold = 10 if threshold is None else threshold
    if given("variants"):
        variants = data.get("variants") or []
        if not isinstance(variants, list):
            raise ValueError("variants must be a list")
        inv.variants = [
            {"name": v.get("name"), "value": v.get("value"),
             "quantity": parse_int(v.get("quantity"), 0), "sku": v.get("sku")}
            for v in variants if isinstance(v, dict)
        ]
    location = data.get("location") or {}
    for key in ("warehouse", "aisle", "shelf", "bin"):
        if key in location or not partial:
            setattr(inv, key, location.get(key))
    if given("next_restock_date"):
        inv.next_restock_date = require_datetime(data, "next_restock_date")
    return inv
