# storefront/cart/routes.py
from __future__ import annotations
from flask import request

from ..services import cart_service
from ..utils.api import ok
from ..utils.decorators import current_user, login_required_user
from . import bp

def _my_cart():
    return cart_service.get_or_create_cart(current_user().id)

@bp.get("")
@login_required_user
def get_cart():
    return ok("cart", _my_cart().as_api())

@bp.post("")
@login_required_user
def add_to_cart():
    """
    Body: { "product_id": int, "quantity" | "qty": int, "variant"?: {"name": str, "value": str} }
    """
    data = request.get_json(silent=True) or {}
    if not data.get("product_id"):
        raise ValueError("product_id is required")
    cart = cart_service.add_item(
        _my_cart(),
        data.get("product_id"),
        data.get("quantity", data.get("qty", 1)),
        data.get("variant"),
    )
    return ok("item added", cart.as_api(), status=201)

@bp.put("/<int:item_id>")
@login_required_user
def update_cart_item(item_id: int):
    """Body: { "quantity": int }"""
    data = request.get_json(silent=True) or {}
    if "quantity" not in data:
        raise ValueError("quantity is required")
    cart = cart_service.update_item(_my_cart(), item_id, data.get("quantity"))
    return ok("item updated", cart.as_api())

@bp.delete("/<int:item_id>")
@login_required_user
def remove_from_cart(item_id: int):
    cart = cart_service.remove_item(_my_cart(), item_id)
    return ok("item removed", cart.as_api())

@bp.delete("")
@login_required_user
def clear_cart():
    cart = cart_service.clear_cart(_my_cart())
    return ok("all items removed", cart.as_api())

@bp.post("/checkout")
@login_required_user
def checkout():
    data = request.get_json(silent=True) or {}
    order = cart_service.checkout(_my_cart(), current_user().id, data)
    resp = ok("order created", {"order": order.as_api()}, status=201)
    resp.headers["X-Order-Id"] = str(order.id)
    return resp
