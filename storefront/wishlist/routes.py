# storefront/wishlist/routes.py
from __future__ import annotations
from flask import request

from ..model import Product, Wishlist
from ..services import cart_service, store
from ..utils.api import ok, err
from ..utils.decorators import current_user, login_required_user
from ..utils.parsing import parse_int
from . import bp

def _get_or_create_wishlist(user_id: int) -> Wishlist:
    found = store.find_many(Wishlist, Wishlist.user_id == user_id)
    if found:
        return found[0]
    return store.save(Wishlist(user_id=user_id))

@bp.get("")
@login_required_user
def get_wishlist():
    w = _get_or_create_wishlist(current_user().id)
    return ok("wishlist", w.as_api())

@bp.post("")
@login_required_user
def add_to_wishlist():
    """Body: { "product_id": int }"""
    data = request.get_json(silent=True) or {}
    product_id = parse_int(data.get("product_id"))
    if not product_id:
        return err("product_id is required", 422)
    product = store.find_one(Product, product_id)
    if not product or product.status is False:
        return err("product not found or inactive", 404)

    w = _get_or_create_wishlist(current_user().id)
    if w.has_product(product.id):
        return err("product already in wishlist", 409)
    w.products.append(product)
    store.commit()
    return ok("product added to wishlist", w.as_api(), status=201)

@bp.delete("/<int:product_id>")
@login_required_user
def remove_from_wishlist(product_id: int):
    w = _get_or_create_wishlist(current_user().id)
    product = next((p for p in w.products if p.id == product_id), None)
    if not product:
        return err("product not in wishlist", 404)
    w.products.remove(product)
    store.commit()
    return ok("product removed from wishlist", w.as_api())

@bp.delete("")
@login_required_user
def clear_wishlist():
    w = _get_or_create_wishlist(current_user().id)
    w.products.clear()
    store.commit()
    return ok("wishlist cleared", w.as_api())

@bp.post("/<int:product_id>/move-to-cart")
@login_required_user
def move_to_cart(product_id: int):
    """Body (optional): { "quantity": int }"""
    user = current_user()
    w = _get_or_create_wishlist(user.id)
    product = next((p for p in w.products if p.id == product_id), None)
    if not product:
        return err("product not in wishlist", 404)

    data = request.get_json(silent=True) or {}
    qty = parse_int(data.get("quantity", 1))
    if qty is None or qty < 1:
        return err("quantity must be >= 1", 422)

    cart = cart_service.get_or_create_cart(user.id)
    w.products.remove(product)
    # one commit covers both the cart line and the wishlist removal
    cart_service.add_item(cart, product_id, qty)
    return ok("product moved to cart", {"wishlist": w.as_api(), "cart": cart.as_api()})
