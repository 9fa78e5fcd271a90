from __future__ import annotations
import logging
import secrets
from datetime import datetime

from ..errors import RecordNotFound
from ..extensions import db
from ..model import Address, Cart, CartItem, Order, OrderItem, Product, ShippingMethod
from ..utils.money import D, Money, round_money
from ..utils.parsing import parse_int, utcnow
from . import coupon_service, inventory_service, shipping_service, store

log = logging.getLogger(__name__)

def find_cart(user_id: int) -> Cart | None:
    found = store.find_many(Cart, Cart.user_id == user_id)
    return found[0] if found else None

def get_or_create_cart(user_id: int) -> Cart:
    return find_cart(user_id) or store.save(Cart(user_id=user_id))

def _find_item(cart: Cart, item_id: int) -> CartItem | None:
    return next((i for i in cart.items if i.id == item_id), None)

def _active_product(product_id) -> Product:
    product = store.find_one(Product, product_id) if product_id else None
    if not product or product.status is False:
        raise RecordNotFound("product not found or inactive")
    return product

def add_item(cart: Cart, product_id, quantity=1, variant: dict | None = None) -> Cart:
    """Add ``quantity`` of a product; the same product and variant share one line."""
    qty = parse_int(quantity)
    if qty is None or qty < 1:
        raise ValueError("quantity must be >= 1")
    product = _active_product(parse_int(product_id))

    variant = variant or {}
    vname, vvalue = variant.get("name"), variant.get("value")
    item = next((i for i in cart.items
                 if i.product_id == product.id and i.variant_name == vname and i.variant_value == vvalue), None)
    if item:
        item.quantity = item.quantity + qty
    else:
        cart.items.append(CartItem(product_id=product.id, product=product, quantity=qty,
                                   variant_name=vname, variant_value=vvalue))
    store.commit()
    return cart

def update_item(cart: Cart, item_id: int, quantity) -> Cart:
    item = _find_item(cart, item_id)
    if not item:
        raise RecordNotFound("item not found in this cart")
    qty = parse_int(quantity)
    if qty is None or qty < 1:
        raise ValueError("quantity must be >= 1")
    item.quantity = qty
    store.commit()
    return cart

def remove_item(cart: Cart, item_id: int) -> Cart:
    item = _find_item(cart, item_id)
    if not item:
        raise RecordNotFound("item not found in this cart")
    # because of cascade="all, delete-orphan", removing from the list deletes the row
    cart.items.remove(item)
    store.commit()
    return cart

def clear_cart(cart: Cart) -> Cart:
    cart.items.clear()
    store.commit()
    return cart

# ---- checkout ------------------------------------------------------------------

def _gen_order_code(now: datetime):
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(4).upper()}"

def coupon_base(cart: Cart, coupon) -> Money:
    # coupons restricted to products only discount those lines
    if coupon.applicable_product_ids:
        return cart.total_for_products(coupon.applicable_product_ids)
    return cart.total_dec()

def evaluate_cart_coupon(cart: Cart, coupon, *, user_id: int | None, now: datetime) -> dict:
    """evaluate_coupon on the lines the coupon covers; a restricted coupon matching no line is rejected."""
    base = coupon_base(cart, coupon)
    result = coupon_service.evaluate_coupon(coupon, base, user_id=user_id, now=now)
    if result["valid"] and coupon.applicable_product_ids and base <= 0:
        return {"valid": False, "reason": "coupon does not apply to any item in the cart", "discount": D(0)}
    return result

def _resolve_shipping(method_id) -> ShippingMethod:
    if method_id:
        method = store.find_one(ShippingMethod, parse_int(method_id))
        if not method:
            raise RecordNotFound("shipping method not found")
        return method
    defaults = store.find_many(ShippingMethod, ShippingMethod.is_default.is_(True),
                               ShippingMethod.is_active.is_(True))
    if not defaults:
        raise ValueError("shipping_method_id is required")
    return defaults[0]

def checkout(cart: Cart, user_id: int, data: dict, *, now: datetime | None = None) -> Order:
    """
    Body: { "address_id": int, "shipping_method_id"?: int, "coupon_code"?: str, "weight"?: number }

    Order of operations:
      1) validate address, shipping availability
      2) coupon: is_valid, then per-user limit, then calculate_discount
      3) commit inventory, create the order, redeem the coupon, empty the cart
    Everything in step 3 commits together or not at all.
    """
    now = now or utcnow()
    if not cart.items:
        raise ValueError("cart is empty")

    address = store.find_one(Address, parse_int(data.get("address_id")))
    if not address or address.user_id != user_id:
        raise RecordNotFound("address not found")

    subtotal = cart.total_dec()
    method = _resolve_shipping(data.get("shipping_method_id"))
    shipping = shipping_service.quote(method, subtotal, address.country, data.get("weight"))
    if not shipping["available"]:
        raise ValueError(f"shipping method '{method.name}': {shipping['reason']}")
    shipping_total = round_money(D(shipping["cost"]))

    coupon = None
    discount = D(0)
    code = coupon_service.normalize_code(data.get("coupon_code"))
    if code:
        coupon = coupon_service.get_coupon_by_code(code)
        if not coupon:
            raise ValueError("invalid coupon code")
        result = evaluate_cart_coupon(cart, coupon, user_id=user_id, now=now)
        if not result["valid"]:
            raise ValueError(f"coupon '{coupon.code}' invalid: {result['reason']}")
        # the order never discounts below zero even when a fixed coupon exceeds the subtotal
        discount = min(result["discount"], subtotal)

    total = round_money(subtotal - discount + shipping_total)

    with store.guard():
        order = Order(
            code=_gen_order_code(now),
            user_id=user_id,
            status="pending",
            address_json=address.snapshot(),
            shipping_method_id=method.id,
            coupon_code=coupon.code if coupon else None,
            subtotal=subtotal,
            discount_total=round_money(discount),
            shipping_total=shipping_total,
            total=total,
        )
        db.session.add(order)
        db.session.flush()

        for it in cart.items:
            inventory_service.commit_sale(it.product_id, it.quantity)
            db.session.add(OrderItem(
                order_id=order.id,
                product_id=it.product_id,
                name=it.product.name if it.product else None,
                unit_price=it.unit_price_dec(),
                quantity=it.quantity,
                line_total=it.line_total_dec(),
            ))

        if coupon:
            coupon_service.redeem_coupon(coupon, user_id=user_id, order_id=order.id)

        cart.items.clear()
        db.session.commit()

    log.info("order %s created for user %s: total %s (discount %s, shipping %s)",
             order.code, user_id, total, discount, shipping_total)
    return order
