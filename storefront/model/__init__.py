# ------ storefront/model/__init__.py ------

from .user import User
from .product import Product
from .address import Address, ADDRESS_TYPES
from .shipping import ShippingMethod
from .coupon import Coupon, CouponRedemption, COUPON_TYPES
from .inventory import Inventory
from .cart import Cart, CartItem
from .wishlist import Wishlist
from .order import Order, OrderItem
from .payment import Payment, PAYMENT_METHODS, PAYMENT_STATUSES

__all__ = [
    "User",
    "Product",
    "Address",
    "ADDRESS_TYPES",
    "ShippingMethod",
    "Coupon",
    "CouponRedemption",
    "COUPON_TYPES",
    "Inventory",
    "Cart",
    "CartItem",
    "Wishlist",
    "Order",
    "OrderItem",
    "Payment",
    "PAYMENT_METHODS",
    "PAYMENT_STATUSES",
]
