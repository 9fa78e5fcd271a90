# storefront/services/shipping_service.py
from __future__ import annotations

from ..model import ShippingMethod
from ..model.payment import PAYMENT_METHODS
from ..utils.money import D
from ..utils.parsing import parse_bool, parse_int, parse_money, parse_str_list
from . import store

def quote(method: ShippingMethod, order_total, country: str | None, weight=None) -> dict:
    """Availability and cost of one method for a destination and order."""
    reason = None
    if not method.is_active:
        reason = "shipping method is not active"
    elif not method.is_available_for_country(country):
        reason = "not available for this country"
    elif not method.accepts_weight(weight):
        reason = "exceeds the weight limit"

    free = reason is None and method.is_free_shipping(order_total)
    return {
        "method": method.as_api(),
        "available": reason is None,
        "reason": reason,
        "free_shipping": free,
        "cost": None if reason else (0.0 if free else float(D(method.price))),
    }

def active_methods():
    return store.find_many(
        ShippingMethod, ShippingMethod.is_active.is_(True),
        order_by=ShippingMethod.is_default.desc(),
    )

def calculate_options(order_total, country: str | None, weight=None) -> list[dict]:
    quotes = [quote(m, order_total, country, weight) for m in active_methods()]
    return [q for q in quotes if q["available"]]

def apply_shipping_payload(method: ShippingMethod, data: dict, *, partial=False) -> ShippingMethod:
    def given(key):
        return not partial or key in data

    if given("name"):
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        method.name = name
    if given("description"):
        method.description = (data.get("description") or "").strip() or None
    if given("price"):
        method.price = parse_money(data.get("price"), "price")

    if given("estimated_days"):
        days = data.get("estimated_days") or {}
        lo, hi = parse_int(days.get("min")), parse_int(days.get("max"))
        if lo is None or hi is None:
            raise ValueError("estimated_days.min and estimated_days.max are required")
        if lo < 0 or hi < lo:
            raise ValueError("estimated_days must satisfy 0 <= min <= max")
        method.min_days, method.max_days = lo, hi
    if given("handling_time"):
        method.handling_time = parse_int(data.get("handling_time", 1), 1)

    if given("is_active"):
        method.is_active = parse_bool(data.get("is_active"), default=True)
    if given("is_default"):
        method.is_default = parse_bool(data.get("is_default"), default=False)
    if given("free_shipping_threshold"):
        method.free_shipping_threshold = parse_money(
            data.get("free_shipping_threshold"), "free_shipping_threshold", allow_none=True)

    restrictions = data.get("restrictions") or {}
    if not partial or "countries" in restrictions:
        method.countries = parse_str_list(restrictions.get("countries"), "countries", upper=True)
    if not partial or "excluded_countries" in restrictions:
        method.excluded_countries = parse_str_list(
            restrictions.get("excluded_countries"), "excluded_countries", upper=True)
    if not partial or "weight_limit" in restrictions:
        limit = restrictions.get("weight_limit")
        method.weight_limit = None if limit in (None, "") else float(parse_money(limit, "weight_limit"))

    if given("allowed_payment_methods"):
        allowed = parse_str_list(data.get("allowed_payment_methods"), "allowed_payment_methods")
        unknown = [m for m in allowed if m not in PAYMENT_METHODS]
        if unknown:
            raise ValueError(f"unknown payment methods: {', '.join(unknown)}")
        method.allowed_payment_methods = allowed
    return method
