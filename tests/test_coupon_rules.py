# tests/test_coupon_rules.py
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from storefront.services.coupon_service import calculate_discount, is_valid

NOW = datetime(2025, 6, 15, 12, 0, 0)

def coupon(**overrides):
    data = dict(
        ctype="percentage",
        value=Decimal("10"),
        min_purchase=Decimal("0"),
        max_discount=None,
        active=True,
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=1),
        usage_limit=None,
        used_count=0,
    )
    data.update(overrides)
    return SimpleNamespace(**data)

# ---- is_valid ------------------------------------------------------------------

def test_valid_inside_window():
    assert is_valid(coupon(), NOW) is True

def test_inactive_coupon_is_invalid_even_inside_window():
    assert is_valid(coupon(active=False), NOW) is False

def test_window_boundaries_are_inclusive():
    assert is_valid(coupon(start_date=NOW, end_date=NOW), NOW) is True
    c = coupon(start_date=NOW - timedelta(days=1), end_date=NOW)
    assert is_valid(c, NOW) is True
    assert is_valid(c, NOW + timedelta(microseconds=1)) is False

def test_not_yet_started():
    c = coupon(start_date=NOW + timedelta(seconds=1))
    assert is_valid(c, NOW) is False

def test_usage_limit_reached_is_invalid_regardless_of_window():
    c = coupon(usage_limit=5, used_count=5, start_date=NOW - timedelta(days=365),
               end_date=NOW + timedelta(days=365))
    assert is_valid(c, NOW) is False
    assert c.used_count == 5

def test_usage_under_limit_and_unlimited():
    assert is_valid(coupon(usage_limit=5, used_count=4), NOW) is True
    assert is_valid(coupon(usage_limit=None, used_count=10_000), NOW) is True

# ---- calculate_discount ----------------------------------------------------------

def test_percentage_clamped_to_max_discount():
    c = coupon(ctype="percentage", value=Decimal("10"), min_purchase=Decimal("50"), max_discount=Decimal("20"))
    assert calculate_discount(c, Decimal("300")) == Decimal("20")

def test_percentage_under_cap():
    c = coupon(ctype="percentage", value=Decimal("10"), max_discount=Decimal("20"))
    assert calculate_discount(c, Decimal("150")) == Decimal("15.00")

def test_fixed_discount_may_exceed_cart_total():
    c = coupon(ctype="fixed", value=Decimal("15"), min_purchase=Decimal("0"))
    assert calculate_discount(c, Decimal("10")) == Decimal("15")

def test_below_min_purchase_gives_nothing():
    c = coupon(ctype="fixed", value=Decimal("15"), min_purchase=Decimal("50"))
    assert calculate_discount(c, Decimal("49.99")) == 0
    assert calculate_discount(c, Decimal("50")) == Decimal("15")

def test_discount_ignores_validity():
    c = coupon(active=False, end_date=NOW - timedelta(days=10))
    assert calculate_discount(c, Decimal("100")) == Decimal("10.00")

def test_discount_does_not_mutate_usage():
    c = coupon(usage_limit=3, used_count=1)
    calculate_discount(c, Decimal("100"))
    assert c.used_count == 1

def test_accepts_plain_numbers():
    c = coupon(ctype="percentage", value=25, max_discount=None)
    assert calculate_discount(c, 80) == Decimal("20.00")

@pytest.mark.parametrize("ctype,value", [("percentage", "5"), ("percentage", "100"), ("fixed", "7.5"), ("fixed", "500")])
@pytest.mark.parametrize("max_discount", [None, "0", "12.34"])
@pytest.mark.parametrize("min_purchase", ["0", "40"])
@pytest.mark.parametrize("total", ["0", "10", "39.99", "40", "1000"])
def test_discount_bounds(ctype, value, max_discount, min_purchase, total):
    c = coupon(ctype=ctype, value=Decimal(value), min_purchase=Decimal(min_purchase),
               max_discount=None if max_discount is None else Decimal(max_discount))
    d = calculate_discount(c, Decimal(total))
    assert d >= 0
    if max_discount is not None:
        assert d <= Decimal(max_discount)
    if Decimal(total) < Decimal(min_purchase):
        assert d == 0
