# tests/test_coupons.py
from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.errors import ConstraintViolation
from storefront.extensions import db
from storefront.model import Coupon, CouponRedemption
from storefront.services import coupon_service


def _payload(**overrides):
    body = {
        "code": "  summer10 ",
        "ctype": "percentage",
        "value": 10,
        "min_purchase": 20,
        "start_date": "2030-01-01T00:00:00Z",
        "end_date": "2030-02-01T00:00:00Z",
        "usage_limit": 100,
    }
    body.update(overrides)
    return body

# ---- admin endpoints ---------------------------------------------------------

def test_admin_creates_coupon_with_normalized_code(client, admin, auth):
    r = client.post("/api/v1/coupons", json=_payload(), headers=auth(admin))
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert data["code"] == "SUMMER10"
    assert data["used_count"] == 0

def test_duplicate_code_is_rejected(client, admin, auth, make_coupon):
    make_coupon(code="SUMMER10")
    r = client.post("/api/v1/coupons", json=_payload(), headers=auth(admin))
    assert r.status_code == 422
    assert "already exists" in r.get_json()["message"]

@pytest.mark.parametrize("overrides", [
    {"ctype": "bogus"},
    {"value": 0},
    {"value": 150},
    {"end_date": "2029-12-31T00:00:00Z"},
    {"end_date": None},
])
def test_invalid_payloads(client, admin, auth, overrides):
    r = client.post("/api/v1/coupons", json=_payload(**overrides), headers=auth(admin))
    assert r.status_code == 422

def test_non_admin_cannot_manage_coupons(client, user, auth):
    assert client.post("/api/v1/coupons", json=_payload(), headers=auth(user)).status_code == 403
    assert client.get("/api/v1/coupons", headers=auth(user)).status_code == 403

def test_admin_update_and_delete(client, admin, auth, make_coupon):
    c = make_coupon(value=Decimal("10"))
    h = auth(admin)
    r = client.put(f"/api/v1/coupons/{c.id}", json={"value": 15, "active": False}, headers=h)
    assert r.status_code == 200
    assert r.get_json()["data"]["value"] == 15.0
    assert r.get_json()["data"]["active"] is False

    assert client.delete(f"/api/v1/coupons/{c.id}", headers=h).status_code == 200
    assert client.get(f"/api/v1/coupons/{c.id}", headers=h).status_code == 404

# ---- public endpoints --------------------------------------------------------

def test_active_list_hides_expired_and_exhausted(client, make_coupon, now):
    live = make_coupon()
    make_coupon(end_date=now - timedelta(seconds=1))
    make_coupon(usage_limit=2, used_count=2)
    make_coupon(active=False)

    r = client.get("/api/v1/coupons/active")
    assert r.status_code == 200
    assert [c["code"] for c in r.get_json()["data"]["items"]] == [live.code]

def test_validate_reports_discount(client, make_coupon):
    c = make_coupon(ctype="percentage", value=Decimal("20"), max_discount=Decimal("50"))
    r = client.get(f"/api/v1/coupons/validate/{c.code.lower()}?total=300")
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["valid"] is True
    assert data["discount"] == 50.0

def test_validate_below_minimum(client, make_coupon):
    c = make_coupon(min_purchase=Decimal("100"))
    data = client.get(f"/api/v1/coupons/validate/{c.code}?total=99.99").get_json()["data"]
    assert data["valid"] is False
    assert data["discount"] == 0.0
    assert "minimum purchase" in data["reason"]

def test_validate_unknown_code(client):
    assert client.get("/api/v1/coupons/validate/NOPE").status_code == 404

def test_validate_checks_per_user_limit_for_signed_in_caller(client, user, auth, make_coupon):
    c = make_coupon(per_user_limit=1)
    coupon_service.redeem_coupon(c, user_id=user.id)
    db.session.commit()

    signed_in = client.get(f"/api/v1/coupons/validate/{c.code}?total=50", headers=auth(user))
    anonymous = client.get(f"/api/v1/coupons/validate/{c.code}?total=50")
    assert signed_in.get_json()["data"]["valid"] is False
    assert anonymous.get_json()["data"]["valid"] is True

# ---- redemption --------------------------------------------------------------

def test_redeem_increments_used_count_and_records_user(make_user, make_coupon):
    c = make_coupon(usage_limit=5, per_user_limit=0)
    u = make_user()
    coupon_service.redeem_coupon(c, user_id=u.id)
    coupon_service.redeem_coupon(c, user_id=u.id)
    db.session.commit()

    assert c.used_count == 2
    assert CouponRedemption.query.filter_by(coupon_id=c.id, user_id=u.id).count() == 2

def test_redeem_never_exceeds_usage_limit(make_user, make_coupon):
    c = make_coupon(usage_limit=1)
    coupon_service.redeem_coupon(c, user_id=make_user().id)
    db.session.commit()

    with pytest.raises(ConstraintViolation):
        coupon_service.redeem_coupon(c, user_id=make_user().id)

    assert db.session.get(Coupon, c.id).used_count == 1
    assert coupon_service.is_valid(c, c.start_date) is False

def test_redeem_enforces_per_user_limit(user, make_coupon):
    c = make_coupon(usage_limit=10, per_user_limit=1)
    coupon_service.redeem_coupon(c, user_id=user.id)
    db.session.commit()

    with pytest.raises(ConstraintViolation):
        coupon_service.redeem_coupon(c, user_id=user.id)
    assert db.session.get(Coupon, c.id).used_count == 1

def test_evaluate_coupon_order_of_checks(user, make_coupon, now):
    expired = make_coupon(end_date=now - timedelta(days=1), min_purchase=Decimal("1000"))
    result = coupon_service.evaluate_coupon(expired, Decimal("10"), user_id=user.id, now=now)
    assert result == {"valid": False, "reason": "coupon is invalid or expired", "discount": Decimal("0")}

def test_code_is_upper_cased_on_the_model(make_coupon):
    c = make_coupon(code="lower")
    assert c.code == "LOWER"
    assert coupon_service.get_coupon_by_code(" lower ") is c
