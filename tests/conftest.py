# tests/conftest.py
from datetime import timedelta
from decimal import Decimal
from itertools import count

import pytest
from flask_jwt_extended import create_access_token

from storefront import create_app
from storefront.config import TestConfig
from storefront.extensions import db
from storefront.model import Address, Coupon, Inventory, Product, ShippingMethod, User
from storefront.utils.parsing import utcnow

_seq = count(1)

@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def now():
    return utcnow()

# ---- factories ---------------------------------------------------------------

@pytest.fixture
def make_user(app):
    def _make(role="user", email=None):
        u = User(email=email or f"user{next(_seq)}@example.com", name="Test User", role=role)
        db.session.add(u)
        db.session.commit()
        return u
    return _make

@pytest.fixture
def user(make_user):
    return make_user()

@pytest.fixture
def admin(make_user):
    return make_user(role="admin")

@pytest.fixture
def seller(make_user):
    return make_user(role="seller")

@pytest.fixture
def auth():
    def _headers(u):
        return {"Authorization": f"Bearer {create_access_token(identity=str(u.id))}"}
    return _headers

@pytest.fixture
def make_product(app):
    def _make(name="Green Tea", price="12.50", status=True):
        p = Product(name=name, slug=name.lower().replace(" ", "-"), price=Decimal(price), status=status)
        db.session.add(p)
        db.session.commit()
        return p
    return _make

@pytest.fixture
def make_address(app):
    def _make(u, **overrides):
        data = dict(
            address_type="shipping",
            full_name="Sok Dara",
            address_line1="12 Street 271",
            city="Phnom Penh",
            state="Phnom Penh",
            postal_code="12000",
            country="KH",
            phone="012345678",
            is_default=False,
        )
        data.update(overrides)
        return Address(user_id=u.id, **data)
    return _make

@pytest.fixture
def make_shipping(app):
    def _make(**overrides):
        data = dict(
            name=f"Standard {next(_seq)}",
            price=Decimal("5.00"),
            min_days=2,
            max_days=5,
            handling_time=1,
            is_active=True,
            is_default=False,
            free_shipping_threshold=None,
            countries=[],
            excluded_countries=[],
            allowed_payment_methods=[],
        )
        data.update(overrides)
        return ShippingMethod(**data)
    return _make

@pytest.fixture
def make_coupon(app, now):
    def _make(**overrides):
        data = dict(
            code=f"SAVE{next(_seq)}",
            ctype="percentage",
            value=Decimal("10"),
            min_purchase=Decimal("0"),
            max_discount=None,
            active=True,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=30),
            usage_limit=None,
            used_count=0,
            per_user_limit=1,
            applicable_product_ids=[],
        )
        data.update(overrides)
        c = Coupon(**data)
        db.session.add(c)
        db.session.commit()
        return c
    return _make

@pytest.fixture
def make_inventory(app):
    def _make(product, **overrides):
        data = dict(sku=f"SKU-{next(_seq)}", quantity=20, reserved_quantity=0, low_stock_threshold=10, variants=[])
        data.update(overrides)
        inv = Inventory(product_id=product.id, **data)
        db.session.add(inv)
        db.session.commit()
        return inv
    return _make
