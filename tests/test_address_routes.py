# tests/test_address_routes.py
import pytest

from storefront.extensions import db
from storefront.model import Address

PAYLOAD = {
    "full_name": "Sok Dara",
    "address_line1": "12 Street 271",
    "city": "Phnom Penh",
    "state": "Phnom Penh",
    "postal_code": "12000",
    "country": "kh",
    "phone": "012345678",
}

def _create(client, headers, **overrides):
    body = {**PAYLOAD, **overrides}
    return client.post("/api/v1/addresses", json=body, headers=headers)

def test_requires_token(client):
    assert client.get("/api/v1/addresses").status_code == 401

def test_create_and_list(client, user, auth):
    h = auth(user)
    r = _create(client, h, is_default=True)
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert data["country"] == "KH"
    assert data["address_type"] == "shipping"
    assert data["is_default"] is True

    r = client.get("/api/v1/addresses", headers=h)
    assert r.status_code == 200
    assert [a["id"] for a in r.get_json()["data"]["items"]] == [data["id"]]

@pytest.mark.parametrize("missing", ["full_name", "city", "phone"])
def test_missing_required_field(client, user, auth, missing):
    body = {k: v for k, v in PAYLOAD.items() if k != missing}
    r = client.post("/api/v1/addresses", json=body, headers=auth(user))
    assert r.status_code == 422
    assert missing in r.get_json()["message"]

def test_rejects_unknown_address_type(client, user, auth):
    r = _create(client, auth(user), address_type="office")
    assert r.status_code == 422

def test_second_default_via_api_demotes_first(client, user, auth):
    h = auth(user)
    first = _create(client, h, is_default=True).get_json()["data"]
    second = _create(client, h, is_default=True, full_name="Second").get_json()["data"]

    items = {a["id"]: a for a in client.get("/api/v1/addresses", headers=h).get_json()["data"]["items"]}
    assert items[first["id"]]["is_default"] is False
    assert items[second["id"]]["is_default"] is True

def test_set_default_endpoint(client, user, auth):
    h = auth(user)
    first = _create(client, h, is_default=True).get_json()["data"]
    second = _create(client, h).get_json()["data"]

    r = client.put(f"/api/v1/addresses/{second['id']}/default", headers=h)
    assert r.status_code == 200
    assert r.get_json()["data"]["is_default"] is True
    assert db.session.get(Address, first["id"]).is_default is False

def test_billing_default_is_independent(client, user, auth):
    h = auth(user)
    ship = _create(client, h, is_default=True).get_json()["data"]
    _create(client, h, is_default=True, address_type="billing")
    assert db.session.get(Address, ship["id"]).is_default is True

def test_update_and_delete(client, user, auth):
    h = auth(user)
    a = _create(client, h).get_json()["data"]

    r = client.put(f"/api/v1/addresses/{a['id']}", json={"city": "Siem Reap"}, headers=h)
    assert r.status_code == 200
    assert r.get_json()["data"]["city"] == "Siem Reap"
    assert r.get_json()["data"]["full_name"] == PAYLOAD["full_name"]

    assert client.delete(f"/api/v1/addresses/{a['id']}", headers=h).status_code == 200
    assert client.get(f"/api/v1/addresses/{a['id']}", headers=h).status_code == 404

def test_other_users_address_is_hidden(client, make_user, auth):
    owner, stranger = make_user(), make_user()
    a = _create(client, auth(owner)).get_json()["data"]
    assert client.get(f"/api/v1/addresses/{a['id']}", headers=auth(stranger)).status_code == 404
    assert client.put(f"/api/v1/addresses/{a['id']}/default", headers=auth(stranger)).status_code == 404
