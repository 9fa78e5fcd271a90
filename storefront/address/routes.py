# storefront/address/routes.py
from __future__ import annotations
from flask import request

from ..model import Address, ADDRESS_TYPES
from ..services import store
from ..services.defaults import save_with_default
from ..utils.api import ok, err
from ..utils.decorators import current_user, login_required_user
from ..utils.parsing import parse_bool
from . import bp

_REQUIRED = ("full_name", "address_line1", "city", "state", "postal_code", "country", "phone")
_OPTIONAL = ("address_line2",)

def _own_address(address_id: int) -> Address | None:
    a = store.find_one(Address, address_id)
    if not a or a.user_id != current_user().id:
        return None
    return a

def _apply_payload(a: Address, data: dict, *, partial=False):
    for key in _REQUIRED:
        if partial and key not in data:
            continue
        value = str(data.get(key) or "").strip()
        if not value:
            raise ValueError(f"{key} is required")
        setattr(a, key, value)
    for key in _OPTIONAL:
        if key in data or not partial:
            a.address_line2 = (data.get(key) or "").strip() or None
    if "address_type" in data or not partial:
        atype = (data.get("address_type") or "shipping").strip().lower()
        if atype not in ADDRESS_TYPES:
            raise ValueError("address_type must be 'shipping' or 'billing'")
        a.address_type = atype
    if "country" in data:
        a.country = a.country.upper()
    if "is_default" in data or not partial:
        a.is_default = parse_bool(data.get("is_default"), default=False)
    return a

@bp.get("")
@login_required_user
def list_addresses():
    q = [Address.user_id == current_user().id]
    atype = request.args.get("type")
    if atype:
        q.append(Address.address_type == atype.lower())
    items = store.find_many(Address, *q, order_by=Address.id.asc())
    return ok("addresses", [a.as_api() for a in items])

@bp.get("/<int:address_id>")
@login_required_user
def get_address(address_id: int):
    a = _own_address(address_id)
    if not a:
        return err("address not found", 404)
    return ok("address", a.as_api())

@bp.post("")
@login_required_user
def create_address():
    data = request.get_json(silent=True) or {}
    a = _apply_payload(Address(user_id=current_user().id), data)
    save_with_default(a)
    return ok("address created", a.as_api(), status=201)

@bp.put("/<int:address_id>")
@login_required_user
def update_address(address_id: int):
    a = _own_address(address_id)
    if not a:
        return err("address not found", 404)
    data = request.get_json(silent=True) or {}
    _apply_payload(a, data, partial=True)
    save_with_default(a)
    return ok("address updated", a.as_api())

@bp.delete("/<int:address_id>")
@login_required_user
def delete_address(address_id: int):
    a = _own_address(address_id)
    if not a:
        return err("address not found", 404)
    store.delete(a)
    return ok("address deleted")

@bp.put("/<int:address_id>/default")
@login_required_user
def set_default_address(address_id: int):
    a = _own_address(address_id)
    if not a:
        return err("address not found", 404)
    a.is_default = True
    save_with_default(a)
    return ok("default address set", a.as_api())
