# ------- storefront/utils/decorators.py -------
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from ..extensions import db
from ..utils.api import err
from ..model.user import User

def _current_user(optional=False):
    verify_jwt_in_request(optional=optional)
    uid = get_jwt_identity()
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        uid = None
    return db.session.get(User, uid) if uid else None

def current_user() -> User | None:
    return g.get("current_user")

def login_required_user(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        u = _current_user()
        if not u:
            return err("Unauthorized", 401)
        g.current_user = u
        return fn(*args, **kwargs)
    return wrapper

def optional_user(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.current_user = _current_user(optional=True)
        return fn(*args, **kwargs)
    return wrapper

def role_required(*roles, message: str | None = None):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            u = _current_user()
            if not u:
                return err("Unauthorized", 401)
            if u.role not in roles:
                return err(message or "Forbidden", 403)
            g.current_user = u
            return fn(*args, **kwargs)
        return wrapper
    return decorator

def is_admin(user: User | None) -> bool:
    return bool(user) and user.role == "admin"
