# storefront/utils/parsing.py
from __future__ import annotations
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from .money import D

def utcnow() -> datetime:
    # naive UTC, matching what the DateTime columns store
    return datetime.now(timezone.utc).replace(tzinfo=None)

def parse_iso8601(s: str | None):
    if not s:
        return None
    s = s.strip()
    # support trailing 'Z' (UTC)
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)  # store naive UTC
    return dt

def require_datetime(data: dict, key: str, *, required=False):
    raw = data.get(key)
    if raw in (None, ""):
        if required:
            raise ValueError(f"{key} is required")
        return None
    dt = parse_iso8601(str(raw))
    if dt is None:
        raise ValueError(f"Invalid datetime format for {key}")
    return dt

def parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}

def parse_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

def parse_opt_int(v, field: str):
    if v is None or (isinstance(v, str) and v.strip().lower() in {"", "null"}):
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be an integer")

def parse_money(v, field: str, *, allow_none=False, minimum=Decimal("0")):
    if v is None or v == "":
        if allow_none:
            return None
        raise ValueError(f"{field} is required")
    try:
        value = D(v)
    except InvalidOperation:
        raise ValueError(f"{field} must be numeric")
    if not value.is_finite():
        raise ValueError(f"{field} must be numeric")
    if minimum is not None and value < minimum:
        raise ValueError(f"{field} must be >= {minimum}")
    return value

def parse_str_list(v, field: str, *, upper=False):
    if v is None:
        return []
    if isinstance(v, str):
        v = [x for x in v.split(",")]
    if not isinstance(v, (list, tuple)):
        raise ValueError(f"{field} must be a list")
    out = []
    for x in v:
        s = str(x).strip()
        if s:
            out.append(s.upper() if upper else s)
    return out
