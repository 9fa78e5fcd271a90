# --- storefront/utils/api.py ---
from datetime import datetime, timedelta, timezone
from flask import current_app, jsonify

def _api_time_human():
    offset = current_app.config.get("API_TZ_OFFSET_HOURS", 0)
    now = datetime.now(timezone.utc) + timedelta(hours=offset)
    return now.strftime("%Y-%m-%d %H:%M:%S")

def _envelope(status, message, data):
    # list payloads are wrapped so the envelope keys can always be merged in
    if isinstance(data, list):
        data = {"items": data}
    return {
        "status": status,
        "message": message,
        "data": {
            **(data or {}),
            "API_TIME_HUMAN": _api_time_human(),
        }
    }

def api_ok(message, data=None):
    return _envelope(True, message, data)

def api_error(message, data=None):
    return _envelope(False, message, data)

# ---- response helpers -------------------------------------------------------
def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r

def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r
