from __future__ import annotations

from typing import Any, Dict

from flask import jsonify, request

from ..errors import InvalidArgument
from ..tenancy import ensure_same_user
from ..utils.validation import as_text


def json_body() -> Dict[str, Any]:
    """Parsed JSON object body ({} when empty). Rejects bodies acting for another user."""
    if not request.data:
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidArgument("Request body must be a JSON object.")
    ensure_same_user(data)
    return data


def ok(status: int = 200, **payload):
    return jsonify({"ok": True, **payload}), status


def flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "yes", "on")


def text_field(data: Dict[str, Any], key: str, default: str = "") -> str:
    """Trimmed string field from a JSON body; a number or object is a 400."""
    return as_text(data.get(key), f"'{key}'") or default
