"""Small helpers shared by page routes."""

from __future__ import annotations

from flask import request


def form_data(*names: str) -> dict:
    """Return the named form fields, stripped; blank fields become None."""
    return {name: (request.form.get(name) or "").strip() or None for name in names}


def safe_next(default: str) -> str:
    """Only follow relative `next` targets."""
    target = request.args.get("next") or request.form.get("next") or ""
    if target.startswith("/") and not target.startswith("//"):
        return target
    return default
