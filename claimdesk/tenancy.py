"""Authentication, role permissions and organization scoping.

A request is authenticated either by a bearer token (`Authorization: Bearer
<api_token>`, used by the JSON API) or by the Flask session (pages). The
active organization is picked from `X-Org-Id` / `session["org_id"]`, falling
back to the user's first membership.

Rows belonging to another organization are reported as missing, never as
forbidden, so tenants cannot discover each other's ids.
"""

from __future__ import annotations

from functools import wraps

from flask import g, request, session

from .errors import NotFound, PermissionDenied, Unauthenticated
from .extensions import db
from .models import Membership, User

ROLE_LEVELS = {"admin": 4, "manager": 3, "member": 2, "viewer": 1}

ALL_PERMISSIONS = {
    "claims:create", "claims:edit", "claims:delete", "claims:view",
    "leads:create", "leads:edit", "leads:delete", "leads:view",
    "vendors:create", "vendors:edit", "vendors:delete", "vendors:view",
    "team:invite", "team:edit", "team:remove", "team:view",
    "billing:manage", "billing:view",
    "reports:create", "reports:view",
    "analytics:view",
}

ROLE_PERMISSIONS = {
    "admin": set(ALL_PERMISSIONS),
    "manager": {
        "claims:create", "claims:edit", "claims:view",
        "leads:create", "leads:edit", "leads:view",
        "vendors:create", "vendors:edit", "vendors:view",
        "team:invite", "team:view",
        "billing:view",
        "reports:create", "reports:view",
        "analytics:view",
    },
    "member": {
        "claims:create", "claims:edit", "claims:view",
        "leads:create", "leads:edit", "leads:view",
        "vendors:view",
        "team:view",
        "reports:create", "reports:view",
    },
    "viewer": {
        "claims:view", "leads:view", "vendors:view", "team:view", "reports:view",
    },
}


def has_permission(role: str | None, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(role or "", set())


def has_role_level(role: str | None, minimum: str) -> bool:
    return ROLE_LEVELS.get(role or "", 0) >= ROLE_LEVELS[minimum]


# ---- request identity ----

def _bearer_token() -> str | None:
    header = request.headers.get("Authorization") or ""
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        return token or None
    return None


def _resolve_user() -> User | None:
    token = _bearer_token()
    if token:
        return User.query.filter_by(api_token=token, is_active=True).first()
    user_id = session.get("user_id")
    if user_id:
        user = db.session.get(User, user_id)
        if user and user.is_active:
            return user
    return None


def _resolve_membership(user: User) -> Membership | None:
    requested = request.headers.get("X-Org-Id") or session.get("org_id")
    memberships = Membership.query.filter_by(user_id=user.id).order_by(Membership.id).all()
    if not memberships:
        return None
    if requested:
        for m in memberships:
            if str(m.org_id) == str(requested):
                return m
        raise PermissionDenied("You are not a member of that organization.")
    return memberships[0]


def authenticate_request() -> User | None:
    """Populate g.user / g.org / g.role for this request. Returns the user."""
    if getattr(g, "_auth_resolved", False):
        return g.user
    g._auth_resolved = True
    g.user = None
    g.org = None
    g.role = None

    user = _resolve_user()
    if user is None:
        return None
    membership = _resolve_membership(user)
    g.user = user
    if membership is not None:
        g.org = membership.organization
        g.role = membership.role
    return user


def init_app(app) -> None:
    @app.before_request
    def _reset_identity():
        # g outlives a request when the app context is shared (test clients).
        g.pop("_auth_resolved", None)


def current_user() -> User | None:
    return authenticate_request()


def current_org():
    authenticate_request()
    return g.org


def current_role() -> str | None:
    authenticate_request()
    return g.role


# ---- decorators ----

def require_auth(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if authenticate_request() is None:
            raise Unauthenticated("Sign in required.")
        if g.org is None:
            raise PermissionDenied("No organization membership.")
        return view(*args, **kwargs)
    return wrapper


def require_permission(permission: str):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if authenticate_request() is None:
                raise Unauthenticated("Sign in required.")
            if g.org is None or not has_permission(g.role, permission):
                raise PermissionDenied(f"Missing permission: {permission}")
            return view(*args, **kwargs)
        return wrapper
    return decorator


def ensure_same_user(payload: dict | None) -> None:
    """Reject bodies that claim to act on behalf of a different user."""
    if not payload or "user_id" not in payload or payload.get("user_id") in (None, ""):
        return
    user = current_user()
    if user is None or str(payload.get("user_id")) != str(user.id):
        raise PermissionDenied("Request user does not match the signed-in user.")


def org_query(model):
    """Base query for a tenant-owned model, filtered to the active org."""
    org = current_org()
    if org is None:
        raise Unauthenticated("Sign in required.")
    return model.query.filter_by(org_id=org.id)


def get_org_object_or_404(model, object_id):
    obj = org_query(model).filter_by(id=object_id).first()
    if obj is None:
        raise NotFound(f"{model.__name__} not found.")
    return obj
