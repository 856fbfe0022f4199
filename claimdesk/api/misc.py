"""Read-mostly endpoints: health, ZIP insight, geometry, report registry, dashboard, trade profile."""

from __future__ import annotations

from flask import jsonify, request

from ..errors import InvalidArgument, NotFound
from ..geometry import bbox_to_ellipse
from ..pricing import get_zip_insight
from ..reports.templates import PACKET_LAYOUTS, REPORT_SECTIONS, get_template, list_templates
from ..services import dashboard_service, trades_service
from ..system.health import health_report
from ..tenancy import current_org, current_user, require_auth, require_permission
from . import api_bp
from .helpers import json_body, ok


@api_bp.route("/health", methods=["GET"])
def health():
    report = health_report()
    return jsonify({"ok": report["ok"], "health": report}), 200 if report["ok"] else 503


@api_bp.route("/zip-insight", methods=["GET"])
@require_auth
def zip_insight():
    insight = get_zip_insight(
        request.args.get("zip"),
        request.args.get("category"),
        request.args.get("subtype"),
    )
    if insight is None:
        raise InvalidArgument("A ZIP code of at least 5 characters is required.")
    return ok(insight=insight.to_dict())


@api_bp.route("/geometry/ellipse", methods=["GET"])
@require_auth
def geometry_ellipse():
    values = {}
    for name in ("x", "y", "width", "height"):
        raw = request.args.get(name)
        try:
            values[name] = float(raw)
        except (TypeError, ValueError):
            raise InvalidArgument(f"'{name}' must be a number.")
    ellipse = bbox_to_ellipse(values["x"], values["y"], values["width"], values["height"])
    return ok(ellipse=ellipse.to_dict(), svg=ellipse.to_svg())


@api_bp.route("/report-templates", methods=["GET"])
@require_permission("reports:view")
def report_templates():
    category = (request.args.get("category") or "").strip() or None
    return ok(
        templates=list_templates(category),
        layouts=PACKET_LAYOUTS,
        sections=[s.to_dict() for s in REPORT_SECTIONS],
    )


@api_bp.route("/report-templates/<template_id>", methods=["GET"])
@require_permission("reports:view")
def report_template(template_id: str):
    template = get_template(template_id)
    return ok(template=template, sections=PACKET_LAYOUTS.get(template["layout_key"], []))


@api_bp.route("/dashboard", methods=["GET"])
@require_permission("claims:view")
def dashboard():
    summary = dashboard_service.dashboard_summary(current_org())
    for item in summary["recent_activity"]:
        item["created_at"] = item["created_at"].isoformat() if item["created_at"] else None
    return ok(dashboard=summary)


@api_bp.route("/trades/profile", methods=["GET"])
@require_auth
def get_trade_profile():
    profile = current_user().trade_profile
    if profile is None:
        raise NotFound("No trade profile yet.")
    return ok(profile=trades_service.profile_to_dict(profile))


@api_bp.route("/trades/profile", methods=["PUT"])
@require_auth
def put_trade_profile():
    data = json_body()
    data.pop("user_id", None)
    profile = trades_service.upsert_profile(current_user(), current_org(), data)
    return ok(profile=trades_service.profile_to_dict(profile))
