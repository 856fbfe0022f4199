from flask import render_template, request

from ..reports.templates import PACKET_LAYOUTS, REPORT_SECTIONS, TEMPLATE_CATEGORIES, list_templates
from ..tenancy import require_permission
from . import bp


@bp.route("/reports/templates")
@require_permission("reports:view")
def report_templates():
    category = (request.args.get("category") or "").strip() or None
    return render_template(
        "pages/report_templates.html",
        templates=list_templates(category),
        category=category,
        categories=TEMPLATE_CATEGORIES,
        layouts=PACKET_LAYOUTS,
        sections={s.key: s for s in REPORT_SECTIONS},
    )
