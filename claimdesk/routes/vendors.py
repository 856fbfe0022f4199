from flask import abort, render_template, request

from ..integrations.vendors import VENDOR_CATEGORIES, ensure_seed_vendors, vendors_near
from ..models import Vendor
from ..tenancy import require_permission
from . import bp


@bp.route("/vendors")
@require_permission("vendors:view")
def vendors_list():
    ensure_seed_vendors()
    zip_code = (request.args.get("zip") or "").strip() or None
    category = (request.args.get("category") or "").strip() or None
    vendors = vendors_near(zip_code)
    if category:
        vendors = [v for v in vendors if category in v.categories]
    return render_template(
        "pages/vendors_list.html",
        vendors=vendors,
        zip_code=zip_code or "",
        category=category,
        categories=VENDOR_CATEGORIES,
    )


@bp.route("/vendors/<slug>")
@require_permission("vendors:view")
def vendor_detail(slug: str):
    vendor = Vendor.query.filter_by(slug=slug).first()
    if vendor is None:
        abort(404)
    return render_template("pages/vendor_detail.html", vendor=vendor)
