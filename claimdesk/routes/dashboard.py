from flask import render_template

from ..services import dashboard_service
from ..tenancy import current_org, require_auth
from . import bp


@bp.route("/")
@require_auth
def dashboard():
    summary = dashboard_service.dashboard_summary(current_org())
    return render_template("pages/dashboard.html", summary=summary)
