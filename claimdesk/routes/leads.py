from __future__ import annotations

from flask import flash, redirect, render_template, request, url_for

from ..errors import ApiError
from ..models import Lead
from ..services import leads_service
from ..tenancy import current_org, current_user, get_org_object_or_404, require_permission
from . import bp
from .helpers import form_data

PAGE_SIZE = 50


@bp.route("/leads")
@require_permission("leads:view")
def leads_list():
    stage = (request.args.get("stage") or "").strip() or None
    if stage not in leads_service.LEAD_STAGES:
        stage = None
    try:
        offset = max(int(request.args.get("offset") or 0), 0)
    except ValueError:
        offset = 0
    page = leads_service.list_leads(current_org(), stage=stage, limit=PAGE_SIZE, offset=offset)
    return render_template(
        "pages/leads_list.html",
        leads=page["leads"],
        pagination=page["pagination"],
        stage=stage,
        stages=leads_service.LEAD_STAGES,
    )


@bp.route("/leads/new", methods=["GET", "POST"])
@require_permission("leads:create")
def lead_new():
    if request.method == "POST":
        values = form_data(
            "title", "description", "source", "stage", "temperature", "value", "follow_up_date",
            "street", "city", "state", "zip_code", "roof_type",
        )
        contact = form_data("first_name", "last_name", "email", "phone")
        if any(contact.values()):
            values["contact"] = contact
        try:
            lead = leads_service.create_lead(current_org(), values, current_user())
        except ApiError as e:
            flash(e.message, "error")
            return render_template(
                "pages/lead_form.html",
                values=values,
                contact=contact,
                stages=leads_service.LEAD_STAGES,
                temperatures=leads_service.LEAD_TEMPERATURES,
            ), e.status
        flash(f"Lead '{lead.title}' created.", "success")
        return redirect(url_for("main.leads_list"))

    return render_template(
        "pages/lead_form.html",
        values={},
        contact={},
        stages=leads_service.LEAD_STAGES,
        temperatures=leads_service.LEAD_TEMPERATURES,
    )


@bp.route("/leads/<int:lead_id>/convert", methods=["POST"])
@require_permission("claims:create")
def lead_convert(lead_id: int):
    lead = get_org_object_or_404(Lead, lead_id)
    claim_number = (request.form.get("claim_number") or "").strip()
    try:
        claim = leads_service.convert_lead_to_claim(lead, current_user(), claim_number)
    except ApiError as e:
        flash(e.message, "error")
        return redirect(url_for("main.leads_list"))
    flash(f"Lead converted to claim {claim.claim_number}.", "success")
    return redirect(url_for("main.claim_detail", claim_id=claim.id))
