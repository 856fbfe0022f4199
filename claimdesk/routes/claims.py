"""Claim pages: list, create/edit, detail, stage changes and packet download."""

from __future__ import annotations

import io
import os

from flask import flash, redirect, render_template, request, send_file, url_for

from ..depreciation import payout_stage, summarize_payout
from ..errors import ApiError
from ..models import Claim
from ..pricing import CLAIM_CATEGORIES
from ..reports.packet import build_packet_by_layout
from ..reports.templates import PACKET_LAYOUTS
from ..services import claims_service
from ..tenancy import current_org, current_user, get_org_object_or_404, require_permission
from . import bp
from .helpers import form_data

CLAIM_FORM_FIELDS = (
    "claim_number", "title", "insured_name", "insured_email", "insured_phone",
    "carrier", "policy_number", "adjuster_name", "adjuster_email",
    "category", "subtype", "loss_type", "date_of_loss", "description", "deductible",
    "street", "city", "state", "zip_code", "property_type", "roof_type", "year_built",
)


def _claim_form_context(claim=None, values=None):
    return {
        "claim": claim,
        "values": values or {},
        "categories": CLAIM_CATEGORIES,
    }


@bp.route("/claims")
@require_permission("claims:view")
def claims_list():
    stage = (request.args.get("stage") or "").strip() or None
    q = (request.args.get("q") or "").strip() or None
    if stage not in claims_service.ALL_STAGES:
        stage = None
    claims = claims_service.list_claims(current_org(), stage=stage, q=q)
    return render_template(
        "pages/claims_list.html",
        claims=claims,
        stage=stage,
        q=q or "",
        stages=claims_service.ALL_STAGES,
    )


@bp.route("/claims/new", methods=["GET", "POST"])
@require_permission("claims:create")
def claim_new():
    if request.method == "POST":
        values = form_data(*CLAIM_FORM_FIELDS)
        try:
            claim = claims_service.create_claim(current_org(), current_user(), values)
        except ApiError as e:
            flash(e.message, "error")
            return render_template("pages/claim_form.html", **_claim_form_context(values=values)), e.status
        flash(f"Claim {claim.claim_number} created.", "success")
        return redirect(url_for("main.claim_detail", claim_id=claim.id))

    return render_template("pages/claim_form.html", **_claim_form_context())


@bp.route("/claims/<int:claim_id>")
@require_permission("claims:view")
def claim_detail(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    payout = summarize_payout(
        claim.depreciation_items, claim.supplements, deductible=claim.deductible, acv_paid=claim.acv_paid
    )
    return render_template(
        "pages/claim_detail.html",
        claim=claim,
        payout=payout,
        payout_stage=payout_stage(claim),
        stages=claims_service.ALL_STAGES,
        layouts=sorted(PACKET_LAYOUTS),
    )


@bp.route("/claims/<int:claim_id>/edit", methods=["GET", "POST"])
@require_permission("claims:edit")
def claim_edit(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    if request.method == "POST":
        values = form_data(*CLAIM_FORM_FIELDS)
        try:
            claims_service.update_claim(claim, values, current_user())
        except ApiError as e:
            flash(e.message, "error")
            return render_template("pages/claim_form.html", **_claim_form_context(claim, values)), e.status
        flash("Claim updated.", "success")
        return redirect(url_for("main.claim_detail", claim_id=claim.id))

    return render_template("pages/claim_form.html", **_claim_form_context(claim))


@bp.route("/claims/<int:claim_id>/stage", methods=["POST"])
@require_permission("claims:edit")
def claim_stage(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    new_stage = (request.form.get("stage") or "").strip()
    note = (request.form.get("note") or "").strip() or None
    try:
        claims_service.change_stage(claim, new_stage, current_user(), note=note)
        flash(f"Stage set to {new_stage.replace('_', ' ')}.", "success")
    except ApiError as e:
        flash(e.message, "error")
    return redirect(url_for("main.claim_detail", claim_id=claim.id))


@bp.route("/claims/<int:claim_id>/notes", methods=["POST"])
@require_permission("claims:edit")
def claim_add_note(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    try:
        claims_service.add_note(claim, request.form.get("message"), current_user())
    except ApiError as e:
        flash(e.message, "error")
    return redirect(url_for("main.claim_detail", claim_id=claim.id))


@bp.route("/claims/<int:claim_id>/delete", methods=["POST"])
@require_permission("claims:delete")
def claim_delete(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    number = claim.claim_number
    claims_service.delete_claim(claim)
    flash(f"Claim {number} deleted.", "success")
    return redirect(url_for("main.claims_list"))


@bp.route("/claims/<int:claim_id>/packet", methods=["POST"])
@require_permission("reports:create")
def claim_packet(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    layout = (request.form.get("layout") or "standard").strip()
    sections = request.form.getlist("sections") or None
    try:
        result = build_packet_by_layout(claim, layout, sections=sections, user=current_user())
    except ApiError as e:
        flash(e.message, "error")
        return redirect(url_for("main.claim_detail", claim_id=claim.id))

    return send_file(
        io.BytesIO(result.pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=os.path.basename(result.report.filename_stored),
    )
