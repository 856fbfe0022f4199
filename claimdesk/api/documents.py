"""PDF endpoints: layout packets, appeal letters, depreciation exports, carrier email."""

from __future__ import annotations

import io
import os

from flask import send_file, url_for

from ..depreciation import payout_stage, summarize_payout
from ..generators.appeal import generate_appeal
from ..models import Claim, GeneratedReport
from ..reports.packet import build_appeal_pdf, build_depreciation_pdf, build_packet_by_layout
from ..services import claims_service, email_service
from ..storage import resolve_path
from ..errors import FailedPrecondition, InvalidArgument, NotFound
from ..tenancy import current_user, get_org_object_or_404, require_permission
from . import api_bp
from .helpers import flag, json_body, ok, text_field


def _pdf_response(result):
    return send_file(
        io.BytesIO(result.pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=os.path.basename(result.report.filename_stored),
    )


def _report_dict(result) -> dict:
    return {
        "report_id": result.report.id,
        "page_count": result.page_count,
        "sections": result.sections,
        "url": url_for("api.download_report", claim_id=result.report.claim_id, report_id=result.report.id),
    }


def _payout(claim):
    return summarize_payout(
        claim.depreciation_items, claim.supplements, deductible=claim.deductible, acv_paid=claim.acv_paid
    )


@api_bp.route("/claims/<int:claim_id>/packet", methods=["POST"])
@require_permission("reports:create")
def claim_packet(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    data = json_body()
    sections = data.get("sections")
    if sections is not None and (
        not isinstance(sections, list) or not all(isinstance(s, str) for s in sections)
    ):
        raise InvalidArgument("'sections' must be a list of section keys.")
    result = build_packet_by_layout(
        claim, text_field(data, "layout", "standard"), sections=sections, user=current_user()
    )
    if flag(data.get("as_url")):
        return ok(201, **_report_dict(result))
    return _pdf_response(result)


@api_bp.route("/claims/<int:claim_id>/appeal/pdf", methods=["POST"])
@require_permission("reports:create")
def claim_appeal_pdf(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    data = json_body()
    letter = generate_appeal(
        claim,
        data.get("denial_reason") or "",
        denial_details=data.get("denial_details"),
        tone=text_field(data, "tone", "professional").lower(),
    )
    result = build_appeal_pdf(claim, letter, user=current_user())
    if flag(data.get("as_url")):
        return ok(201, **_report_dict(result))
    return _pdf_response(result)


@api_bp.route("/claims/<int:claim_id>/reports/<int:report_id>", methods=["GET"])
@require_permission("reports:view")
def download_report(claim_id: int, report_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    report = get_org_object_or_404(GeneratedReport, report_id)
    if report.claim_id != claim.id:
        raise NotFound("Report not found.")
    path = resolve_path(report.filename_stored)
    return send_file(path, mimetype="application/pdf", as_attachment=True, download_name=path.name)


@api_bp.route("/claims/<int:claim_id>/depreciation", methods=["GET"])
@require_permission("claims:view")
def list_depreciation(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    return ok(
        items=[claims_service.depreciation_item_to_dict(i) for i in claim.depreciation_items],
        summary=_payout(claim).to_dict(),
        stage=payout_stage(claim),
    )


@api_bp.route("/claims/<int:claim_id>/depreciation", methods=["POST"])
@require_permission("claims:edit")
def add_depreciation(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    item = claims_service.add_depreciation_item(claim, json_body(), current_user())
    return ok(201, item=claims_service.depreciation_item_to_dict(item), summary=_payout(claim).to_dict())


@api_bp.route("/claims/<int:claim_id>/depreciation/export", methods=["POST"])
@require_permission("reports:create")
def export_depreciation(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    data = json_body()
    result = build_depreciation_pdf(claim, _payout(claim), user=current_user())
    if flag(data.get("as_url")):
        return ok(201, **_report_dict(result))
    return _pdf_response(result)


@api_bp.route("/claims/<int:claim_id>/send-to-carrier", methods=["POST"])
@require_permission("reports:create")
def send_to_carrier(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    data = json_body()
    report = (
        GeneratedReport.query.filter_by(claim_id=claim.id, kind="packet")
        .order_by(GeneratedReport.created_at.desc(), GeneratedReport.id.desc())
        .first()
    )
    if report is None:
        raise FailedPrecondition("Generate a packet before sending it to the carrier.")
    path = resolve_path(report.filename_stored)
    sent = email_service.send_packet_to_carrier(
        claim,
        path.read_bytes(),
        path.name,
        to_email=data.get("to"),
        subject=data.get("subject"),
        body=data.get("body"),
        user=current_user(),
    )
    return ok(sent=sent)
