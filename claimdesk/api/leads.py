from __future__ import annotations

from flask import request

from ..errors import InvalidArgument
from ..models import Lead
from ..services import claims_service, leads_service
from ..tenancy import current_org, current_user, get_org_object_or_404, require_permission
from ..utils.validation import as_text
from . import api_bp
from .helpers import json_body, ok


@api_bp.route("/leads", methods=["GET"])
@require_permission("leads:view")
def list_leads():
    page = leads_service.list_leads(
        current_org(),
        stage=(request.args.get("stage") or "").strip() or None,
        source=(request.args.get("source") or "").strip() or None,
        limit=request.args.get("limit") or 50,
        offset=request.args.get("offset") or 0,
    )
    return ok(leads=[leads_service.lead_to_dict(l) for l in page["leads"]], pagination=page["pagination"])


@api_bp.route("/leads", methods=["POST"])
@require_permission("leads:create")
def create_lead():
    lead = leads_service.create_lead(current_org(), json_body(), current_user())
    return ok(201, lead=leads_service.lead_to_dict(lead))


@api_bp.route("/leads/<int:lead_id>/convert", methods=["POST"])
@require_permission("claims:create")
def convert_lead(lead_id: int):
    lead = get_org_object_or_404(Lead, lead_id)
    data = json_body()
    claim_number = as_text(data.pop("claim_number", None), "'claim_number'")
    if not claim_number:
        raise InvalidArgument("claim_number is required.")
    data.pop("user_id", None)
    claim = leads_service.convert_lead_to_claim(lead, current_user(), claim_number, extra=data or None)
    return ok(201, claim=claims_service.claim_to_dict(claim, detail=True), lead=leads_service.lead_to_dict(lead))
