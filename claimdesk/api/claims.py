from __future__ import annotations

from flask import request

from ..models import Claim
from ..services import claims_service
from ..tenancy import current_org, current_user, get_org_object_or_404, require_permission
from . import api_bp
from .helpers import json_body, ok


@api_bp.route("/claims", methods=["GET"])
@require_permission("claims:view")
def list_claims():
    claims = claims_service.list_claims(
        current_org(),
        stage=(request.args.get("stage") or "").strip() or None,
        q=(request.args.get("q") or "").strip() or None,
    )
    return ok(claims=[claims_service.claim_to_dict(c) for c in claims])


@api_bp.route("/claims", methods=["POST"])
@require_permission("claims:create")
def create_claim():
    claim = claims_service.create_claim(current_org(), current_user(), json_body())
    return ok(201, claim=claims_service.claim_to_dict(claim, detail=True))


@api_bp.route("/claims/<int:claim_id>", methods=["GET"])
@require_permission("claims:view")
def get_claim(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    return ok(claim=claims_service.claim_to_dict(claim, detail=True))


@api_bp.route("/claims/<int:claim_id>", methods=["PATCH"])
@require_permission("claims:edit")
def update_claim(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    claims_service.update_claim(claim, json_body(), current_user())
    return ok(claim=claims_service.claim_to_dict(claim, detail=True))


@api_bp.route("/claims/<int:claim_id>", methods=["DELETE"])
@require_permission("claims:delete")
def delete_claim(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    claims_service.delete_claim(claim)
    return ok(deleted=claim_id)


@api_bp.route("/claims/<int:claim_id>/stage", methods=["POST"])
@require_permission("claims:edit")
def change_stage(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    data = json_body()
    claims_service.change_stage(claim, data.get("stage"), current_user(), note=data.get("note"))
    return ok(claim=claims_service.claim_to_dict(claim))


@api_bp.route("/claims/<int:claim_id>/notes", methods=["POST"])
@require_permission("claims:edit")
def add_note(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    entry = claims_service.add_note(claim, json_body().get("message"), current_user())
    return ok(201, activity={"id": entry.id, "kind": entry.kind, "message": entry.message})


@api_bp.route("/claims/<int:claim_id>/estimates", methods=["POST"])
@require_permission("claims:edit")
def add_estimate(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    estimate = claims_service.add_estimate(claim, json_body(), current_user())
    return ok(201, estimate={"id": estimate.id, "total_amount": estimate.total_amount, "line_items": estimate.line_items})


@api_bp.route("/claims/<int:claim_id>/supplements", methods=["POST"])
@require_permission("claims:edit")
def add_supplement(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    s = claims_service.add_supplement(claim, json_body(), current_user())
    return ok(201, supplement={"id": s.id, "item_description": s.item_description, "amount": s.amount, "status": s.status})
