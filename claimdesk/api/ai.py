"""AI actions on a claim: one endpoint, dispatched on `action`."""

from __future__ import annotations

from flask import current_app

from ..errors import InvalidArgument, NotFound
from ..extensions import db
from ..generators.appeal import generate_appeal
from ..generators.carrier_summary import format_packet_for_delivery, generate_carrier_summary
from ..generators.chat import answer_claim_question
from ..generators.code_compliance import format_code_requirements_for_carrier, generate_code_summary
from ..generators.narrative import generate_narrative
from ..models import Claim, ClaimActivity, Supplement
from ..tenancy import current_user, get_org_object_or_404, require_permission
from . import api_bp
from .helpers import json_body, ok, text_field

AI_ACTIONS = ("narrative", "appeal", "code_summary", "carrier_summary", "chat")


def _log(claim, message: str) -> None:
    user = current_user()
    db.session.add(
        ClaimActivity(
            org_id=claim.org_id,
            claim_id=claim.id,
            user_id=user.id if user else None,
            kind="ai",
            message=message,
        )
    )
    db.session.commit()


def _narrative(claim, data):
    narrative = generate_narrative(claim, audience=text_field(data, "audience", "adjuster").lower())
    _log(claim, f"AI narrative generated ({narrative.audience}, {narrative.model_source})")
    return {"narrative": narrative.to_dict()}


def _appeal(claim, data):
    supplement = None
    if data.get("supplement_id") not in (None, ""):
        supplement = db.session.get(Supplement, data.get("supplement_id"))
        if supplement is None or supplement.claim_id != claim.id:
            raise NotFound("Supplement not found.")
    letter = generate_appeal(
        claim,
        data.get("denial_reason") or "",
        denial_details=data.get("denial_details"),
        tone=text_field(data, "tone", "professional").lower(),
        supplement=supplement,
    )
    _log(claim, f"Appeal letter drafted ({letter.tone}, {letter.model_source})")
    return {"appeal": letter.to_dict()}


def _code_summary(claim, data):
    summary = generate_code_summary(claim)
    return {
        "code_summary": summary.to_dict(),
        "carrier_text": format_code_requirements_for_carrier(summary),
    }


def _carrier_summary(claim, data):
    packet = generate_carrier_summary(claim)
    _log(claim, f"Carrier summary generated (urgency {packet.urgency})")
    return {"carrier_summary": packet.to_dict(), "delivery_text": format_packet_for_delivery(packet)}


def _chat(claim, data):
    return {"chat": answer_claim_question(claim, data.get("message") or "")}


_HANDLERS = {
    "narrative": _narrative,
    "appeal": _appeal,
    "code_summary": _code_summary,
    "carrier_summary": _carrier_summary,
    "chat": _chat,
}


@api_bp.route("/claims/<int:claim_id>/ai/actions", methods=["POST"])
@require_permission("claims:edit")
def claim_ai_action(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    data = json_body()
    action = text_field(data, "action").lower()
    handler = _HANDLERS.get(action)
    if handler is None:
        raise InvalidArgument(f"Unknown action '{action}'. Use one of: {', '.join(AI_ACTIONS)}.")
    current_app.logger.info("AI action %s on claim %s", action, claim.id)
    return ok(action=action, **handler(claim, data))
