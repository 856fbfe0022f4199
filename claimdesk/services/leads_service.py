"""Lead intake, listing and conversion into claims."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from ..errors import FailedPrecondition, InvalidArgument
from ..extensions import db
from ..models import Claim, ClaimActivity, Contact, Lead, Organization, Property
from ..utils.validation import (
    is_valid_email,
    is_valid_phone,
    is_valid_state,
    is_valid_zip,
    normalize_phone,
    parse_date,
    parse_money,
    validate_fields,
)
from .claims_service import PROPERTY_FIELDS, create_claim

logger = logging.getLogger(__name__)

LEAD_STAGES = ["new", "contacted", "qualified", "proposal", "won", "lost"]
LEAD_TEMPERATURES = ["cold", "warm", "hot"]
MAX_PAGE_SIZE = 200


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _build_contact(org, payload: Dict[str, Any]) -> Contact:
    first = _clean(payload.get("first_name"))
    last = _clean(payload.get("last_name"))
    if not first or not last:
        raise InvalidArgument("Contact first and last name are required.")
    email = _clean(payload.get("email"))
    phone = _clean(payload.get("phone"))
    errors = validate_fields({
        "Contact email": (email, is_valid_email),
        "Contact phone": (phone, is_valid_phone),
    })
    if errors:
        raise InvalidArgument("; ".join(errors), details=errors)
    return Contact(
        org_id=org.id,
        first_name=first,
        last_name=last,
        email=email,
        phone=normalize_phone(phone) if phone else None,
        company=_clean(payload.get("company")),
        role=_clean(payload.get("role")) or "Homeowner",
    )


def _build_property(org, data: Dict[str, Any]) -> Optional[Property]:
    if not any(_clean(data.get(f)) for f in PROPERTY_FIELDS):
        return None
    errors = validate_fields({
        "ZIP code": (_clean(data.get("zip_code")), is_valid_zip),
        "State": (_clean(data.get("state")), is_valid_state),
    })
    if errors:
        raise InvalidArgument("; ".join(errors), details=errors)
    prop = Property(org_id=org.id)
    for field in PROPERTY_FIELDS:
        value = _clean(data.get(field))
        if field == "year_built" and value is not None:
            try:
                value = int(value)
            except ValueError:
                raise InvalidArgument("Year built must be a number.")
        if field == "state" and value:
            value = value.upper()
        setattr(prop, field, value)
    return prop


def create_lead(org, data: Dict[str, Any], user=None) -> Lead:
    title = _clean(data.get("title"))
    if not title:
        raise InvalidArgument("Lead title is required.")

    stage = (_clean(data.get("stage")) or "new").lower()
    if stage not in LEAD_STAGES:
        raise InvalidArgument(f"Unknown lead stage '{stage}'.")
    temperature = (_clean(data.get("temperature")) or "warm").lower()
    if temperature not in LEAD_TEMPERATURES:
        raise InvalidArgument(f"Unknown lead temperature '{temperature}'.")

    try:
        value = parse_money(data.get("value"))
        follow_up = parse_date(data.get("follow_up_date"))
    except ValueError as e:
        raise InvalidArgument(str(e))

    lead = Lead(
        org_id=org.id,
        title=title,
        description=_clean(data.get("description")),
        source=_clean(data.get("source")),
        stage=stage,
        temperature=temperature,
        value=value,
        follow_up_date=follow_up,
        assigned_to_id=user.id if user is not None else None,
    )

    materials = data.get("ai_materials")
    if isinstance(materials, list):
        lead.ai_materials_json = json.dumps([str(m) for m in materials if m])

    contact_payload = data.get("contact")
    if isinstance(contact_payload, dict) and contact_payload:
        lead.contact = _build_contact(org, contact_payload)
    prop = _build_property(org, data)
    if prop is not None:
        lead.property = prop

    db.session.add(lead)
    db.session.commit()
    logger.info("Created lead %s (org=%s)", lead.id, org.id)
    return lead


def list_leads(org, stage: Optional[str] = None, source: Optional[str] = None,
               limit: int = 50, offset: int = 0) -> Dict[str, Any]:
    try:
        limit = int(limit)
        offset = int(offset)
    except (TypeError, ValueError):
        raise InvalidArgument("limit and offset must be integers.")
    if limit < 1 or offset < 0:
        raise InvalidArgument("limit must be positive and offset non-negative.")
    limit = min(limit, MAX_PAGE_SIZE)

    query = Lead.query.filter_by(org_id=org.id)
    if stage:
        if stage not in LEAD_STAGES:
            raise InvalidArgument(f"Unknown lead stage '{stage}'.")
        query = query.filter(Lead.stage == stage)
    if source:
        query = query.filter(Lead.source == source)

    total = query.count()
    rows = query.order_by(Lead.created_at.desc(), Lead.id.desc()).offset(offset).limit(limit).all()
    return {
        "leads": rows,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(rows) < total,
        },
    }


def convert_lead_to_claim(lead: Lead, user, claim_number: str, extra: Optional[Dict[str, Any]] = None) -> Claim:
    if lead.claim_id:
        raise FailedPrecondition("Lead has already been converted to a claim.")
    if lead.stage == "lost":
        raise FailedPrecondition("Lost leads cannot be converted.")

    contact = lead.contact
    data: Dict[str, Any] = {
        "claim_number": claim_number,
        "title": lead.title,
        "description": lead.description,
        "insured_name": contact.full_name if contact else (extra or {}).get("insured_name"),
        "insured_email": contact.email if contact else None,
        "insured_phone": contact.phone if contact else None,
    }
    data.update(extra or {})

    org = db.session.get(Organization, lead.org_id)
    claim = create_claim(org, user, data)
    if lead.property is not None and claim.property is None:
        claim.property = lead.property

    lead.claim_id = claim.id
    lead.stage = "won"
    db.session.add(
        ClaimActivity(
            org_id=claim.org_id,
            claim_id=claim.id,
            user_id=user.id if user is not None else None,
            kind="lead",
            message=f"Converted from lead '{lead.title}'",
        )
    )
    db.session.commit()
    logger.info("Converted lead %s to claim %s", lead.id, claim.id)
    return claim


def lead_to_dict(lead: Lead) -> Dict[str, Any]:
    contact = lead.contact
    return {
        "id": lead.id,
        "title": lead.title,
        "description": lead.description,
        "source": lead.source,
        "stage": lead.stage,
        "temperature": lead.temperature,
        "value": lead.value,
        "follow_up_date": lead.follow_up_date.isoformat() if lead.follow_up_date else None,
        "contact": {
            "first_name": contact.first_name,
            "last_name": contact.last_name,
            "email": contact.email,
            "phone": contact.phone,
        } if contact else None,
        "address": lead.property.full_address if lead.property else None,
        "claim_id": lead.claim_id,
        "ai_summary": lead.ai_summary,
        "ai_urgency_score": lead.ai_urgency_score,
        "ai_materials": lead.ai_materials,
        "created_at": lead.created_at.isoformat() if lead.created_at else None,
    }
