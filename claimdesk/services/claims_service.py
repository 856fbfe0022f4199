"""Claim CRUD and lifecycle transitions.

Routes (pages and JSON) call into this module so validation, stage rules and
timeline entries live in one place.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..errors import FailedPrecondition, InvalidArgument
from ..extensions import db
from ..depreciation import compute_line_item
from ..models import Claim, ClaimActivity, DepreciationItem, Estimate, Property, Supplement
from ..pricing import CLAIM_CATEGORIES
from ..utils.validation import (
    as_text,
    is_valid_email,
    is_valid_phone,
    is_valid_state,
    is_valid_zip,
    normalize_phone,
    parse_date,
    parse_money,
    validate_fields,
)

logger = logging.getLogger(__name__)

LIFECYCLE_STAGES = ["inspection", "adjuster_review", "approved", "paid"]
SIDE_STAGES = ["denied", "closed"]
ALL_STAGES = LIFECYCLE_STAGES + SIDE_STAGES
REOPEN_STAGES = {"inspection", "adjuster_review"}

SUPPLEMENT_STATUSES = ["draft", "submitted", "approved", "denied"]

EDITABLE_FIELDS = [
    "title", "insured_name", "insured_email", "insured_phone", "carrier", "policy_number",
    "adjuster_name", "adjuster_email", "category", "subtype", "loss_type", "description",
]
PROPERTY_FIELDS = ["street", "city", "state", "zip_code", "property_type", "roof_type", "year_built"]


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _validate_common(data: Dict[str, Any]) -> None:
    errors = validate_fields({
        "Insured email": (_clean(data.get("insured_email")), is_valid_email),
        "Adjuster email": (_clean(data.get("adjuster_email")), is_valid_email),
        "Insured phone": (_clean(data.get("insured_phone")), is_valid_phone),
        "ZIP code": (_clean(data.get("zip_code")), is_valid_zip),
        "State": (_clean(data.get("state")), is_valid_state),
    })
    category = _clean(data.get("category"))
    if category and category not in CLAIM_CATEGORIES:
        errors.append("Category is invalid")
    if errors:
        raise InvalidArgument("; ".join(errors), details=errors)


def _parse_date_field(data: Dict[str, Any], key: str, label: str):
    try:
        return parse_date(data.get(key))
    except ValueError:
        raise InvalidArgument(f"{label} must be YYYY-MM-DD or MM/DD/YYYY.")


def _parse_money_field(data: Dict[str, Any], key: str, label: str):
    try:
        amount = parse_money(data.get(key))
    except ValueError:
        raise InvalidArgument(f"{label} must be a number.")
    if amount is not None and amount < 0:
        raise InvalidArgument(f"{label} cannot be negative.")
    return amount


def _apply_property(claim: Claim, data: Dict[str, Any]) -> None:
    if not any(_clean(data.get(f)) for f in PROPERTY_FIELDS):
        return
    prop = claim.property
    if prop is None:
        prop = Property(org_id=claim.org_id)
        claim.property = prop
    for field in PROPERTY_FIELDS:
        if field not in data:
            continue
        value = _clean(data.get(field))
        if field == "year_built" and value is not None:
            try:
                value = int(value)
            except ValueError:
                raise InvalidArgument("Year built must be a number.")
        if field == "state" and value:
            value = value.upper()
        setattr(prop, field, value)


def _log(claim: Claim, kind: str, message: str, user=None) -> ClaimActivity:
    entry = ClaimActivity(
        org_id=claim.org_id,
        claim=claim,
        user_id=user.id if user is not None else None,
        kind=kind,
        message=message,
    )
    db.session.add(entry)
    return entry


def _commit_or_invalid(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise InvalidArgument(message)


# ---- create / update / delete ----

def create_claim(org, user, data: Dict[str, Any]) -> Claim:
    insured = _clean(data.get("insured_name"))
    number = _clean(data.get("claim_number"))
    if not insured:
        raise InvalidArgument("Insured name is required.")
    if not number:
        raise InvalidArgument("Claim number is required.")
    _validate_common(data)

    if Claim.query.filter_by(org_id=org.id, claim_number=number).first():
        raise InvalidArgument(f"Claim number {number} already exists.")

    claim = Claim(
        org_id=org.id,
        claim_number=number,
        insured_name=insured,
        created_by_id=user.id if user is not None else None,
        lifecycle_stage="inspection",
        date_of_loss=_parse_date_field(data, "date_of_loss", "Date of loss"),
    )
    for field in EDITABLE_FIELDS:
        if field in ("insured_name",):
            continue
        if field in data:
            setattr(claim, field, _clean(data.get(field)))
    if claim.insured_phone:
        claim.insured_phone = normalize_phone(claim.insured_phone)
    if not claim.category:
        claim.category = "roofing"
    deductible = _parse_money_field(data, "deductible", "Deductible")
    if deductible is not None:
        claim.deductible = deductible

    db.session.add(claim)
    _apply_property(claim, data)
    _log(claim, "created", f"Claim {number} created", user)
    _commit_or_invalid(f"Claim number {number} already exists.")
    logger.info("Created claim %s (org=%s)", claim.id, org.id)
    return claim


def update_claim(claim: Claim, data: Dict[str, Any], user=None) -> Claim:
    _validate_common(data)
    if "insured_name" in data and not _clean(data.get("insured_name")):
        raise InvalidArgument("Insured name is required.")
    if "claim_number" in data:
        number = _clean(data.get("claim_number"))
        if not number:
            raise InvalidArgument("Claim number is required.")
        clash = Claim.query.filter(
            Claim.org_id == claim.org_id, Claim.claim_number == number, Claim.id != claim.id
        ).first()
        if clash:
            raise InvalidArgument(f"Claim number {number} already exists.")
        claim.claim_number = number

    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(claim, field, _clean(data.get(field)))
    if claim.insured_phone:
        claim.insured_phone = normalize_phone(claim.insured_phone)
    if "date_of_loss" in data:
        claim.date_of_loss = _parse_date_field(data, "date_of_loss", "Date of loss")
    for key, label in (("deductible", "Deductible"), ("acv_paid", "ACV paid")):
        if key in data:
            setattr(claim, key, _parse_money_field(data, key, label))
    _apply_property(claim, data)
    _log(claim, "updated", "Claim details updated", user)
    _commit_or_invalid("Claim could not be saved.")
    return claim


def delete_claim(claim: Claim) -> None:
    claim_id, org_id = claim.id, claim.org_id
    for lead in claim.leads:
        lead.claim_id = None
    db.session.delete(claim)
    db.session.commit()
    logger.info("Deleted claim %s (org=%s)", claim_id, org_id)


def list_claims(org, stage: Optional[str] = None, q: Optional[str] = None) -> List[Claim]:
    query = Claim.query.filter_by(org_id=org.id)
    if stage:
        if stage not in ALL_STAGES:
            raise InvalidArgument(f"Unknown stage '{stage}'.")
        query = query.filter(Claim.lifecycle_stage == stage)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(
            or_(Claim.claim_number.ilike(like), Claim.insured_name.ilike(like), Claim.carrier.ilike(like))
        )
    return query.order_by(Claim.id.desc()).all()


# ---- lifecycle ----

def can_transition(current: str, new: str) -> bool:
    if new not in ALL_STAGES or new == current:
        return False
    if current == "closed":
        return False
    if current == "paid":
        return new == "closed"
    if new in SIDE_STAGES:
        return True
    if current == "denied":
        return new in REOPEN_STAGES
    cur_idx = LIFECYCLE_STAGES.index(current)
    new_idx = LIFECYCLE_STAGES.index(new)
    if new_idx > cur_idx:
        return True
    return new in REOPEN_STAGES


def change_stage(claim: Claim, new_stage: str, user=None, note: Optional[str] = None) -> Claim:
    new_stage = as_text(new_stage, "Stage").lower()
    note = as_text(note, "Note")
    if new_stage not in ALL_STAGES:
        raise InvalidArgument(f"Unknown stage '{new_stage}'. Use one of: {', '.join(ALL_STAGES)}.")
    old = claim.lifecycle_stage
    if not can_transition(old, new_stage):
        raise FailedPrecondition(f"Cannot move a claim from '{old}' to '{new_stage}'.")
    claim.lifecycle_stage = new_stage
    message = f"Stage changed: {old} -> {new_stage}"
    if note:
        message += f" ({note})"
    _log(claim, "stage", message, user)
    db.session.commit()
    return claim


def add_note(claim: Claim, message: str, user=None) -> ClaimActivity:
    message = as_text(message, "Note")
    if not message:
        raise InvalidArgument("Note text is required.")
    entry = _log(claim, "note", message, user)
    db.session.commit()
    return entry


# ---- estimates / supplements ----

def add_estimate(claim: Claim, data: Dict[str, Any], user=None) -> Estimate:
    items = data.get("line_items") or []
    if not isinstance(items, list):
        raise InvalidArgument("line_items must be a list.")
    total = _parse_money_field(data, "total_amount", "Total amount")
    if total is None:
        total = 0.0
        for item in items:
            if isinstance(item, dict):
                try:
                    total += float(item.get("total") or 0)
                except (TypeError, ValueError):
                    raise InvalidArgument("Line item totals must be numbers.")
    estimate = Estimate(
        org_id=claim.org_id,
        claim_id=claim.id,
        source=_clean(data.get("source")) or "contractor",
        total_amount=round(total, 2),
        line_items_json=json.dumps(items),
    )
    db.session.add(estimate)
    _log(claim, "estimate", f"Estimate added: ${estimate.total_amount:,.2f} ({len(items)} items)", user)
    db.session.commit()
    return estimate


def add_supplement(claim: Claim, data: Dict[str, Any], user=None) -> Supplement:
    desc = _clean(data.get("item_description") or data.get("description"))
    if not desc:
        raise InvalidArgument("Supplement description is required.")
    amount = _parse_money_field(data, "amount", "Amount")
    if amount is None:
        raise InvalidArgument("Supplement amount is required.")
    status = (_clean(data.get("status")) or "draft").lower()
    if status not in SUPPLEMENT_STATUSES:
        raise InvalidArgument(f"Unknown supplement status '{status}'.")
    supplement = Supplement(
        org_id=claim.org_id,
        claim_id=claim.id,
        item_description=desc,
        amount=amount,
        status=status,
        denial_reason=_clean(data.get("denial_reason")),
    )
    db.session.add(supplement)
    _log(claim, "supplement", f"Supplement added: {desc} (${amount:,.2f}, {status})", user)
    db.session.commit()
    return supplement


COVERAGES = ("A", "B", "C")


def _flag(value, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def add_depreciation_item(claim: Claim, data: Dict[str, Any], user=None) -> DepreciationItem:
    """Add a line item either from age/lifespan or from an explicit depreciation amount."""
    desc = _clean(data.get("description"))
    if not desc:
        raise InvalidArgument("Description is required.")
    coverage = (_clean(data.get("coverage")) or "A").upper()
    if coverage not in COVERAGES:
        raise InvalidArgument("Coverage must be A, B or C.")
    rcv = _parse_money_field(data, "rcv", "RCV")
    if rcv is None:
        raise InvalidArgument("RCV is required.")

    if data.get("age_years") not in (None, "") or data.get("lifespan_years") not in (None, ""):
        try:
            age = float(data.get("age_years"))
            lifespan = float(data.get("lifespan_years"))
            if not (math.isfinite(age) and math.isfinite(lifespan)):
                raise ValueError("not finite")
        except (TypeError, ValueError):
            raise InvalidArgument("age_years and lifespan_years must both be numbers.")
        dep, acv = compute_line_item(rcv, age, lifespan)
    else:
        dep = _parse_money_field(data, "depreciation", "Depreciation") or 0.0
        if dep > rcv:
            raise InvalidArgument("Depreciation cannot exceed RCV.")
        acv = round(rcv - dep, 2)

    item = DepreciationItem(
        org_id=claim.org_id,
        claim_id=claim.id,
        description=desc,
        coverage=coverage,
        rcv=round(rcv, 2),
        depreciation=round(dep, 2),
        acv=acv,
        completed=_flag(data.get("completed"), False),
        recoverable=_flag(data.get("recoverable"), True),
    )
    db.session.add(item)
    _log(claim, "depreciation", f"Depreciation item added: {desc}", user)
    db.session.commit()
    return item


def depreciation_item_to_dict(item: DepreciationItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "description": item.description,
        "coverage": item.coverage,
        "rcv": item.rcv,
        "depreciation": item.depreciation,
        "acv": item.acv,
        "completed": item.completed,
        "recoverable": item.recoverable,
    }


# ---- serialization ----

def claim_to_dict(claim: Claim, *, detail: bool = False) -> Dict[str, Any]:
    prop = claim.property
    data = {
        "id": claim.id,
        "claim_number": claim.claim_number,
        "title": claim.title,
        "insured_name": claim.insured_name,
        "carrier": claim.carrier,
        "policy_number": claim.policy_number,
        "adjuster_name": claim.adjuster_name,
        "adjuster_email": claim.adjuster_email,
        "category": claim.category,
        "subtype": claim.subtype,
        "loss_type": claim.loss_type,
        "date_of_loss": claim.date_of_loss.isoformat() if claim.date_of_loss else None,
        "lifecycle_stage": claim.lifecycle_stage,
        "deductible": claim.deductible,
        "acv_paid": claim.acv_paid,
        "property": {
            "street": prop.street,
            "city": prop.city,
            "state": prop.state,
            "zip_code": prop.zip_code,
            "roof_type": prop.roof_type,
            "year_built": prop.year_built,
        } if prop else None,
        "created_at": claim.created_at.isoformat() if claim.created_at else None,
    }
    if detail:
        estimate = claim.latest_estimate
        data["latest_estimate"] = {
            "id": estimate.id,
            "total_amount": estimate.total_amount,
            "line_items": estimate.line_items,
        } if estimate else None
        data["supplements"] = [
            {"id": s.id, "item_description": s.item_description, "amount": s.amount, "status": s.status}
            for s in claim.supplements
        ]
        data["timeline"] = [
            {"kind": a.kind, "message": a.message, "created_at": a.created_at.isoformat() if a.created_at else None}
            for a in claim.activities
        ]
        data["reports"] = [
            {"id": r.id, "kind": r.kind, "layout_key": r.layout_key, "page_count": r.page_count}
            for r in claim.reports
        ]
    return data
