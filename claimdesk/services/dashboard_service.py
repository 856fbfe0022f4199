"""Dashboard aggregation utilities.

Keeps KPI calculations out of routes/templates. Every function returns plain
dicts/lists ready for Jinja templates or JSON.
"""

from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy import func

from ..extensions import db
from ..models import Claim, ClaimActivity, Lead
from .claims_service import ALL_STAGES
from .leads_service import LEAD_STAGES

OPEN_STAGES = ("inspection", "adjuster_review", "approved")


def claim_pipeline(org) -> Dict[str, int]:
    """Claim count per lifecycle stage; every stage is present."""
    counts = dict.fromkeys(ALL_STAGES, 0)
    rows = (
        db.session.query(Claim.lifecycle_stage, func.count(Claim.id))
        .filter(Claim.org_id == org.id)
        .group_by(Claim.lifecycle_stage)
        .all()
    )
    for stage, n in rows:
        if stage in counts:
            counts[stage] = int(n)
    return counts


def pipeline_value(org) -> float:
    """Sum of the latest estimate totals of open claims."""
    total = 0.0
    claims = Claim.query.filter(Claim.org_id == org.id, Claim.lifecycle_stage.in_(OPEN_STAGES)).all()
    for claim in claims:
        estimate = claim.latest_estimate
        if estimate and estimate.total_amount:
            total += float(estimate.total_amount)
    return round(total, 2)


def lead_funnel(org) -> Dict[str, int]:
    counts = dict.fromkeys(LEAD_STAGES, 0)
    rows = (
        db.session.query(Lead.stage, func.count(Lead.id))
        .filter(Lead.org_id == org.id)
        .group_by(Lead.stage)
        .all()
    )
    for stage, n in rows:
        if stage in counts:
            counts[stage] = int(n)
    return counts


def recent_activity(org, limit: int = 10) -> List[Dict[str, Any]]:
    rows = (
        ClaimActivity.query.filter_by(org_id=org.id)
        .order_by(ClaimActivity.created_at.desc(), ClaimActivity.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "claim_id": a.claim_id,
            "claim_number": a.claim.claim_number if a.claim else None,
            "kind": a.kind,
            "message": a.message,
            "created_at": a.created_at,
        }
        for a in rows
    ]


def dashboard_summary(org) -> Dict[str, Any]:
    pipeline = claim_pipeline(org)
    return {
        "claim_pipeline": pipeline,
        "open_claims": sum(pipeline[s] for s in OPEN_STAGES),
        "pipeline_value": pipeline_value(org),
        "lead_funnel": lead_funnel(org),
        "recent_activity": recent_activity(org),
    }
