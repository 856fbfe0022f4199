"""RCV / ACV depreciation math for claim payouts."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from .errors import InvalidArgument

DEFAULT_DEDUCTIBLE = 1000.0

PAYOUT_STAGES = [
    "not_started",
    "estimate_uploaded",
    "items_reviewed",
    "documentation_complete",
    "invoice_generated",
    "submitted",
    "approved",
    "paid",
]


def straight_line_depreciation(rcv: float, age_years: float, lifespan_years: float) -> float:
    if lifespan_years is None or lifespan_years <= 0:
        raise InvalidArgument("Lifespan must be greater than zero.")
    if rcv < 0 or age_years < 0:
        raise InvalidArgument("RCV and age cannot be negative.")
    return rcv * min(age_years / lifespan_years, 1.0)


def compute_line_item(rcv: float, age_years: float, lifespan_years: float) -> tuple:
    """Return (depreciation, acv) rounded to cents."""
    dep = round(straight_line_depreciation(rcv, age_years, lifespan_years), 2)
    return dep, round(rcv - dep, 2)


@dataclass
class PayoutSummary:
    total_rcv: float
    total_acv: float
    total_depreciation: float
    recoverable_depreciation: float
    approved_supplements: float
    deductible: float
    acv_paid: float
    total_due: float
    depreciation_percent: float
    item_count: int
    completed_count: int

    def to_dict(self) -> dict:
        return asdict(self)


def _get(obj, name, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def summarize_payout(
    items: Iterable,
    supplements: Iterable = (),
    deductible: Optional[float] = None,
    acv_paid: Optional[float] = None,
) -> PayoutSummary:
    """Roll up depreciation items into what the carrier still owes.

    Only completed items count toward RCV/ACV. Depreciation is released only
    for items that are both completed and recoverable.
    """
    items = list(items)
    total_rcv = total_acv = total_dep = recoverable = 0.0
    completed = 0
    for item in items:
        if not _get(item, "completed", False):
            continue
        completed += 1
        rcv = float(_get(item, "rcv", 0) or 0)
        dep = float(_get(item, "depreciation", 0) or 0)
        acv = _get(item, "acv")
        acv = float(acv) if acv is not None else rcv - dep
        total_rcv += rcv
        total_acv += acv
        total_dep += dep
        if _get(item, "recoverable", True):
            recoverable += dep

    approved = sum(
        float(_get(s, "amount", 0) or 0)
        for s in supplements
        if (_get(s, "status") or "").lower() == "approved"
    )

    deductible = DEFAULT_DEDUCTIBLE if deductible is None else float(deductible)
    paid = total_acv if acv_paid is None else float(acv_paid)
    percent = (total_dep / total_rcv * 100) if total_rcv else 0.0

    return PayoutSummary(
        total_rcv=round(total_rcv, 2),
        total_acv=round(total_acv, 2),
        total_depreciation=round(total_dep, 2),
        recoverable_depreciation=round(recoverable, 2),
        approved_supplements=round(approved, 2),
        deductible=round(deductible, 2),
        acv_paid=round(paid, 2),
        total_due=round(recoverable + approved, 2),
        depreciation_percent=round(percent, 1),
        item_count=len(items),
        completed_count=completed,
    )


def payout_stage(claim) -> str:
    """Best-effort position of a claim in the depreciation recovery workflow."""
    if claim.lifecycle_stage == "paid":
        return "paid"
    if claim.lifecycle_stage == "approved":
        return "approved"
    if any(r.kind == "depreciation" for r in claim.reports):
        return "invoice_generated"
    items = claim.depreciation_items
    if items and all(i.completed for i in items):
        return "documentation_complete"
    if items:
        return "items_reviewed"
    if claim.estimates:
        return "estimate_uploaded"
    return "not_started"
