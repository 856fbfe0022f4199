"""Building-code requirements for a roof replacement and what the estimate misses.

The requirement set is rule-based (IRC chapter 9 for asphalt shingles plus
state-specific ice-barrier and high-wind fastening rules). Missing items are
found by keyword search over the latest estimate's line items. The LLM only
writes an optional plain-English explanation.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from ..ai.llm import call_llm_with_meta
from ..ai.prompts import code_summary_prompt
from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)

DEFAULT_STATE = "TX"
DEFAULT_ROOF_TYPE = "asphalt_shingle"
DEFAULT_YEAR_BUILT = 2010

ICE_BARRIER_STATES = {"MN", "WI", "MI", "ND", "SD", "MT"}
HIGH_WIND_STATES = {"TX", "FL", "LA", "MS", "AL", "SC", "NC"}

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "underlayment": ["underlayment", "felt", "synthetic", "barrier"],
    "flashing": ["flashing", "drip edge", "step flash", "counter flash"],
    "starter": ["starter", "starter strip"],
    "ridge": ["ridge", "hip cap", "ridge cap"],
    "valley": ["valley", "valley metal", "valley flashing"],
    "ventilation": ["vent", "ridge vent", "soffit vent", "ventilation"],
    "fasteners": ["nail", "fastener", "attachment"],
    "ice_water": ["ice", "ice barrier", "ice & water", "ice and water"],
}

SAFETY_CATEGORIES = {"ice_water", "flashing"}


@dataclass
class CodeRequirement:
    code: str
    description: str
    category: str
    reason: str
    material_spec: str
    estimated_cost: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CodeSummary:
    state: str
    roof_type: str
    year_built: int
    requirements: List[CodeRequirement] = field(default_factory=list)
    missing_items: List[CodeRequirement] = field(default_factory=list)
    required_items: List[str] = field(default_factory=list)
    safety_concerns: List[str] = field(default_factory=list)
    code_references: List[str] = field(default_factory=list)
    total_estimated_cost: float = 0.0
    urgency: str = "low"
    explanation: str = ""
    model_source: str = "template"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["missing_count"] = len(self.missing_items)
        return data


# ============================================================
#  REQUIREMENT RULES
# ============================================================

_ASPHALT_SHINGLE_RULES = [
    CodeRequirement(
        "IRC R905.2.3", "Solid roof deck sheathing", "underlayment",
        "Shingles must be fastened to solidly sheathed decks",
        "7/16\" OSB or 1/2\" plywood decking", 2.5,
    ),
    CodeRequirement(
        "IRC R905.2.7", "Underlayment over entire roof deck", "underlayment",
        "Required moisture barrier beneath shingles",
        "ASTM D226 Type I felt or approved synthetic underlayment", 0.45,
    ),
    CodeRequirement(
        "IRC R905.2.7.1", "Ice barrier at eaves", "ice_water",
        "Required in areas where ice dams can form",
        "Self-adhering polymer-modified bitumen membrane, 24\" inside exterior wall", 1.2,
    ),
    CodeRequirement(
        "IRC R905.2.8.5", "Drip edge at eaves and rakes", "flashing",
        "Required at eaves and gables to direct water away from fascia",
        "Minimum 26-gauge galvanized or aluminum drip edge", 2.5,
    ),
    CodeRequirement(
        "IRC R905.2.5", "Starter strip shingles", "starter",
        "Manufacturer installation instructions require a starter course",
        "Manufacturer-matched starter strip at eaves and rakes", 0.8,
    ),
    CodeRequirement(
        "IRC R905.2.8.2", "Valley lining", "valley",
        "Valleys must be lined before shingle application",
        "24\" wide corrosion-resistant metal or two plies of mineral-surfaced roll roofing", 8.0,
    ),
    CodeRequirement(
        "IRC R905.2.6", "Hip and ridge cap shingles", "ridge",
        "Hips and ridges must be covered per manufacturer specification",
        "Manufacturer hip and ridge cap shingles", 4.5,
    ),
    CodeRequirement(
        "IRC R905.2.4", "Shingle fasteners", "fasteners",
        "Minimum fastener count and penetration per shingle",
        "Corrosion-resistant roofing nails, 12-gauge shank, 3/8\" head, 4 per shingle", 0.15,
    ),
    CodeRequirement(
        "IRC R806.2", "Attic ventilation", "ventilation",
        "Net free ventilating area of 1/150 of the vented space",
        "Balanced ridge and soffit ventilation", 3.5,
    ),
]

_HIGH_WIND_FASTENING = CodeRequirement(
    "IRC R905.2.4.1", "High-wind shingle attachment", "fasteners",
    "Wind-resistance classification required in high-wind regions",
    "ASTM D7158 Class H or D3161 Class F shingles, 6 nails per shingle", 0.25,
)

_STEP_FLASHING = CodeRequirement(
    "IRC R905.2.8.4", "Step flashing at sidewalls", "flashing",
    "Required where the roof meets a vertical wall to prevent water intrusion",
    "Minimum 4\" x 4\" corrosion-resistant step flashing, one per shingle course", 6.0,
)


def requirements_for(state: str, roof_type: str) -> List[CodeRequirement]:
    reqs: List[CodeRequirement] = []
    if (roof_type or "").lower() == "asphalt_shingle":
        for rule in _ASPHALT_SHINGLE_RULES:
            if rule.category == "ice_water" and state not in ICE_BARRIER_STATES:
                continue
            reqs.append(rule)
    if state in HIGH_WIND_STATES:
        reqs.append(_HIGH_WIND_FASTENING)
    reqs.append(_STEP_FLASHING)
    return reqs


def _estimate_haystack(estimate) -> Optional[str]:
    """Lowercased line-item text. Only descriptive fields are searched so keys
    like "unit_price" cannot satisfy the "ice" keyword."""
    if estimate is None:
        return None
    chunks = []
    for item in estimate.line_items:
        if isinstance(item, dict):
            chunks.extend(str(item.get(k) or "") for k in ("description", "code", "category", "notes"))
        else:
            chunks.append(json.dumps(item) if not isinstance(item, str) else item)
    return " | ".join(chunks).lower()


def find_missing(requirements: List[CodeRequirement], estimate) -> List[CodeRequirement]:
    haystack = _estimate_haystack(estimate)
    if haystack is None:
        return list(requirements)
    missing = []
    for req in requirements:
        keywords = CATEGORY_KEYWORDS.get(req.category, [])
        if not any(k in haystack for k in keywords):
            missing.append(req)
    return missing


def urgency_for(missing: List[CodeRequirement]) -> str:
    if not missing:
        return "low"
    if any(m.category in SAFETY_CATEGORIES for m in missing):
        return "critical"
    if len(missing) >= 5:
        return "high"
    if len(missing) >= 3:
        return "medium"
    return "low"


def _claim_basics(claim) -> tuple:
    prop = claim.property
    state = ((prop.state if prop else None) or DEFAULT_STATE).upper()
    roof_type = (prop.roof_type if prop else None) or DEFAULT_ROOF_TYPE
    year_built = (prop.year_built if prop else None) or DEFAULT_YEAR_BUILT
    return state, roof_type, year_built


def build_code_summary(state: str, roof_type: str, year_built: int, estimate=None) -> CodeSummary:
    """Rule-based part of the summary (no LLM)."""
    reqs = requirements_for(state, roof_type)
    missing = find_missing(reqs, estimate)

    references: List[str] = []
    for req in reqs:
        if req.code not in references:
            references.append(req.code)

    safety = [
        f"{r.description}: {r.reason}"
        for r in reqs
        if r.category in SAFETY_CATEGORIES or "safety" in r.reason.lower()
    ]

    return CodeSummary(
        state=state,
        roof_type=roof_type,
        year_built=year_built,
        requirements=reqs,
        missing_items=missing,
        required_items=[f"{r.code}: {r.description} - {r.reason}" for r in reqs],
        safety_concerns=safety,
        code_references=references,
        total_estimated_cost=round(sum(m.estimated_cost for m in missing), 2),
        urgency=urgency_for(missing),
    )


def _template_explanation(summary: CodeSummary) -> str:
    if not summary.missing_items:
        return (
            f"The estimate includes every code-required roofing component for {summary.state}. "
            "No additional code items are needed."
        )
    return (
        f"The current estimate omits {len(summary.missing_items)} item(s) required by the "
        f"International Residential Code as adopted in {summary.state}. "
        "Local building officials will not pass a final inspection without them, so they "
        "must be included in the approved scope."
    )


def generate_code_summary(claim, *, explain: bool = True) -> CodeSummary:
    state, roof_type, year_built = _claim_basics(claim)
    summary = build_code_summary(state, roof_type, year_built, claim.latest_estimate)
    summary.explanation = _template_explanation(summary)

    if not explain or not summary.missing_items:
        return summary

    try:
        meta = call_llm_with_meta(
            code_summary_prompt(claim, "\n".join(summary.required_items)),
            temperature=0.2,
        )
    except ExternalServiceError:
        logger.warning("Code summary explanation fell back to template for claim %s", claim.id)
        return summary

    if meta["model_source"] != "mock" and (meta["text"] or "").strip():
        summary.explanation = meta["text"].strip()
        summary.model_source = meta["model_source"]
    return summary


def format_code_requirements_for_carrier(summary: CodeSummary) -> str:
    lines = [
        "BUILDING CODE REQUIREMENTS",
        f"Jurisdiction: {summary.state}  |  Roof type: {summary.roof_type.replace('_', ' ')}",
        f"Urgency: {summary.urgency.upper()}",
        "",
    ]
    if not summary.missing_items:
        lines.append("All code-required items are present in the estimate.")
    else:
        lines.append("Code-required items missing from the estimate:")
        for i, m in enumerate(summary.missing_items, start=1):
            lines.append(f"{i}. {m.code} - {m.description}")
            lines.append(f"   Reason: {m.reason}")
            lines.append(f"   Material: {m.material_spec}")
        lines.append("")
        lines.append(f"Estimated additional cost (per unit basis): ${summary.total_estimated_cost:,.2f}")
    if summary.safety_concerns:
        lines.append("")
        lines.append("Safety concerns:")
        lines.extend(f"- {s}" for s in summary.safety_concerns)
    lines.append("")
    lines.append("References: " + ", ".join(summary.code_references))
    return "\n".join(lines)
