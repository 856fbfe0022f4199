"""Carrier submission packet: everything an adjuster needs on one page.

Combines the adjuster narrative, the code-compliance summary, weather and
damage evidence, supplements and the latest estimate into one structure,
plus a plain-text rendering for email bodies.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import List, Optional

from ..ai.llm import call_llm_with_meta
from ..ai.prompts import executive_summary_prompt
from ..errors import ExternalServiceError
from .code_compliance import CodeSummary, generate_code_summary
from .narrative import Narrative, generate_narrative

logger = logging.getLogger(__name__)


@dataclass
class CarrierSubmissionPacket:
    claim_number: str
    insured_name: str
    carrier: Optional[str]
    executive_summary: str
    full_narrative: str
    code_requirements: List[str] = field(default_factory=list)
    safety_concerns: List[str] = field(default_factory=list)
    damage_causes: List[str] = field(default_factory=list)
    weather_events: List[str] = field(default_factory=list)
    required_materials: List[str] = field(default_factory=list)
    findings: str = ""
    supplemental_items: List[str] = field(default_factory=list)
    estimated_total: float = 0.0
    urgency: str = "low"
    recommended_actions: List[str] = field(default_factory=list)
    generated_at: str = ""
    model_source: str = "template"

    def to_dict(self) -> dict:
        return asdict(self)


def _dedupe(items) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out


def damage_causes(claim) -> List[str]:
    out = []
    for d in claim.damage_assessments:
        pct = round((d.confidence or 0) * 100)
        out.append(f"{d.damage_type or 'unknown'}: {d.severity or 'unrated'} ({pct}% confidence)")
    return out


def weather_events(claim) -> List[str]:
    out = []
    for w in claim.weather_reports:
        when = w.report_date.strftime("%m/%d/%Y") if w.report_date else "unknown date"
        details = []
        if w.max_wind_speed:
            details.append(f"{w.max_wind_speed:g} mph winds")
        if w.max_hail_size:
            details.append(f'{w.max_hail_size:g}" hail')
        suffix = f" ({', '.join(details)})" if details else ""
        out.append(f"{w.event_type or 'Storm Event'} on {when}{suffix}")
    return out


def required_materials(claim, code_summary: CodeSummary) -> List[str]:
    materials = []
    for lead in claim.leads:
        materials.extend(str(m) for m in lead.ai_materials)
    materials.extend(m.material_spec for m in code_summary.missing_items)
    return _dedupe(materials)


def recommended_actions(narrative: Narrative, code_summary: CodeSummary, has_weather: bool) -> List[str]:
    actions = []
    if code_summary.urgency == "critical":
        actions.append("URGENT: Address safety-related code items before the next weather event")
    actions.append("Approve full scope including all code-required items")
    actions.append("Schedule joint inspection if needed for verification")
    if narrative.whats_missing:
        actions.append("Request missing documentation: " + ", ".join(narrative.whats_missing[:2]))
    if has_weather:
        actions.append("Review attached weather verification data")
    if code_summary.missing_items:
        actions.append(f"Address {len(code_summary.missing_items)} code-required items in approval")
    actions.append("Issue initial payment to begin emergency mitigation")
    actions.append("Coordinate final walk-through upon completion")
    return actions


def _template_executive_summary(claim, narrative: Narrative, code_summary: CodeSummary) -> str:
    estimate = claim.latest_estimate
    total = f"${estimate.total_amount:,.2f}" if estimate and estimate.total_amount else "a pending amount"
    missing = len(code_summary.missing_items)
    code_line = (
        f"The current scope omits {missing} code-required item(s)."
        if missing else "The scope includes all code-required items."
    )
    return f"{narrative.what_happened} The contractor estimate totals {total}. {code_line}"


def generate_carrier_summary(claim) -> CarrierSubmissionPacket:
    narrative = generate_narrative(claim, audience="adjuster")
    code_summary = generate_code_summary(claim)
    estimate = claim.latest_estimate

    executive = _template_executive_summary(claim, narrative, code_summary)
    model_source = narrative.model_source
    try:
        meta = call_llm_with_meta(
            executive_summary_prompt(claim, narrative.full_text, code_summary.urgency),
            temperature=0.2,
        )
        if meta["model_source"] != "mock" and (meta["text"] or "").strip():
            executive = meta["text"].strip()
            model_source = meta["model_source"]
    except ExternalServiceError:
        logger.warning("Executive summary fell back to template for claim %s", claim.id)

    return CarrierSubmissionPacket(
        claim_number=claim.claim_number,
        insured_name=claim.insured_name,
        carrier=claim.carrier,
        executive_summary=executive,
        full_narrative=narrative.full_text,
        code_requirements=code_summary.required_items,
        safety_concerns=code_summary.safety_concerns,
        damage_causes=damage_causes(claim),
        weather_events=weather_events(claim),
        required_materials=required_materials(claim, code_summary),
        findings=narrative.damage_findings,
        supplemental_items=[f"{s.item_description}: ${s.amount:,.2f}" for s in claim.supplements],
        estimated_total=float(estimate.total_amount or 0) if estimate else 0.0,
        urgency=code_summary.urgency,
        recommended_actions=recommended_actions(narrative, code_summary, bool(claim.weather_reports)),
        generated_at=datetime.utcnow().isoformat(timespec="seconds") + "Z",
        model_source=model_source,
    )


def _section(title: str, lines: List[str]) -> List[str]:
    bar = "=" * 60
    body = lines or ["(none)"]
    return [bar, title, bar] + body + [""]


def format_packet_for_delivery(packet: CarrierSubmissionPacket) -> str:
    out = [
        f"CARRIER SUBMISSION - CLAIM {packet.claim_number}",
        f"Insured: {packet.insured_name}",
        f"Carrier: {packet.carrier or 'N/A'}",
        f"Urgency: {packet.urgency.upper()}",
        f"Generated: {packet.generated_at}",
        "",
    ]
    out += _section("EXECUTIVE SUMMARY", [packet.executive_summary])
    out += _section("WEATHER VERIFICATION", [f"- {w}" for w in packet.weather_events])
    out += _section("DAMAGE FINDINGS", [packet.findings] + [f"- {d}" for d in packet.damage_causes])
    out += _section("CODE REQUIREMENTS", [f"- {c}" for c in packet.code_requirements])
    if packet.safety_concerns:
        out += _section("SAFETY CONCERNS", [f"- {s}" for s in packet.safety_concerns])
    out += _section("REQUIRED MATERIALS", [f"- {m}" for m in packet.required_materials])
    out += _section("SUPPLEMENTAL ITEMS", [f"- {s}" for s in packet.supplemental_items])
    out += _section("ESTIMATED TOTAL", [f"${packet.estimated_total:,.2f}"])
    out += _section(
        "RECOMMENDED ACTIONS",
        [f"{i}. {a}" for i, a in enumerate(packet.recommended_actions, start=1)],
    )
    out += _section("FULL NARRATIVE", [packet.full_narrative])
    return "\n".join(out).rstrip() + "\n"
