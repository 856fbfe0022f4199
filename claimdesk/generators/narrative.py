"""Damage narratives for adjusters, homeowners and the internal team."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from ..ai.llm import call_llm_with_meta
from ..ai.prompts import AUDIENCE_GUIDANCE, narrative_prompt
from ..errors import ExternalServiceError, InvalidArgument
from .sections import extract_bullets, extract_sections

logger = logging.getLogger(__name__)

AUDIENCES = tuple(AUDIENCE_GUIDANCE.keys())

HEADINGS = ["WHAT HAPPENED", "DAMAGE FINDINGS", "WHAT'S MISSING", "RECOMMENDATIONS"]


@dataclass
class Narrative:
    audience: str
    what_happened: str
    damage_findings: str
    whats_missing: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    full_text: str = ""
    model_source: str = "template"
    model: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def missing_documentation(claim) -> List[str]:
    """Gaps in the claim file that weaken a carrier submission."""
    missing = []
    if not claim.date_of_loss:
        missing.append("Confirmed date of loss")
    if claim.property is None or not claim.property.street:
        missing.append("Property address and roof details")
    if not claim.weather_reports:
        missing.append("Weather verification report for the date of loss")
    if not claim.damage_assessments:
        missing.append("Photo documentation with damage annotations")
    if claim.latest_estimate is None:
        missing.append("Itemized repair estimate")
    return missing


# ---- deterministic fallback ----

def _loss_sentence(claim) -> str:
    when = claim.date_of_loss.strftime("%B %d, %Y") if claim.date_of_loss else "an unconfirmed date"
    where = claim.property.full_address if claim.property and claim.property.full_address else "the insured property"
    peril = (claim.subtype or claim.loss_type or claim.category or "storm").replace("-", " ")
    return f"On {when}, {where} sustained {peril} damage."


def _weather_sentence(claim) -> str:
    if not claim.weather_reports:
        return "No weather verification has been recorded for the date of loss yet."
    w = claim.weather_reports[0]
    bits = []
    if w.max_wind_speed:
        bits.append(f"wind gusts up to {w.max_wind_speed:g} mph")
    if w.max_hail_size:
        bits.append(f'hail up to {w.max_hail_size:g}"')
    detail = " and ".join(bits) if bits else "severe weather"
    event = w.event_type or "a storm event"
    date_txt = f" on {w.report_date.strftime('%m/%d/%Y')}" if w.report_date else ""
    return f"Weather records show {event}{date_txt} with {detail} in the area."


def _findings_text(claim) -> str:
    if not claim.damage_assessments:
        return "Damage has not yet been documented with annotated photos."
    lines = []
    for d in claim.damage_assessments:
        pct = f" ({round((d.confidence or 0) * 100)}% confidence)" if d.confidence is not None else ""
        lines.append(f"{(d.damage_type or 'damage').replace('_', ' ').title()}: {d.severity or 'unrated'} severity{pct}")
    return "\n".join(lines)


def _template_recommendations(audience: str, missing: List[str]) -> List[str]:
    if audience == "homeowner":
        recs = [
            "Keep all correspondence from your insurance carrier",
            "Avoid permanent repairs until the adjuster has inspected the damage",
        ]
    elif audience == "internal":
        recs = [f"Collect: {m}" for m in missing] or ["File is complete; prepare the carrier packet"]
    else:
        recs = [
            "Approve the full scope of storm-related repairs",
            "Include all code-required items in the approved estimate",
        ]
    if missing and audience != "internal":
        recs.append("Provide the outstanding documentation listed above")
    return recs


def template_narrative(claim, audience: str) -> Narrative:
    missing = missing_documentation(claim)
    what_happened = f"{_loss_sentence(claim)} {_weather_sentence(claim)}"
    findings = _findings_text(claim)
    recs = _template_recommendations(audience, missing)
    narrative = Narrative(
        audience=audience,
        what_happened=what_happened,
        damage_findings=findings,
        whats_missing=missing,
        recommendations=recs,
        model_source="template",
    )
    narrative.full_text = render_narrative_text(narrative)
    return narrative


def render_narrative_text(n: Narrative) -> str:
    parts = [
        "WHAT HAPPENED:",
        n.what_happened,
        "",
        "DAMAGE FINDINGS:",
        n.damage_findings,
        "",
        "WHAT'S MISSING:",
        "\n".join(f"- {m}" for m in n.whats_missing) or "- Nothing outstanding",
        "",
        "RECOMMENDATIONS:",
        "\n".join(f"- {r}" for r in n.recommendations),
    ]
    return "\n".join(parts)


def _merge_missing(from_model: List[str], computed: List[str]) -> List[str]:
    merged = list(from_model)
    lowered = {m.lower() for m in merged}
    for item in computed:
        if item.lower() not in lowered:
            merged.append(item)
            lowered.add(item.lower())
    return merged


def generate_narrative(claim, audience: str = "adjuster") -> Narrative:
    if audience not in AUDIENCES:
        raise InvalidArgument(f"Unknown audience '{audience}'. Use one of: {', '.join(AUDIENCES)}.")

    fallback = template_narrative(claim, audience)
    try:
        meta = call_llm_with_meta(narrative_prompt(claim, audience), temperature=0.3)
    except ExternalServiceError:
        logger.warning("Narrative generation fell back to template for claim %s", claim.id)
        return fallback

    if meta["model_source"] == "mock":
        return fallback

    text = meta["text"] or ""
    sections = extract_sections(text, HEADINGS)
    if not sections:
        # No headings: keep the prose as the story, fill the rest deterministically.
        sections = {"WHAT HAPPENED": text.strip()}

    narrative = Narrative(
        audience=audience,
        what_happened=sections.get("WHAT HAPPENED") or fallback.what_happened,
        damage_findings=sections.get("DAMAGE FINDINGS") or fallback.damage_findings,
        whats_missing=_merge_missing(
            extract_bullets(sections.get("WHAT'S MISSING", "")),
            fallback.whats_missing,
        ),
        recommendations=extract_bullets(sections.get("RECOMMENDATIONS", "")) or fallback.recommendations,
        model_source=meta["model_source"],
        model=meta["model"],
    )
    narrative.full_text = render_narrative_text(narrative)
    return narrative
