"""Carrier appeal (rebuttal) letters for denied claims and supplements."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import List, Optional

from ..ai.llm import call_llm_with_meta
from ..ai.prompts import TONE_GUIDANCE, appeal_prompt
from ..errors import ExternalServiceError, InvalidArgument
from ..utils.validation import as_text
from .code_compliance import generate_code_summary
from .sections import extract_bullets, extract_sections

logger = logging.getLogger(__name__)

TONES = tuple(TONE_GUIDANCE.keys())
MIN_DENIAL_REASON = 10

HEADINGS = ["LETTER", "KEY POINTS", "SUPPORTING DOCUMENTATION", "CODE CITATIONS"]


@dataclass
class AppealLetter:
    tone: str
    denial_reason: str
    letter: str
    key_points: List[str] = field(default_factory=list)
    supporting_documentation: List[str] = field(default_factory=list)
    code_citations: List[str] = field(default_factory=list)
    supplement_id: Optional[int] = None
    model_source: str = "template"
    model: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _validate(denial_reason: str, tone: str) -> str:
    reason = as_text(denial_reason, "Denial reason")
    if len(reason) < MIN_DENIAL_REASON:
        raise InvalidArgument(f"Denial reason must be at least {MIN_DENIAL_REASON} characters.")
    if tone not in TONES:
        raise InvalidArgument(f"Unknown tone '{tone}'. Use one of: {', '.join(TONES)}.")
    return reason


def _supporting_docs(claim) -> List[str]:
    docs = []
    if claim.weather_reports:
        docs.append("Third-party weather verification for the date of loss")
    if claim.damage_assessments:
        docs.append(f"Annotated damage photos ({len(claim.damage_assessments)} assessment(s))")
    if claim.latest_estimate is not None:
        docs.append("Itemized contractor estimate")
    if claim.supplements:
        docs.append("Supplement line-item breakdown")
    return docs or ["Contractor inspection report"]


def _template_letter(claim, reason: str, tone: str, supplement, citations: List[str]) -> str:
    org = claim.organization
    subject = f"supplement item \"{supplement.item_description}\"" if supplement is not None else "this claim"
    opening = {
        "professional": f"We respectfully request that you reconsider the denial of {subject}.",
        "firm": f"We dispute the denial of {subject}; the file does not support it.",
        "legal": (
            f"This letter constitutes a formal written appeal of the denial of {subject}. "
            "The insured reserves all rights under the policy."
        ),
    }[tone]
    loss = claim.date_of_loss.strftime("%m/%d/%Y") if claim.date_of_loss else "the date of loss"
    body = [
        date.today().strftime("%B %d, %Y"),
        "",
        f"{claim.carrier or 'Claims Department'}",
        f"Re: Claim {claim.claim_number} - {claim.insured_name}",
        "",
        f"Dear {claim.adjuster_name or 'Claims Adjuster'},",
        "",
        opening,
        "",
        f"The stated reason for denial was: \"{reason}\". The damage documented at the "
        f"property is consistent with the loss reported on {loss}, and the repairs requested "
        "are necessary to restore the roof to its pre-loss condition.",
    ]
    if citations:
        body += [
            "",
            "The following building-code provisions require the disputed work: "
            + ", ".join(citations) + ".",
        ]
    body += [
        "",
        "Please review the enclosed documentation and issue a revised determination.",
        "",
        "Sincerely,",
        org.name if org is not None else "",
    ]
    return "\n".join(body).strip()


def generate_appeal(
    claim,
    denial_reason: str,
    *,
    denial_details: Optional[str] = None,
    tone: str = "professional",
    supplement=None,
) -> AppealLetter:
    reason = _validate(denial_reason, tone)
    denial_details = as_text(denial_details, "Denial details") or None
    citations = generate_code_summary(claim, explain=False).code_references

    fallback = AppealLetter(
        tone=tone,
        denial_reason=reason,
        letter=_template_letter(claim, reason, tone, supplement, citations),
        key_points=[
            "Damage is consistent with the documented weather event",
            "Requested repairs are required to restore pre-loss condition",
            "Code-required items must be included in the approved scope",
        ],
        supporting_documentation=_supporting_docs(claim),
        code_citations=citations,
        supplement_id=supplement.id if supplement is not None else None,
    )
    try:
        meta = call_llm_with_meta(
            appeal_prompt(claim, reason, denial_details=denial_details, tone=tone, supplement=supplement),
            temperature=0.4,
        )
    except ExternalServiceError:
        logger.warning("Appeal generation fell back to template for claim %s", claim.id)
        return fallback

    if meta["model_source"] == "mock" or not (meta["text"] or "").strip():
        return fallback

    text = meta["text"].strip()
    sections = extract_sections(text, HEADINGS)
    if not sections:
        # No recognizable headings: the whole reply is the letter.
        sections = {"LETTER": text}

    return AppealLetter(
        tone=tone,
        denial_reason=reason,
        letter=sections.get("LETTER") or fallback.letter,
        key_points=extract_bullets(sections.get("KEY POINTS", "")) or fallback.key_points,
        supporting_documentation=(
            extract_bullets(sections.get("SUPPORTING DOCUMENTATION", "")) or fallback.supporting_documentation
        ),
        code_citations=extract_bullets(sections.get("CODE CITATIONS", "")) or citations,
        supplement_id=fallback.supplement_id,
        model_source=meta["model_source"],
        model=meta["model"],
    )
