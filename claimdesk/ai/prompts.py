"""
Prompt templates and instruction builders for ClaimDesk AI.

This module defines *what* we ask the LLM to do and *how* we ask it,
without loading data or calling the model.

Design goals:
- Human-editable instructions
- Task-specific prompts with fixed section headings, so the generators can
  split the reply with plain regexes
"""

from typing import Any, Dict, List, Sequence


# =========================
# Base system instructions
# =========================

BASE_SYSTEM_PROMPT = """
You are an assistant for a roofing and property-restoration contractor that
documents insurance claims for homeowners and carriers.

GLOBAL RULES:
- Do NOT invent facts.
- Use ONLY the provided claim data.
- If information is missing, say so explicitly.
- NEVER invent measurements, storm data, dates or dollar amounts.
- Be factual, professional and specific. No marketing language.
"""

AUDIENCE_GUIDANCE = {
    "adjuster": (
        "Write for an insurance adjuster. Be technical and precise, cite the date "
        "of loss, weather data and observed damage, and keep a neutral tone."
    ),
    "homeowner": (
        "Write for the homeowner. Use plain language, explain what was found and "
        "what happens next, and avoid industry jargon."
    ),
    "internal": (
        "Write for the contractor's own project team. Be brief and list gaps in "
        "the file that need follow-up."
    ),
}

TONE_GUIDANCE = {
    "professional": "Courteous and professional. Request reconsideration.",
    "firm": "Firm and direct. State clearly that the denial is not supported by the evidence.",
    "legal": (
        "Formal and precise. Reference policy obligations and applicable building "
        "codes, and note that the insured reserves all rights."
    ),
}


def _pretty_kv(d: Dict[str, Any]) -> str:
    lines = []
    for k, v in d.items():
        if v in (None, "", [], {}):
            continue
        lines.append(f"- {k}: {v}")
    return "\n".join(lines) if lines else "- (none)"


def _pretty_list(items: Sequence[Dict[str, Any]], *, keys: Sequence[str]) -> str:
    if not items:
        return "- (none)"
    out = []
    for item in items:
        parts = [f"{k}={item.get(k)}" for k in keys if item.get(k) not in (None, "")]
        out.append("- " + ", ".join(parts))
    return "\n".join(out)


def claim_context(claim) -> Dict[str, Any]:
    """Flatten a claim and its evidence into plain data for prompts."""
    prop = claim.property
    estimate = claim.latest_estimate
    return {
        "claim": {
            "claim_number": claim.claim_number,
            "insured_name": claim.insured_name,
            "carrier": claim.carrier,
            "policy_number": claim.policy_number,
            "category": claim.category,
            "subtype": claim.subtype,
            "loss_type": claim.loss_type,
            "date_of_loss": claim.date_of_loss.isoformat() if claim.date_of_loss else None,
            "stage": claim.lifecycle_stage,
            "description": claim.description,
        },
        "property": {
            "address": prop.full_address if prop else None,
            "roof_type": prop.roof_type if prop else None,
            "year_built": prop.year_built if prop else None,
        },
        "weather": [
            {
                "event_type": w.event_type,
                "date": w.report_date.isoformat() if w.report_date else None,
                "max_wind_mph": w.max_wind_speed,
                "max_hail_in": w.max_hail_size,
                "summary": w.summary,
            }
            for w in claim.weather_reports
        ],
        "damage": [
            {
                "type": d.damage_type,
                "severity": d.severity,
                "confidence": d.confidence,
            }
            for d in claim.damage_assessments
        ],
        "estimate_total": estimate.total_amount if estimate else None,
        "supplements": [
            {"item": s.item_description, "amount": s.amount, "status": s.status}
            for s in claim.supplements
        ],
    }


def _context_block(ctx: Dict[str, Any]) -> str:
    return (
        "CLAIM:\n" + _pretty_kv(ctx["claim"]) + "\n\n"
        "PROPERTY:\n" + _pretty_kv(ctx["property"]) + "\n\n"
        "WEATHER EVENTS:\n"
        + _pretty_list(ctx["weather"], keys=["event_type", "date", "max_wind_mph", "max_hail_in", "summary"])
        + "\n\nDAMAGE FINDINGS:\n"
        + _pretty_list(ctx["damage"], keys=["type", "severity", "confidence"])
        + f"\n\nESTIMATE TOTAL: {ctx['estimate_total'] if ctx['estimate_total'] is not None else '(none)'}\n\n"
        "SUPPLEMENTS:\n" + _pretty_list(ctx["supplements"], keys=["item", "amount", "status"])
    )


def _messages(task: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": BASE_SYSTEM_PROMPT.strip()},
        {"role": "user", "content": task.strip()},
    ]


# =========================
# Task prompts
# =========================

def narrative_prompt(claim, audience: str) -> List[Dict[str, str]]:
    task = f"""
Write a damage narrative for this claim.

AUDIENCE: {AUDIENCE_GUIDANCE[audience]}

Respond using exactly these headings, each on its own line:
WHAT HAPPENED:
DAMAGE FINDINGS:
WHAT'S MISSING:
RECOMMENDATIONS:

Under WHAT'S MISSING and RECOMMENDATIONS use "- " bullet points.

{_context_block(claim_context(claim))}
"""
    return _messages(task)


def appeal_prompt(claim, denial_reason: str, *, denial_details: str | None, tone: str, supplement=None) -> List[Dict[str, str]]:
    supplement_block = ""
    if supplement is not None:
        supplement_block = (
            f"\nDENIED SUPPLEMENT: {supplement.item_description} (${supplement.amount:,.2f})\n"
        )
    task = f"""
Draft an appeal letter to the carrier disputing a claim denial.

TONE: {TONE_GUIDANCE[tone]}

DENIAL REASON: {denial_reason}
DENIAL DETAILS: {denial_details or '(none provided)'}
{supplement_block}
Respond using exactly these headings, each on its own line:
LETTER:
KEY POINTS:
SUPPORTING DOCUMENTATION:
CODE CITATIONS:

Under KEY POINTS, SUPPORTING DOCUMENTATION and CODE CITATIONS use "- " bullet points.

{_context_block(claim_context(claim))}
"""
    return _messages(task)


def code_summary_prompt(claim, requirements_text: str) -> List[Dict[str, str]]:
    task = f"""
Explain, in two short paragraphs for an insurance adjuster, why the following
building-code items are required on this roof replacement and what happens if
they are left out of the estimate.

CODE ITEMS:
{requirements_text}

{_context_block(claim_context(claim))}
"""
    return _messages(task)


def executive_summary_prompt(claim, narrative_text: str, urgency: str) -> List[Dict[str, str]]:
    task = f"""
Write a three-sentence executive summary of this claim for a carrier submission.
Urgency level: {urgency}.

NARRATIVE:
{narrative_text}

{_context_block(claim_context(claim))}
"""
    return _messages(task)


def claim_chat_prompt(claim, question: str) -> List[Dict[str, str]]:
    task = f"""
Answer the contractor's question about this claim using only the data below.
If the data does not answer it, say what is missing.

QUESTION: {question}

{_context_block(claim_context(claim))}
"""
    return _messages(task)
