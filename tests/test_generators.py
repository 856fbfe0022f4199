import json

import pytest

from claimdesk import db
from claimdesk.errors import ExternalServiceError, InvalidArgument
from claimdesk.generators import appeal, carrier_summary, chat, code_compliance, narrative
from claimdesk.generators.sections import extract_bullets, extract_sections
from claimdesk.models import Estimate, WeatherReport


def _meta(text, source="openai"):
    return {"text": text, "model_source": source, "model": "gpt-4o-mini", "latency_ms": 12}


# ---- section parsing ----

def test_extract_sections_tolerates_markdown_headings():
    text = (
        "## What happened\nHail hit the roof.\n\n"
        "**DAMAGE FINDINGS:** Bruised shingles on the south slope.\n"
        "What's missing:\n- Weather report\n"
        "RECOMMENDATIONS\n1. Approve full replacement\n2) Add drip edge\n"
    )
    sections = extract_sections(text, narrative.HEADINGS)
    assert sections["WHAT HAPPENED"] == "Hail hit the roof."
    assert sections["DAMAGE FINDINGS"] == "Bruised shingles on the south slope."
    assert extract_bullets(sections["WHAT'S MISSING"]) == ["Weather report"]
    assert extract_bullets(sections["RECOMMENDATIONS"]) == ["Approve full replacement", "Add drip edge"]


def test_extract_bullets_falls_back_to_lines():
    assert extract_bullets("first\n\nsecond") == ["first", "second"]


# ---- code compliance ----

def test_code_requirements_for_high_wind_state():
    codes = [r.code for r in code_compliance.requirements_for("TX", "asphalt_shingle")]
    assert "IRC R905.2.4.1" in codes
    assert "IRC R905.2.7.1" not in codes
    assert codes[-1] == "IRC R905.2.8.4"


def test_ice_barrier_only_in_cold_states():
    codes = [r.code for r in code_compliance.requirements_for("MN", "asphalt_shingle")]
    assert "IRC R905.2.7.1" in codes


def test_no_estimate_means_everything_missing_and_critical():
    summary = code_compliance.build_code_summary("AZ", "asphalt_shingle", 2004, None)
    assert len(summary.missing_items) == len(summary.requirements)
    assert summary.urgency == "critical"
    assert summary.total_estimated_cost == round(sum(r.estimated_cost for r in summary.requirements), 2)


def test_keys_like_unit_price_do_not_satisfy_keywords(claim):
    items = [
        {"description": "Synthetic underlayment", "unit_price": 32.0, "total": 320},
        {"description": "Drip edge", "unit_price": 3.1, "total": 31},
    ]
    estimate = Estimate(org_id=claim.org_id, claim_id=claim.id, line_items_json=json.dumps(items))
    summary = code_compliance.build_code_summary("MN", "asphalt_shingle", 2004, estimate)
    missing = {m.category for m in summary.missing_items}
    assert "underlayment" not in missing
    assert "ice_water" in missing


def test_fully_covered_estimate_still_lists_every_requirement(claim):
    items = [{"description": d} for d in (
        "Synthetic underlayment", "Drip edge and step flashing", "Starter strip", "Ridge cap",
        "Valley metal", "Ridge vent", "Coil roofing nails", "Ice and water shield",
    )]
    estimate = Estimate(org_id=claim.org_id, claim_id=claim.id, line_items_json=json.dumps(items))
    summary = code_compliance.build_code_summary("AZ", "asphalt_shingle", 2004, estimate)
    assert summary.missing_items == []
    assert summary.urgency == "low"
    assert len(summary.required_items) == len(summary.requirements) == 9
    assert summary.required_items[0].startswith("IRC R905.2.3: Solid roof deck sheathing - ")
    assert summary.safety_concerns == [
        "Drip edge at eaves and rakes: Required at eaves and gables to direct water away from fascia",
        "Step flashing at sidewalls: Required where the roof meets a vertical wall to prevent water intrusion",
    ]


def test_roof_type_match_ignores_case():
    upper = code_compliance.requirements_for("TX", "ASPHALT_SHINGLE")
    assert len(upper) == 10
    assert upper == code_compliance.requirements_for("TX", "asphalt_shingle")
    assert [r.code for r in code_compliance.requirements_for("TX", "metal")] == ["IRC R905.2.4.1", "IRC R905.2.8.4"]


def test_urgency_levels():
    reqs = code_compliance.requirements_for("AZ", "asphalt_shingle")
    non_safety = [r for r in reqs if r.category not in code_compliance.SAFETY_CATEGORIES]
    assert code_compliance.urgency_for([]) == "low"
    assert code_compliance.urgency_for(non_safety[:2]) == "low"
    assert code_compliance.urgency_for(non_safety[:3]) == "medium"
    assert code_compliance.urgency_for(non_safety[:5]) == "high"


def test_carrier_text_lists_missing_items(claim):
    summary = code_compliance.generate_code_summary(claim, explain=False)
    text = code_compliance.format_code_requirements_for_carrier(summary)
    assert text.startswith("BUILDING CODE REQUIREMENTS")
    assert "Jurisdiction: AZ" in text
    assert "1. IRC R905.2.3" in text


# ---- narrative ----

def test_narrative_template_fallback_with_mock_backend(claim):
    n = narrative.generate_narrative(claim, "adjuster")
    assert n.model_source == "template"
    assert "1420 W Camelback Rd" in n.what_happened
    assert "Weather verification report for the date of loss" in n.whats_missing
    assert n.full_text.startswith("WHAT HAPPENED:")


def test_narrative_rejects_unknown_audience(claim):
    with pytest.raises(InvalidArgument):
        narrative.generate_narrative(claim, "lawyer")


def test_narrative_parses_model_reply_and_merges_missing(claim, monkeypatch):
    reply = (
        "WHAT HAPPENED:\nA hail storm struck.\n"
        "DAMAGE FINDINGS:\nSouth slope bruising.\n"
        "WHAT'S MISSING:\n- Itemized repair estimate\n"
        "RECOMMENDATIONS:\n- Replace the roof\n"
    )
    monkeypatch.setattr(narrative, "call_llm_with_meta", lambda *a, **k: _meta(reply))
    n = narrative.generate_narrative(claim, "homeowner")
    assert n.model_source == "openai"
    assert n.what_happened == "A hail storm struck."
    assert n.recommendations == ["Replace the roof"]
    assert n.whats_missing[0] == "Itemized repair estimate"
    assert "Weather verification report for the date of loss" in n.whats_missing
    assert n.whats_missing.count("Itemized repair estimate") == 1


def test_narrative_backend_failure_falls_back(claim, monkeypatch):
    def boom(*a, **k):
        raise ExternalServiceError("down")

    monkeypatch.setattr(narrative, "call_llm_with_meta", boom)
    assert narrative.generate_narrative(claim).model_source == "template"


def test_weather_sentence_uses_recorded_report(claim):
    db.session.add(WeatherReport(
        org_id=claim.org_id, claim_id=claim.id, event_type="Hail Storm",
        max_wind_speed=62.0, max_hail_size=1.75,
    ))
    db.session.commit()
    n = narrative.template_narrative(claim, "adjuster")
    assert "wind gusts up to 62 mph" in n.what_happened
    assert 'hail up to 1.75"' in n.what_happened


# ---- appeal ----

def test_appeal_requires_reason_and_known_tone(claim):
    with pytest.raises(InvalidArgument):
        appeal.generate_appeal(claim, "too short")
    with pytest.raises(InvalidArgument):
        appeal.generate_appeal(claim, "Damage is pre-existing wear and tear", tone="angry")


def test_appeal_template_letter(claim):
    letter = appeal.generate_appeal(claim, "Damage is pre-existing wear and tear", tone="legal")
    assert letter.model_source == "template"
    assert "formal written appeal" in letter.letter
    assert "Dear Pat Keller," in letter.letter
    assert "IRC R905.2.7" in letter.code_citations


def test_appeal_whole_reply_becomes_letter_without_headings(claim, monkeypatch):
    monkeypatch.setattr(appeal, "call_llm_with_meta", lambda *a, **k: _meta("Dear adjuster, please reconsider."))
    letter = appeal.generate_appeal(claim, "Damage is pre-existing wear and tear", tone="firm")
    assert letter.letter == "Dear adjuster, please reconsider."
    assert letter.model_source == "openai"
    assert letter.key_points


# ---- carrier summary / chat ----

def test_carrier_summary_packet_and_delivery_text(claim):
    packet = carrier_summary.generate_carrier_summary(claim)
    assert packet.claim_number == "CLM-2024-1001"
    assert packet.urgency == "critical"
    assert packet.recommended_actions[0].startswith("URGENT")
    text = carrier_summary.format_packet_for_delivery(packet)
    assert "EXECUTIVE SUMMARY" in text
    assert "RECOMMENDED ACTIONS" in text


def test_chat_validates_message(claim):
    with pytest.raises(InvalidArgument):
        chat.answer_claim_question(claim, "   ")
    with pytest.raises(InvalidArgument):
        chat.answer_claim_question(claim, "x" * (chat.MAX_QUESTION_CHARS + 1))


def test_chat_template_answer(claim):
    result = chat.answer_claim_question(claim, "What is left to do?")
    assert result["model_source"] == "template"
    assert "CLM-2024-1001" in result["answer"]
