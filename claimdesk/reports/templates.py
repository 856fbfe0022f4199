"""Report section registry, packet layouts and the template catalog.

A packet is an ordered list of section keys. Each section renders one page
from `templates/packet/sections/<key>.html`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..errors import InvalidArgument, NotFound

SECTION_CATEGORIES = [
    "header", "content", "evidence", "analysis", "technical", "financial", "legal", "footer",
]


@dataclass(frozen=True)
class SectionVariant:
    key: str
    label: str


@dataclass(frozen=True)
class ReportSection:
    key: str
    title: str
    category: str
    variants: Sequence[SectionVariant]
    placeholders: Sequence[str] = field(default_factory=tuple)
    ai_goal: Optional[str] = None
    layout_hint: str = "full-page"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "category": self.category,
            "variants": [{"key": v.key, "label": v.label} for v in self.variants],
            "placeholders": list(self.placeholders),
            "ai_goal": self.ai_goal,
            "layout_hint": self.layout_hint,
        }


def _v(*pairs) -> tuple:
    return tuple(SectionVariant(k, label) for k, label in pairs)


# ============================================================
#  SECTION REGISTRY (display order)
# ============================================================

REPORT_SECTIONS: List[ReportSection] = [
    ReportSection(
        "cover", "Cover Page", "header",
        _v(("branded", "Branded"), ("minimal", "Minimal")),
        placeholders=("claim_number", "insured_name", "property_address"),
        layout_hint="cover",
    ),
    ReportSection(
        "toc", "Table of Contents", "header",
        _v(("numbered", "Numbered"), ("compact", "Compact")),
    ),
    ReportSection(
        "executive-summary", "Executive Summary", "content",
        _v(("adjuster", "Adjuster"), ("homeowner", "Homeowner")),
        placeholders=("claim_number",),
        ai_goal="Summarize the loss, findings and requested scope in three sentences.",
    ),
    ReportSection(
        "weather", "Weather Verification", "evidence",
        _v(("detailed", "Detailed"), ("summary", "Summary")),
        ai_goal="Tie the documented storm to the date of loss.",
    ),
    ReportSection(
        "timeline", "Claim Timeline & Notes", "content",
        _v(("chronological", "Chronological"), ("grouped", "Grouped by type")),
    ),
    ReportSection(
        "photos", "Photo Documentation", "evidence",
        _v(("grid", "Grid"), ("full-width", "Full width")),
        layout_hint="photo-grid",
    ),
    ReportSection(
        "damage-annotated", "Annotated Damage", "evidence",
        _v(("overlay", "Ellipse overlay"), ("table", "Findings table")),
        ai_goal="Describe each detected damage area and its severity.",
    ),
    ReportSection(
        "scope", "Scope of Work", "technical",
        _v(("xactimate", "Xactimate-style"), ("plain", "Plain line items")),
    ),
    ReportSection(
        "code-compliance", "Code Compliance", "technical",
        _v(("full", "Full requirements"), ("missing-only", "Missing items only")),
        ai_goal="Explain why each missing code item is required.",
    ),
    ReportSection(
        "pricing", "Pricing Summary", "financial",
        _v(("detailed", "Detailed"), ("totals", "Totals only")),
    ),
    ReportSection(
        "depreciation", "Depreciation Recovery", "financial",
        _v(("itemized", "Itemized"), ("summary", "Summary")),
    ),
    ReportSection(
        "supplements", "Supplements", "financial",
        _v(("itemized", "Itemized"), ("summary", "Summary")),
    ),
    ReportSection(
        "signatures", "Signatures", "legal",
        _v(("contractor-homeowner", "Contractor & homeowner"), ("contractor-only", "Contractor only")),
        placeholders=("insured_name",),
    ),
    ReportSection(
        "attachments", "Attachments Index", "footer",
        _v(("list", "List"), ("table", "Table")),
    ),
]

_SECTIONS_BY_KEY: Dict[str, ReportSection] = {s.key: s for s in REPORT_SECTIONS}


# ============================================================
#  PACKET LAYOUTS
# ============================================================

PACKET_LAYOUTS: Dict[str, List[str]] = {
    "quick": ["cover", "executive-summary", "pricing", "damage-annotated", "weather"],
    "standard": [
        "cover", "toc", "executive-summary", "weather", "damage-annotated", "photos",
        "scope", "code-compliance", "pricing", "supplements", "signatures",
    ],
    "nuclear": [s.key for s in REPORT_SECTIONS],
    "retail": ["cover", "scope", "pricing", "signatures"],
    "weather": ["cover", "weather", "attachments"],
}


# ============================================================
#  TEMPLATE CATALOG
# ============================================================

TEMPLATE_CATEGORIES = [
    "Roofing", "Restoration", "Supplements", "Retail & Quotes", "Legal & Appraisal", "Specialty Reports",
]

REPORT_TEMPLATES: List[dict] = [
    {
        "id": "roof-claim-quick",
        "slug": "roof-claim-quick",
        "title": "Quick Roof Claim Packet",
        "description": "Five-page summary for a first submission to the carrier.",
        "category": "Roofing",
        "tags": ["roofing", "hail", "wind", "first-submission"],
        "layout_key": "quick",
        "intended_use": "Initial claim submission",
        "version": "1.0",
    },
    {
        "id": "roof-claim-standard",
        "slug": "roof-claim-standard",
        "title": "Standard Roof Claim Packet",
        "description": "Full evidence packet with code compliance and supplements.",
        "category": "Roofing",
        "tags": ["roofing", "code", "supplements"],
        "layout_key": "standard",
        "intended_use": "Adjuster review",
        "version": "1.2",
    },
    {
        "id": "full-claim-nuclear",
        "slug": "full-claim-nuclear",
        "title": "Complete Claim Dossier",
        "description": "Every section, for appraisal, re-inspection or disputed claims.",
        "category": "Legal & Appraisal",
        "tags": ["appraisal", "dispute", "complete"],
        "layout_key": "nuclear",
        "intended_use": "Appraisal and disputes",
        "version": "1.0",
    },
    {
        "id": "supplement-packet",
        "slug": "supplement-packet",
        "title": "Supplement Request Packet",
        "description": "Scope, code items and supplement line items for a supplement request.",
        "category": "Supplements",
        "tags": ["supplements", "code"],
        "layout_key": "standard",
        "intended_use": "Supplement submission",
        "version": "1.0",
    },
    {
        "id": "retail-quote",
        "slug": "retail-quote",
        "title": "Retail Roofing Quote",
        "description": "Scope and pricing for a non-insurance retail job.",
        "category": "Retail & Quotes",
        "tags": ["retail", "quote"],
        "layout_key": "retail",
        "intended_use": "Homeowner quote",
        "version": "1.0",
    },
    {
        "id": "weather-verification",
        "slug": "weather-verification",
        "title": "Weather Verification Report",
        "description": "Storm data for the date of loss with attachments.",
        "category": "Specialty Reports",
        "tags": ["weather", "hail", "wind"],
        "layout_key": "weather",
        "intended_use": "Date-of-loss verification",
        "version": "1.0",
    },
]


# ---- helpers ----

def get_section(key: str) -> ReportSection:
    section = _SECTIONS_BY_KEY.get(key)
    if section is None:
        raise InvalidArgument(f"Unknown report section '{key}'.")
    return section


def get_layout(layout_key: str) -> List[str]:
    sections = PACKET_LAYOUTS.get((layout_key or "").lower())
    if sections is None:
        raise InvalidArgument(
            f"Unknown layout '{layout_key}'. Use one of: {', '.join(PACKET_LAYOUTS)}."
        )
    return list(sections)


def default_section_order() -> List[str]:
    return [s.key for s in REPORT_SECTIONS]


def sections_by_category(category: str) -> List[ReportSection]:
    return [s for s in REPORT_SECTIONS if s.category == category]


def variant_label(section_key: str, variant_key: str) -> str:
    for v in get_section(section_key).variants:
        if v.key == variant_key:
            return v.label
    return variant_key


def validate_section_data(section_key: str, data: dict) -> List[str]:
    """Error messages for required placeholders missing from `data`."""
    section = get_section(section_key)
    errors = []
    for placeholder in section.placeholders:
        if data.get(placeholder) in (None, ""):
            errors.append(f"{section.title}: missing {placeholder}")
    return errors


def resolve_sections(layout_key: str, sections: Optional[Sequence[str]] = None) -> List[str]:
    """Layout order, or an explicit section list validated against the registry."""
    layout = get_layout(layout_key)
    if sections:
        keys = [str(s) for s in sections]
        for key in keys:
            get_section(key)
        return keys
    return layout


def get_template(template_id: str) -> dict:
    for tpl in REPORT_TEMPLATES:
        if tpl["id"] == template_id or tpl["slug"] == template_id:
            return tpl
    raise NotFound(f"Report template '{template_id}' not found.")


def list_templates(category: Optional[str] = None) -> List[dict]:
    if not category:
        return list(REPORT_TEMPLATES)
    return [t for t in REPORT_TEMPLATES if t["category"] == category]
