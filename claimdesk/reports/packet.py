"""PDF packet assembly.

`build_packet_by_layout` walks the section list for a layout key, renders one
Jinja template per section (one page each), wraps them in the packet shell
and hands the HTML to WeasyPrint. The PDF is stored under the documents root
and recorded as a GeneratedReport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from flask import current_app, render_template

# Optional WeasyPrint import for PDF generation.
# We catch any Exception here and fall back to HTML = None.
try:
    from weasyprint import HTML
except Exception:
    HTML = None

from ..depreciation import summarize_payout
from ..errors import FailedPrecondition
from ..extensions import db
from ..generators.code_compliance import generate_code_summary
from ..generators.narrative import generate_narrative
from ..geometry import damage_counts
from ..models import ClaimActivity, GeneratedReport
from .. import storage
from .templates import get_section, resolve_sections

logger = logging.getLogger(__name__)


@dataclass
class PacketResult:
    pdf_bytes: bytes
    page_count: int
    report: GeneratedReport
    sections: List[str]


def build_packet_context(claim) -> dict:
    """Data shared by every section template."""
    narrative = generate_narrative(claim, audience="adjuster")
    code_summary = generate_code_summary(claim)
    payout = summarize_payout(
        claim.depreciation_items,
        claim.supplements,
        deductible=claim.deductible,
        acv_paid=claim.acv_paid,
    )
    estimate = claim.latest_estimate

    assessments = []
    all_detections = []
    for a in claim.damage_assessments:
        dets = a.detections
        all_detections.extend(dets)
        assessments.append({"assessment": a, "detections": dets})

    attachments = []
    if estimate is not None:
        attachments.append(f"Estimate ({estimate.source or 'contractor'}) - ${estimate.total_amount or 0:,.2f}")
    attachments += [f"Weather report - {w.event_type or 'storm'} ({w.source or 'n/a'})" for w in claim.weather_reports]
    attachments += [f"Photo - {a.image_url}" for a in claim.damage_assessments if a.image_url]
    attachments += [f"Prior document - {r.filename_stored}" for r in claim.reports]

    return {
        "org": claim.organization,
        "claim": claim,
        "property": claim.property,
        "narrative": narrative,
        "code_summary": code_summary,
        "payout": payout,
        "estimate": estimate,
        "line_items": estimate.line_items if estimate else [],
        "weather_reports": claim.weather_reports,
        "assessments": assessments,
        "damage_summary": damage_counts(all_detections),
        "supplements": claim.supplements,
        "depreciation_items": claim.depreciation_items,
        "activities": claim.activities,
        "attachments": attachments,
        "generated_on": date.today(),
    }


def render_packet_html(claim, layout_key: str, sections: Optional[Sequence[str]] = None, context: Optional[dict] = None) -> str:
    keys = resolve_sections(layout_key, sections)
    ctx = context if context is not None else build_packet_context(claim)
    toc = [{"number": i, "title": get_section(k).title} for i, k in enumerate(keys, start=1)]

    pages = []
    for number, key in enumerate(keys, start=1):
        section = get_section(key)
        body = render_template(
            f"packet/sections/{key}.html",
            section=section,
            page_number=number,
            page_total=len(keys),
            toc=toc,
            **ctx,
        )
        pages.append({"key": key, "title": section.title, "body": body, "number": number})

    return render_template(
        "packet/base.html",
        pages=pages,
        layout_key=layout_key,
        **ctx,
    )


def _render_pdf(html: str) -> tuple:
    """Return (pdf_bytes, page_count)."""
    if HTML is None:
        raise FailedPrecondition("PDF generation is not available (WeasyPrint is not installed).")
    document = HTML(string=html, base_url=current_app.root_path).render()
    return document.write_pdf(), len(document.pages)


def _record(claim, kind: str, pdf_bytes: bytes, page_count: int, *, layout_key=None, user=None) -> GeneratedReport:
    filename = storage.build_filename(claim, layout_key or kind)
    stored = storage.save_bytes(claim, filename, pdf_bytes)
    report = GeneratedReport(
        org_id=claim.org_id,
        claim_id=claim.id,
        kind=kind,
        layout_key=layout_key,
        filename_stored=stored,
        page_count=page_count,
        created_by_id=user.id if user is not None else None,
    )
    db.session.add(report)
    db.session.add(
        ClaimActivity(
            org_id=claim.org_id,
            claim_id=claim.id,
            user_id=user.id if user is not None else None,
            kind="document",
            message=f"Generated {kind} PDF ({layout_key or kind}, {page_count} pages)",
        )
    )
    db.session.commit()
    logger.info("Stored %s PDF for claim %s at %s", kind, claim.id, stored)
    return report


def build_packet_by_layout(claim, layout_key: str, *, sections: Optional[Sequence[str]] = None, user=None) -> PacketResult:
    keys = resolve_sections(layout_key, sections)
    html = render_packet_html(claim, layout_key, keys)
    pdf_bytes, page_count = _render_pdf(html)
    if page_count != len(keys):
        logger.warning(
            "Packet for claim %s rendered %d pages for %d sections", claim.id, page_count, len(keys)
        )
    report = _record(claim, "packet", pdf_bytes, page_count, layout_key=layout_key, user=user)
    return PacketResult(pdf_bytes=pdf_bytes, page_count=page_count, report=report, sections=keys)


def build_appeal_pdf(claim, letter, *, user=None) -> PacketResult:
    html = render_template("packet/appeal.html", claim=claim, org=claim.organization, letter=letter)
    pdf_bytes, page_count = _render_pdf(html)
    report = _record(claim, "appeal", pdf_bytes, page_count, user=user)
    return PacketResult(pdf_bytes=pdf_bytes, page_count=page_count, report=report, sections=["appeal"])


def build_depreciation_pdf(claim, summary, *, user=None) -> PacketResult:
    html = render_template(
        "packet/depreciation_export.html",
        claim=claim,
        org=claim.organization,
        payout=summary,
        depreciation_items=claim.depreciation_items,
        supplements=claim.supplements,
        generated_on=date.today(),
    )
    pdf_bytes, page_count = _render_pdf(html)
    report = _record(claim, "depreciation", pdf_bytes, page_count, user=user)
    return PacketResult(pdf_bytes=pdf_bytes, page_count=page_count, report=report, sections=["depreciation"])
