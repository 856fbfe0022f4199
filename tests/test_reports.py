import re

import pytest

from claimdesk.errors import FailedPrecondition, InvalidArgument, NotFound
from claimdesk.models import ClaimActivity, GeneratedReport
from claimdesk.reports import packet
from claimdesk.reports.templates import (
    PACKET_LAYOUTS,
    REPORT_SECTIONS,
    SECTION_CATEGORIES,
    default_section_order,
    get_layout,
    get_template,
    list_templates,
    resolve_sections,
    validate_section_data,
    variant_label,
)
from claimdesk.storage import resolve_path


def test_registry_is_consistent():
    keys = [s.key for s in REPORT_SECTIONS]
    assert len(keys) == len(set(keys)) == 14
    assert all(s.category in SECTION_CATEGORIES for s in REPORT_SECTIONS)
    assert all(s.variants for s in REPORT_SECTIONS)
    for layout, sections in PACKET_LAYOUTS.items():
        assert set(sections) <= set(keys), layout
    assert PACKET_LAYOUTS["nuclear"] == default_section_order()


def test_layout_lookup():
    assert get_layout("QUICK") == ["cover", "executive-summary", "pricing", "damage-annotated", "weather"]
    with pytest.raises(InvalidArgument):
        get_layout("mega")


def test_explicit_sections_are_validated():
    assert resolve_sections("quick", ["cover", "toc"]) == ["cover", "toc"]
    with pytest.raises(InvalidArgument):
        resolve_sections("quick", ["cover", "horoscope"])


def test_placeholder_validation_and_variants():
    assert validate_section_data("cover", {"claim_number": "C-1"}) == [
        "Cover Page: missing insured_name",
        "Cover Page: missing property_address",
    ]
    assert variant_label("photos", "grid") == "Grid"
    assert variant_label("photos", "mosaic") == "mosaic"


def test_template_catalog():
    assert get_template("retail-quote")["layout_key"] == "retail"
    assert {t["category"] for t in list_templates("Roofing")} == {"Roofing"}
    with pytest.raises(NotFound):
        get_template("nope")


@pytest.mark.parametrize("layout", sorted(PACKET_LAYOUTS))
def test_packet_html_has_one_page_per_section(claim, layout):
    html = packet.render_packet_html(claim, layout)
    found = re.findall(r'data-section="([^"]+)"', html)
    assert found == PACKET_LAYOUTS[layout]
    assert f"Page 1 of {len(found)}" in html
    assert "Summit Roofing" in html


def test_build_packet_stores_pdf_and_logs(claim, admin, monkeypatch):
    monkeypatch.setattr(packet, "_render_pdf", lambda html: (b"%PDF-1.4 test", 5))
    result = packet.build_packet_by_layout(claim, "quick", user=admin)
    assert result.page_count == 5
    assert result.sections == PACKET_LAYOUTS["quick"]
    report = GeneratedReport.query.one()
    assert report.kind == "packet" and report.layout_key == "quick"
    assert report.filename_stored.startswith("summit-roofing/claim_")
    assert resolve_path(report.filename_stored).read_bytes() == b"%PDF-1.4 test"
    assert ClaimActivity.query.filter_by(kind="document").count() == 1


def test_missing_weasyprint_is_a_failed_precondition(claim, monkeypatch):
    monkeypatch.setattr(packet, "HTML", None)
    with pytest.raises(FailedPrecondition):
        packet.build_packet_by_layout(claim, "quick")


def test_resolve_path_refuses_escape(app):
    with pytest.raises(NotFound):
        resolve_path("../../etc/passwd")


@pytest.mark.skipif(packet.HTML is None, reason="WeasyPrint not available")
@pytest.mark.parametrize("layout", ["quick", "retail", "weather"])
def test_rendered_pdf_page_count_matches_sections(claim, layout):
    result = packet.build_packet_by_layout(claim, layout)
    assert result.pdf_bytes.startswith(b"%PDF")
    assert result.page_count == len(PACKET_LAYOUTS[layout])
