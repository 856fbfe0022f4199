import math

from claimdesk.geometry import bbox_to_ellipse, damage_counts, scale_bbox


def test_ellipse_is_inscribed_in_box():
    e = bbox_to_ellipse(100, 50, 200, 80)
    assert (e.cx, e.cy, e.rx, e.ry) == (200, 90, 100, 40)
    assert math.isclose(e.area, math.pi * 4000)


def test_negative_dimensions_are_flipped():
    assert bbox_to_ellipse(300, 130, -200, -80) == bbox_to_ellipse(100, 50, 200, 80)


def test_contains_checks_boundary():
    e = bbox_to_ellipse(0, 0, 20, 10)
    assert e.contains(10, 5)
    assert e.contains(20, 5)
    assert not e.contains(20, 10)


def test_degenerate_ellipse_only_contains_its_center():
    e = bbox_to_ellipse(5, 5, 0, 0)
    assert e.contains(5, 5)
    assert not e.contains(5.1, 5)


def test_svg_markup():
    svg = bbox_to_ellipse(0, 0, 10, 20).to_svg()
    assert svg.startswith("<ellipse")
    assert 'cx="5" cy="10" rx="5" ry="10"' in svg


def test_scale_bbox_normalized_vs_pixels():
    box = scale_bbox({"x": 0.1, "y": 0.2, "width": 0.5, "height": 0.25}, 1000, 800)
    assert (box.x, box.y, box.width, box.height) == (100, 160, 500, 200)
    box = scale_bbox({"x": 10, "y": 20, "width": 30, "height": 40}, 1000, 800)
    assert (box.x, box.y, box.width, box.height) == (10, 20, 30, 40)


def test_damage_counts():
    summary = damage_counts([
        {"type": "hail_impact", "severity": "high"},
        {"type": "hail_impact", "severity": "low"},
        {"type": "granule_loss", "severity": "medium"},
    ])
    assert summary["total_damage_count"] == 3
    assert summary["by_type"] == {"hail_impact": 2, "granule_loss": 1}
    assert summary["severity_breakdown"] == {"low": 1, "medium": 1, "high": 1}
    assert summary["most_common_damage"] == "hail_impact"


def test_damage_counts_empty():
    summary = damage_counts([])
    assert summary["total_damage_count"] == 0
    assert summary["most_common_damage"] is None
