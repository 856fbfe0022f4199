"""Geometry helpers for photo annotations.

Detections come back from the damage detector as axis-aligned boxes; the
packet and the annotation overlay draw them as ellipses inscribed in the box.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class BBox:
    x: float
    y: float
    width: float
    height: float

    def normalized(self) -> "BBox":
        """Flip negative width/height so the box grows right and down."""
        x, w = (self.x + self.width, -self.width) if self.width < 0 else (self.x, self.width)
        y, h = (self.y + self.height, -self.height) if self.height < 0 else (self.y, self.height)
        return BBox(x, y, w, h)


@dataclass(frozen=True)
class Ellipse:
    cx: float
    cy: float
    rx: float
    ry: float

    @property
    def area(self) -> float:
        return math.pi * self.rx * self.ry

    def contains(self, px: float, py: float) -> bool:
        if self.rx == 0 or self.ry == 0:
            return px == self.cx and py == self.cy
        dx = (px - self.cx) / self.rx
        dy = (py - self.cy) / self.ry
        return dx * dx + dy * dy <= 1.0

    def to_dict(self) -> dict:
        return {"cx": self.cx, "cy": self.cy, "rx": self.rx, "ry": self.ry}

    def to_svg(self, stroke: str = "#e53935", stroke_width: float = 3) -> str:
        return (
            f'<ellipse cx="{self.cx:g}" cy="{self.cy:g}" rx="{self.rx:g}" ry="{self.ry:g}" '
            f'fill="none" stroke="{stroke}" stroke-width="{stroke_width:g}" />'
        )


def bbox_to_ellipse(x: float, y: float, width: float, height: float) -> Ellipse:
    box = BBox(float(x), float(y), float(width), float(height)).normalized()
    rx = box.width / 2
    ry = box.height / 2
    return Ellipse(cx=box.x + rx, cy=box.y + ry, rx=rx, ry=ry)


def scale_bbox(coords: dict, image_width: float, image_height: float) -> BBox:
    """Convert detector coordinates to pixels.

    Detectors return either normalized (0-1) or pixel coordinates; a box whose
    values are all <= 1 is treated as normalized.
    """
    x = float(coords.get("x", 0))
    y = float(coords.get("y", 0))
    w = float(coords.get("width", 0))
    h = float(coords.get("height", 0))
    if all(abs(v) <= 1 for v in (x, y, w, h)):
        return BBox(x * image_width, y * image_height, w * image_width, h * image_height)
    return BBox(x, y, w, h)


SEVERITY_COLORS = {"low": "#fbc02d", "medium": "#fb8c00", "high": "#e53935"}


def damage_counts(detections: Iterable[dict]) -> dict:
    """Totals by damage type and severity for an annotation summary."""
    by_type: Counter = Counter()
    by_severity: Counter = Counter({"low": 0, "medium": 0, "high": 0})
    total = 0
    for det in detections:
        total += 1
        by_type[det.get("type") or "unknown"] += 1
        severity = (det.get("severity") or "low").lower()
        by_severity[severity] += 1

    most_common = by_type.most_common(1)[0][0] if by_type else None
    return {
        "total_damage_count": total,
        "by_type": dict(by_type),
        "severity_breakdown": dict(by_severity),
        "most_common_damage": most_common,
    }
