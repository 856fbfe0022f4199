"""AI damage detection on roof photos.

`ANNOTATION_API_URL` accepts `POST {"image_url": ...}` and returns
`{"detections": [{type, confidence, coordinates{x,y,width,height}, description,
severity}], "image_width", "image_height"}`. Failures fall back to mock
detections. Each stored detection gains an `overlay` ellipse in a 1000x1000
box so templates can draw it over the photo at any size.
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
import random
from typing import List, Optional

import requests
from flask import current_app

from ..errors import InvalidArgument
from ..extensions import db
from ..geometry import SEVERITY_COLORS, bbox_to_ellipse, damage_counts, scale_bbox
from ..models import ClaimActivity, DamageAssessment

logger = logging.getLogger(__name__)

OVERLAY_SIZE = 1000
SEVERITIES = ("low", "medium", "high")

_MOCK_TYPES = [
    ("hail_impact", "Circular bruising with granule loss consistent with hail"),
    ("missing_shingle", "Shingle tab missing, exposed mat and fasteners"),
    ("lifted_shingle", "Seal strip failure with lifted tab"),
    ("granule_loss", "Granule loss exposing asphalt"),
    ("flashing_damage", "Bent or displaced metal flashing"),
]


def mock_detections(image_url: str) -> List[dict]:
    seed = int(hashlib.sha256((image_url or "").encode("utf-8")).hexdigest()[:8], 16)
    rng = random.Random(seed)
    dets = []
    for _ in range(rng.randint(2, 5)):
        kind, desc = rng.choice(_MOCK_TYPES)
        w = round(rng.uniform(0.05, 0.2), 3)
        h = round(rng.uniform(0.05, 0.2), 3)
        dets.append({
            "type": kind,
            "confidence": round(rng.uniform(0.6, 0.97), 2),
            "coordinates": {
                "x": round(rng.uniform(0, 1 - w), 3),
                "y": round(rng.uniform(0, 1 - h), 3),
                "width": w,
                "height": h,
            },
            "description": desc,
            "severity": rng.choice(SEVERITIES),
        })
    return dets


class DetectorClient:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        cfg = current_app.config
        self.base_url = base_url or cfg.get("ANNOTATION_API_URL")
        self.timeout = timeout or cfg.get("HTTP_TIMEOUT", 15)

    def _fallback(self, image_url: str) -> tuple:
        return normalize_detections(mock_detections(image_url), None, None), True

    def detect(self, image_url: str) -> tuple:
        """Return (normalized detections, is_mock)."""
        if not self.base_url:
            return self._fallback(image_url)
        try:
            resp = requests.post(self.base_url, json={"image_url": image_url}, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, dict) or not isinstance(data.get("detections"), list):
                raise ValueError("detector response has no detections list")
            width = _positive(data.get("image_width"))
            height = _positive(data.get("image_height"))
            detections = normalize_detections(data["detections"], width, height)
            if data["detections"] and not detections:
                raise ValueError("detector returned no usable detections")
            return detections, False
        except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
            logger.warning("Damage detection failed for %s: %s; using mock detections", image_url, e)
            return self._fallback(image_url)


def _positive(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) and number > 0 else None


def _with_overlay(det: dict, image_width, image_height) -> dict:
    coords = det.get("coordinates")
    if not isinstance(coords, dict):
        raise ValueError("detection has no coordinates")
    if image_width and image_height:
        box = scale_bbox(coords, image_width, image_height)
        sx, sy = OVERLAY_SIZE / image_width, OVERLAY_SIZE / image_height
        ellipse = bbox_to_ellipse(box.x * sx, box.y * sy, box.width * sx, box.height * sy)
    else:
        box = scale_bbox(coords, OVERLAY_SIZE, OVERLAY_SIZE)
        ellipse = bbox_to_ellipse(box.x, box.y, box.width, box.height)
    overlay = {k: round(v, 2) for k, v in ellipse.to_dict().items()}
    if not all(math.isfinite(v) for v in overlay.values()):
        raise ValueError("detection coordinates are not finite")

    severity = str(det.get("severity") or "low").lower()
    if severity not in SEVERITIES:
        severity = "low"
    confidence = det.get("confidence")
    out = dict(det)
    out["type"] = str(det.get("type") or "unknown")
    out["confidence"] = float(confidence) if confidence is not None else None
    out["severity"] = severity
    out["overlay"] = overlay
    out["color"] = SEVERITY_COLORS[severity]
    return out


def normalize_detections(raw: list, image_width, image_height) -> List[dict]:
    """Overlay-ready detections; entries without usable coordinates are dropped."""
    detections = []
    for det in raw:
        if not isinstance(det, dict):
            continue
        try:
            detections.append(_with_overlay(det, image_width, image_height))
        except (TypeError, ValueError) as e:
            logger.debug("Skipping detection %r: %s", det, e)
    return detections


def annotate_photo(claim, image_url: str, client: Optional[DetectorClient] = None, user=None) -> DamageAssessment:
    image_url = (image_url or "").strip() if isinstance(image_url, str) else ""
    if not image_url:
        raise InvalidArgument("image_url is required.")
    client = client or DetectorClient()
    detections, is_mock = client.detect(image_url)

    summary = damage_counts(detections)
    top = max(detections, key=lambda d: d.get("confidence") or 0, default=None)
    worst = "low"
    for d in detections:
        if SEVERITIES.index(d["severity"]) > SEVERITIES.index(worst):
            worst = d["severity"]

    assessment = DamageAssessment(
        org_id=claim.org_id,
        claim_id=claim.id,
        image_url=image_url,
        damage_type=summary["most_common_damage"],
        severity=worst if detections else None,
        confidence=top.get("confidence") if top else None,
        detections_json=json.dumps(detections),
        is_mock=is_mock,
    )
    db.session.add(assessment)
    db.session.add(
        ClaimActivity(
            org_id=claim.org_id,
            claim_id=claim.id,
            user_id=user.id if user is not None else None,
            kind="photo",
            message=f"Photo annotated: {summary['total_damage_count']} damage area(s)",
        )
    )
    db.session.commit()
    return assessment
