"""Weather, photo annotation and vendor catalog endpoints."""

from __future__ import annotations

from flask import request

from ..errors import InvalidArgument, NotFound
from ..integrations.annotation import annotate_photo
from ..integrations.vendors import ensure_seed_vendors, sync_vendor, vendor_to_dict, vendors_near
from ..integrations.weather import (
    PACKET_FORMATS,
    WeatherClient,
    build_weather_packet,
    record_weather_for_claim,
    snapshot_from_report,
)
from ..geometry import damage_counts
from ..models import Claim, Vendor, WeatherReport
from ..tenancy import current_user, get_org_object_or_404, require_permission
from ..utils.validation import parse_date
from . import api_bp
from .helpers import flag, json_body, ok


def _weather_dict(report: WeatherReport) -> dict:
    data = snapshot_from_report(report).to_dict()
    data["id"] = report.id
    return data


@api_bp.route("/claims/<int:claim_id>/weather", methods=["POST"])
@require_permission("claims:edit")
def claim_weather(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    json_body()
    report = record_weather_for_claim(claim, user=current_user())
    return ok(201, weather=_weather_dict(report))


@api_bp.route("/claims/<int:claim_id>/annotations", methods=["POST"])
@require_permission("claims:edit")
def claim_annotate(claim_id: int):
    claim = get_org_object_or_404(Claim, claim_id)
    data = json_body()
    assessment = annotate_photo(claim, data.get("image_url") or "", user=current_user())
    detections = assessment.detections
    return ok(
        201,
        assessment={
            "id": assessment.id,
            "image_url": assessment.image_url,
            "damage_type": assessment.damage_type,
            "severity": assessment.severity,
            "confidence": assessment.confidence,
            "is_mock": assessment.is_mock,
            "detections": detections,
        },
        summary=damage_counts(detections),
    )


@api_bp.route("/weather/packet", methods=["GET"])
@require_permission("reports:view")
def weather_packet():
    fmt = (request.args.get("format") or "CLAIMS").strip().upper()
    if fmt not in PACKET_FORMATS:
        raise InvalidArgument(f"Unknown weather packet format '{fmt}'. Use one of: {', '.join(PACKET_FORMATS)}.")
    peril = (request.args.get("peril") or "").strip()

    claim_id = request.args.get("claim_id")
    if claim_id:
        try:
            claim = get_org_object_or_404(Claim, int(claim_id))
        except ValueError:
            raise InvalidArgument("claim_id must be an integer.")
        if not claim.weather_reports:
            raise NotFound("No weather report recorded for this claim.")
        report = max(claim.weather_reports, key=lambda r: r.id)
        snapshot = snapshot_from_report(report)
        address = claim.property.full_address if claim.property else ""
        dol = claim.date_of_loss
    else:
        address = (request.args.get("address") or "").strip()
        lat = request.args.get("lat", type=float)
        lon = request.args.get("lon", type=float)
        try:
            dol = parse_date(request.args.get("date"))
        except ValueError:
            raise InvalidArgument("date must be YYYY-MM-DD or MM/DD/YYYY.")
        snapshot = WeatherClient().fetch_event(latitude=lat, longitude=lon, address=address, date_of_loss=dol)

    packet = build_weather_packet(
        fmt, snapshot, address=address, date_of_loss=dol.strftime("%m/%d/%Y") if dol else "", peril=peril
    )
    return ok(packet=packet)


@api_bp.route("/vendors", methods=["GET"])
@require_permission("vendors:view")
def list_vendors():
    ensure_seed_vendors()
    vendors = vendors_near((request.args.get("zip") or "").strip() or None)
    category = (request.args.get("category") or "").strip()
    if category:
        vendors = [v for v in vendors if category in v.categories]
    include_products = flag(request.args.get("products"))
    return ok(vendors=[vendor_to_dict(v, include_products=include_products) for v in vendors])


@api_bp.route("/vendors/<slug>/sync", methods=["POST"])
@require_permission("vendors:edit")
def sync_vendor_catalog(slug: str):
    ensure_seed_vendors()
    vendor = Vendor.query.filter_by(slug=slug).first()
    if vendor is None:
        raise NotFound(f"Vendor '{slug}' not found.")
    result = sync_vendor(vendor)
    return ok(sync=result.to_dict(), vendor=vendor_to_dict(vendor, include_products=True))
