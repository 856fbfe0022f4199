"""Historical weather for a property and date of loss.

`WeatherClient` calls a Visual Crossing style timeline API
(`<base>/<location>/<date>?key=...&unitGroup=us`). When no API key is set, or
the request fails for any reason, it returns deterministic estimated data
flagged `is_mock=True` so packets can still be assembled.
"""

from __future__ import annotations

import hashlib
import logging
import random
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional
from urllib.parse import quote

import requests
from flask import current_app

from ..errors import InvalidArgument
from ..extensions import db
from ..models import ClaimActivity, WeatherReport

logger = logging.getLogger(__name__)

PACKET_FORMATS = ("CLAIMS", "HOMEOWNER", "QUICK", "PA")

HAIL_DAMAGE_THRESHOLD_IN = 1.0
WIND_DAMAGE_THRESHOLD_MPH = 58.0


@dataclass
class WeatherSnapshot:
    event_type: str
    report_date: Optional[date]
    max_wind_speed: Optional[float]
    max_hail_size: Optional[float]
    precip_in: Optional[float]
    summary: str
    source: str
    is_mock: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["report_date"] = self.report_date.isoformat() if self.report_date else None
        return data


def _location_key(latitude, longitude, address) -> str:
    if latitude is not None and longitude is not None:
        return f"{float(latitude):.4f},{float(longitude):.4f}"
    return (address or "").strip()


def mock_snapshot(location: str, when: Optional[date]) -> WeatherSnapshot:
    """Deterministic stand-in data seeded from location and date."""
    seed_src = f"{location}|{when.isoformat() if when else ''}"
    seed = int(hashlib.sha256(seed_src.encode("utf-8")).hexdigest()[:8], 16)
    rng = random.Random(seed)
    hail = round(rng.choice([0.75, 1.0, 1.25, 1.5, 1.75, 2.0]), 2)
    wind = float(rng.randint(40, 75))
    precip = round(rng.uniform(0.2, 2.5), 2)
    event = "Hail Storm" if hail >= HAIL_DAMAGE_THRESHOLD_IN else "Thunderstorm"
    return WeatherSnapshot(
        event_type=event,
        report_date=when,
        max_wind_speed=wind,
        max_hail_size=hail,
        precip_in=precip,
        summary=(
            f"Estimated conditions: {event.lower()} with gusts near {wind:g} mph, "
            f'hail up to {hail:g}" and {precip:g}" of rain. Verify with a licensed weather report.'
        ),
        source="estimated",
        is_mock=True,
    )


class WeatherClient:
    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, timeout: Optional[int] = None):
        cfg = current_app.config
        self.base_url = (base_url or cfg.get("WEATHER_API_URL") or "").rstrip("/")
        self.api_key = api_key if api_key is not None else cfg.get("WEATHER_API_KEY")
        self.timeout = timeout or cfg.get("HTTP_TIMEOUT", 15)

    def _parse(self, data, when: Optional[date]) -> WeatherSnapshot:
        if not isinstance(data, dict):
            raise ValueError("weather response is not an object")
        days = data.get("days") or []
        if not isinstance(days, list) or not days or not isinstance(days[0], dict):
            raise ValueError("weather response has no daily data")
        day = days[0]
        gust = day.get("windgust") if day.get("windgust") is not None else day.get("windspeed")
        precip_types = [str(p).lower() for p in (day.get("preciptype") or [])]
        conditions = str(day.get("conditions") or "")
        hail = day.get("hail") or day.get("hailsize")
        if hail or "hail" in precip_types or "hail" in conditions.lower():
            event = "Hail Storm"
        elif gust is not None and float(gust) >= WIND_DAMAGE_THRESHOLD_MPH:
            event = "High Wind Event"
        elif precip_types:
            event = "Thunderstorm" if "storm" in conditions.lower() else "Rain Event"
        else:
            event = conditions or "Weather Event"

        report_date = when
        if day.get("datetime"):
            try:
                report_date = datetime.strptime(day["datetime"], "%Y-%m-%d").date()
            except ValueError:
                pass

        return WeatherSnapshot(
            event_type=event,
            report_date=report_date,
            max_wind_speed=float(gust) if gust is not None else None,
            max_hail_size=float(hail) if hail else None,
            precip_in=float(day["precip"]) if day.get("precip") is not None else None,
            summary=day.get("description") or conditions or "",
            source="visualcrossing",
        )

    def fetch_event(
        self,
        *,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        address: Optional[str] = None,
        date_of_loss: Optional[date] = None,
    ) -> WeatherSnapshot:
        location = _location_key(latitude, longitude, address)
        if not location:
            raise InvalidArgument("A property address or coordinates are required for weather lookups.")

        if not self.api_key or not self.base_url:
            logger.warning("Weather API not configured; using estimated data")
            return mock_snapshot(location, date_of_loss)

        when = (date_of_loss or date.today()).isoformat()
        url = f"{self.base_url}/{quote(location)}/{when}"
        params = {"key": self.api_key, "unitGroup": "us", "include": "days", "contentType": "json"}
        try:
            resp = requests.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return self._parse(resp.json(), date_of_loss)
        except (requests.RequestException, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning("Weather lookup failed for %s on %s: %s; using estimated data", location, when, e)
            return mock_snapshot(location, date_of_loss)


def record_weather_for_claim(claim, client: Optional[WeatherClient] = None, user=None) -> WeatherReport:
    prop = claim.property
    if prop is None:
        raise InvalidArgument("Add a property to the claim before requesting weather data.")
    client = client or WeatherClient()
    snapshot = client.fetch_event(
        latitude=prop.latitude,
        longitude=prop.longitude,
        address=prop.full_address,
        date_of_loss=claim.date_of_loss,
    )
    report = WeatherReport(
        org_id=claim.org_id,
        claim_id=claim.id,
        event_type=snapshot.event_type,
        report_date=snapshot.report_date,
        max_wind_speed=snapshot.max_wind_speed,
        max_hail_size=snapshot.max_hail_size,
        precip_in=snapshot.precip_in,
        summary=snapshot.summary,
        source=snapshot.source,
        is_mock=snapshot.is_mock,
    )
    db.session.add(report)
    db.session.add(
        ClaimActivity(
            org_id=claim.org_id,
            claim_id=claim.id,
            user_id=user.id if user is not None else None,
            kind="weather",
            message=f"Weather recorded: {snapshot.event_type} ({snapshot.source})",
        )
    )
    db.session.commit()
    return report


# ============================================================
#  WEATHER PACKETS
# ============================================================

def snapshot_from_report(report: WeatherReport) -> WeatherSnapshot:
    return WeatherSnapshot(
        event_type=report.event_type or "Storm Event",
        report_date=report.report_date,
        max_wind_speed=report.max_wind_speed,
        max_hail_size=report.max_hail_size,
        precip_in=report.precip_in,
        summary=report.summary or "",
        source=report.source or "",
        is_mock=bool(report.is_mock),
    )


def severity_score(s: WeatherSnapshot) -> int:
    """0-100 score weighted toward hail size and gust speed."""
    score = 0.0
    if s.max_hail_size:
        score += min(s.max_hail_size / 2.5, 1.0) * 55
    if s.max_wind_speed:
        score += min(s.max_wind_speed / 90.0, 1.0) * 35
    if s.precip_in:
        score += min(s.precip_in / 3.0, 1.0) * 10
    return int(round(score))


def hazard_level(score: int) -> str:
    if score >= 60:
        return "HIGH"
    if score >= 30:
        return "MODERATE"
    return "LOW"


def _hail_block(s: WeatherSnapshot) -> dict:
    detected = bool(s.max_hail_size)
    return {
        "detected": detected,
        "max_size": f'{s.max_hail_size:g}"' if detected else "Unknown",
        "probability_of_damage": (
            "High" if detected and s.max_hail_size >= HAIL_DAMAGE_THRESHOLD_IN else "Low" if detected else "Pending"
        ),
    }


def _wind_block(s: WeatherSnapshot) -> dict:
    detected = s.max_wind_speed is not None
    return {
        "detected": detected,
        "max_gust": f"{s.max_wind_speed:g} mph" if detected else "Unknown",
        "structural_risk": (
            "Elevated" if detected and s.max_wind_speed >= WIND_DAMAGE_THRESHOLD_MPH else "Moderate" if detected else "Pending"
        ),
    }


def _rain_block(s: WeatherSnapshot) -> dict:
    detected = bool(s.precip_in)
    return {
        "detected": detected,
        "total_precip": f'{s.precip_in:g}"' if detected else "Unknown",
        "flood_risk": "Elevated" if detected and s.precip_in >= 2 else "Low",
    }


CODE_REFERENCES = {
    "roofing": "IRC R905 - Roofing system requirements",
    "wind": "IRC R301.2.1 - Wind speed design requirements",
    "drainage": "IRC R903.2 - Roof drainage system capacity",
    "ice": "IRC R905.2.7.1 - Ice barrier requirements",
}


def build_weather_packet(fmt: str, snapshot: WeatherSnapshot, address: str = "", date_of_loss: str = "", peril: str = "") -> dict:
    fmt = (fmt or "").upper()
    if fmt not in PACKET_FORMATS:
        raise InvalidArgument(f"Unknown weather packet format '{fmt}'. Use one of: {', '.join(PACKET_FORMATS)}.")

    score = severity_score(snapshot)
    level = hazard_level(score)
    confidence = "LOW" if snapshot.is_mock else "HIGH"
    summary = snapshot.summary or "Weather event verified at property location"
    base = {
        "format": fmt,
        "date_of_loss": date_of_loss,
        "generated_at": datetime.utcnow().isoformat(timespec="seconds") + "Z",
        "is_estimated": snapshot.is_mock,
    }

    if fmt == "CLAIMS":
        return {
            **base,
            "title": "Claims-Ready Meteorological Packet",
            "subtitle": f"{address} - {peril or snapshot.event_type} Event",
            "severity": score,
            "storm_summary": summary,
            "confidence_level": confidence,
            "hail": _hail_block(snapshot),
            "wind": _wind_block(snapshot),
            "rain": _rain_block(snapshot),
            "code_references": dict(CODE_REFERENCES),
            "conclusions": [
                "Weather verification report generated",
                f"Event classified as {snapshot.event_type}",
                "Supporting documentation available",
            ],
        }

    if fmt == "HOMEOWNER":
        return {
            **base,
            "title": "Homeowner Weather Summary",
            "subtitle": "Understanding What Happened to Your Home",
            "intro": f"Here's what happened at your home on {date_of_loss or 'the date of loss'}.",
            "simple_summary": summary,
            "risk_level": level,
            "big_takeaways": [
                f"Hail damage likelihood: {_hail_block(snapshot)['probability_of_damage']}",
                f"Wind risk: {_wind_block(snapshot)['structural_risk']}",
                f"Water intrusion risk: {_rain_block(snapshot)['flood_risk']}",
            ],
            "next_steps": [
                "Schedule a professional roof inspection",
                "Review photos of any visible damage",
                "Check for interior leaks or water stains",
                "Contact your insurance adjuster",
            ],
            "safety_notes": [
                "Do not climb on your roof",
                "Document any visible damage with photos",
                "Keep receipts for emergency repairs",
            ],
        }

    if fmt == "QUICK":
        return {
            **base,
            "title": "Quick Weather Snapshot",
            "subtitle": f"{address} - {date_of_loss}",
            "bullet_summary": [
                f"Severity Score: {score}",
                f"Peril Type: {peril or snapshot.event_type}",
                f"Date of Loss: {date_of_loss}",
                f"Main Hazard: {level}",
                f"Confidence: {confidence}",
            ],
            "quick_facts": {
                "hail_detected": _hail_block(snapshot)["detected"],
                "wind_detected": _wind_block(snapshot)["detected"],
                "rain_detected": _rain_block(snapshot)["detected"],
            },
            "conclusion": summary,
        }

    return {
        **base,
        "title": "Public Adjuster Forensic Meteorology Report",
        "subtitle": f"Comprehensive Weather Analysis - {address}",
        "storm_summary": summary,
        "severity_score": score,
        "confidence_level": confidence,
        "hail": {
            **_hail_block(snapshot),
            "component_damage": "Shingle granule displacement, seal strip adhesion loss, flashing deformation",
        },
        "wind": {
            **_wind_block(snapshot),
            "component_damage": "Shingle blow-off, fastener withdrawal, edge metal distortion",
        },
        "rain": _rain_block(snapshot),
        "code_implications": {
            "hail": "IRC R905.2.7.1 - Ice barrier requirement potentially compromised by granule loss",
            "wind": "IRC R903.2 - Roof drainage obstruction possible during wind-driven rain events",
            "structural": "IRC R301.2.1 - Wind speed design requirements exceeded during event",
            "fasteners": "IRC R905.2.5 - Fastener withdrawal indicated by uplift forces",
        },
        "litigation_notes": [
            "Event severity aligns with observed damage indicators",
            "Temporal alignment supports structure impact timing",
            "Meteorological conditions exceed manufacturer warranty thresholds"
            if score >= 60 else "Conditions should be compared against manufacturer warranty thresholds",
        ],
    }
