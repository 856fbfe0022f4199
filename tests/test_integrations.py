from datetime import date

import pytest
import requests

from claimdesk.errors import InvalidArgument
from claimdesk.integrations import annotation, vendors, weather
from claimdesk.integrations.annotation import DetectorClient, annotate_photo, mock_detections
from claimdesk.integrations.vendors import (
    VENDOR_SEED,
    VendorCatalogClient,
    ensure_seed_vendors,
    state_for_zip,
    sync_vendor,
    vendors_near,
)
from claimdesk.integrations.weather import (
    WeatherClient,
    WeatherSnapshot,
    build_weather_packet,
    hazard_level,
    mock_snapshot,
    record_weather_for_claim,
    severity_score,
)
from claimdesk.models import Vendor, WeatherReport

from .conftest import auth


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


# ---- weather ----

def test_mock_snapshot_is_deterministic():
    a = mock_snapshot("85013", date(2024, 6, 14))
    b = mock_snapshot("85013", date(2024, 6, 14))
    assert a == b
    assert a.is_mock and a.source == "estimated"
    assert a.max_hail_size in (0.75, 1.0, 1.25, 1.5, 1.75, 2.0)


def test_weather_client_without_key_uses_estimate(app):
    snap = WeatherClient(api_key="").fetch_event(address="1420 W Camelback Rd", date_of_loss=date(2024, 6, 14))
    assert snap.is_mock


def test_weather_client_requires_location(app):
    with pytest.raises(InvalidArgument):
        WeatherClient(api_key="k").fetch_event()


def test_weather_client_parses_hail_day(app, monkeypatch):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return FakeResponse({"days": [{
            "datetime": "2024-06-14", "windgust": 62.0, "precip": 1.2,
            "preciptype": ["rain", "hail"], "conditions": "Rain, Thunderstorm",
            "description": "Severe storms with large hail.",
        }]})

    monkeypatch.setattr(weather.requests, "get", fake_get)
    client = WeatherClient(base_url="https://weather.example/timeline", api_key="k")
    snap = client.fetch_event(latitude=33.5093, longitude=-112.0934, date_of_loss=date(2024, 6, 14))
    assert calls[0][0] == "https://weather.example/timeline/33.5093%2C-112.0934/2024-06-14"
    assert calls[0][1]["key"] == "k"
    assert snap.event_type == "Hail Storm"
    assert snap.max_wind_speed == 62.0
    assert snap.report_date == date(2024, 6, 14)
    assert snap.source == "visualcrossing" and not snap.is_mock


def test_weather_client_falls_back_on_http_error(app, monkeypatch):
    monkeypatch.setattr(weather.requests, "get", lambda *a, **kw: FakeResponse({}, status=500))
    snap = WeatherClient(base_url="https://weather.example", api_key="k").fetch_event(address="Phoenix, AZ")
    assert snap.is_mock


@pytest.mark.parametrize("payload", [
    [{"days": []}],
    {"days": "2024-06-14"},
    {"days": ["hail"]},
    {"days": [{"windgust": "gusty"}]},
    "storm",
])
def test_weather_client_falls_back_on_malformed_body(app, monkeypatch, payload):
    monkeypatch.setattr(weather.requests, "get", lambda *a, **kw: FakeResponse(payload))
    snap = WeatherClient(base_url="https://weather.example", api_key="k").fetch_event(
        address="Phoenix, AZ", date_of_loss=date(2024, 6, 14)
    )
    assert snap == mock_snapshot("Phoenix, AZ", date(2024, 6, 14))


def test_wind_only_day_is_high_wind(app):
    snap = WeatherClient(base_url="x", api_key="k")._parse({"days": [{"windgust": 70, "conditions": "Clear"}]}, None)
    assert snap.event_type == "High Wind Event"


def test_record_weather_for_claim(claim, admin):
    report = record_weather_for_claim(claim, user=admin)
    assert report.is_mock
    assert WeatherReport.query.filter_by(claim_id=claim.id).count() == 1
    assert any(a.kind == "weather" for a in claim.activities)


def test_record_weather_needs_property(claim):
    claim.property = None
    with pytest.raises(InvalidArgument):
        record_weather_for_claim(claim)


def test_severity_and_packets():
    snap = WeatherSnapshot("Hail Storm", date(2024, 6, 14), 90.0, 2.5, 3.0, "Large hail", "visualcrossing")
    score = severity_score(snap)
    assert score == 100
    assert hazard_level(score) == "HIGH"
    assert hazard_level(30) == "MODERATE" and hazard_level(29) == "LOW"

    claims = build_weather_packet("claims", snap, address="1420 W Camelback Rd", date_of_loss="06/14/2024")
    assert claims["confidence_level"] == "HIGH"
    assert claims["hail"]["probability_of_damage"] == "High"
    assert claims["wind"]["structural_risk"] == "Elevated"
    assert build_weather_packet("QUICK", snap)["quick_facts"]["rain_detected"] is True
    assert build_weather_packet("HOMEOWNER", snap)["risk_level"] == "HIGH"
    assert "fasteners" in build_weather_packet("PA", snap)["code_implications"]
    with pytest.raises(InvalidArgument):
        build_weather_packet("TABLOID", snap)


def test_claim_weather_api(client, member, claim):
    resp = client.post(f"/api/claims/{claim.id}/weather", headers=auth(member))
    assert resp.status_code == 201
    body = resp.get_json()["weather"]
    assert body["is_mock"] is True and body["source"] == "estimated"

    packet = client.get(f"/api/weather/packet?format=quick&claim_id={claim.id}", headers=auth(member))
    assert packet.get_json()["packet"]["format"] == "QUICK"


def test_weather_packet_api_by_address(client, viewer):
    resp = client.get("/api/weather/packet?format=homeowner&address=Phoenix%2C%20AZ&date=2024-06-14",
                      headers=auth(viewer))
    assert resp.status_code == 200
    packet = resp.get_json()["packet"]
    assert packet["is_estimated"] is True
    assert packet["date_of_loss"] == "06/14/2024"
    assert client.get("/api/weather/packet?format=nope&address=x", headers=auth(viewer)).status_code == 400
    assert client.get("/api/weather/packet?address=x&date=June", headers=auth(viewer)).status_code == 400


# ---- photo annotation ----

def test_mock_detections_are_normalized():
    dets = mock_detections("https://photos.example/roof-1.jpg")
    assert 2 <= len(dets) <= 5
    for d in dets:
        c = d["coordinates"]
        assert 0 <= c["x"] <= 1 and c["x"] + c["width"] <= 1.0001


def test_detector_pixel_coordinates_are_scaled(claim, monkeypatch):
    payload = {
        "image_width": 2000, "image_height": 1000,
        "detections": [{"type": "hail_impact", "confidence": 0.91, "severity": "HIGH",
                        "coordinates": {"x": 200, "y": 100, "width": 400, "height": 200}}],
    }
    monkeypatch.setattr(annotation.requests, "post", lambda *a, **kw: FakeResponse(payload))
    assessment = annotate_photo(claim, "https://photos.example/roof.jpg",
                                client=DetectorClient(base_url="https://detector.example"))
    det = assessment.detections[0]
    assert det["severity"] == "high"
    assert det["overlay"] == {"cx": 200.0, "cy": 200.0, "rx": 100.0, "ry": 100.0}
    assert assessment.damage_type == "hail_impact"
    assert assessment.confidence == 0.91
    assert assessment.is_mock is False


def test_detector_failure_falls_back_to_mock(claim, monkeypatch):
    def boom(*a, **kw):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(annotation.requests, "post", boom)
    assessment = annotate_photo(claim, "https://photos.example/roof.jpg",
                                client=DetectorClient(base_url="https://detector.example"))
    assert assessment.is_mock is True
    assert assessment.detections


@pytest.mark.parametrize("payload", [
    ["x"],
    {"detections": "none"},
    {"detections": ["x"]},
    {"detections": [{"type": "hail_impact", "coordinates": {"x": "n/a", "y": 1, "width": 2, "height": 3}}]},
    {"detections": [{"type": "hail_impact", "coordinates": "top-left"}]},
])
def test_detector_malformed_body_falls_back_to_mock(claim, monkeypatch, payload):
    monkeypatch.setattr(annotation.requests, "post", lambda *a, **kw: FakeResponse(payload))
    assessment = annotate_photo(claim, "https://photos.example/roof.jpg",
                                client=DetectorClient(base_url="https://detector.example"))
    assert assessment.is_mock is True
    assert assessment.detections


def test_detector_skips_unusable_detections(claim, monkeypatch):
    payload = {
        "image_width": "wide",
        "detections": [
            "hail",
            {"type": "granule_loss", "confidence": "sure", "coordinates": {"x": 0.1, "y": 0.1, "width": 0.2, "height": 0.2}},
            {"type": "lifted_shingle", "confidence": 0.8, "severity": "extreme",
             "coordinates": {"x": 0.5, "y": 0.5, "width": 0.2, "height": 0.1}},
        ],
    }
    monkeypatch.setattr(annotation.requests, "post", lambda *a, **kw: FakeResponse(payload))
    assessment = annotate_photo(claim, "https://photos.example/roof.jpg",
                                client=DetectorClient(base_url="https://detector.example"))
    assert assessment.is_mock is False
    assert [d["type"] for d in assessment.detections] == ["lifted_shingle"]
    assert assessment.detections[0]["severity"] == "low"
    assert assessment.detections[0]["overlay"] == {"cx": 600.0, "cy": 550.0, "rx": 100.0, "ry": 50.0}


def test_annotation_api(client, member, claim):
    resp = client.post(f"/api/claims/{claim.id}/annotations", json={"image_url": "https://photos.example/a.jpg"},
                       headers=auth(member))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["assessment"]["is_mock"] is True
    assert body["summary"]["total_damage_count"] == len(body["assessment"]["detections"])
    assert client.post(f"/api/claims/{claim.id}/annotations", json={}, headers=auth(member)).status_code == 400


# ---- vendors ----

def test_seed_vendors_once(app):
    assert ensure_seed_vendors() == len(VENDOR_SEED) == 8
    assert ensure_seed_vendors() == 0


def test_vendors_near_zip(app):
    ensure_seed_vendors()
    assert state_for_zip("85013") == "AZ"
    assert state_for_zip("99999") is None
    az = {v.slug for v in vendors_near("85013")}
    assert {"gaf", "abc-supply", "westlake-royal"} <= az
    assert "srs-distribution" not in az
    assert len(vendors_near(None)) == 8


def test_sync_vendor_uses_seed_without_catalog(app):
    ensure_seed_vendors()
    vendor = Vendor.query.filter_by(slug="gaf").one()
    first = sync_vendor(vendor)
    assert (first.created, first.updated, first.source) == (4, 0, "seed")
    again = sync_vendor(vendor)
    assert (again.created, again.updated) == (0, 4)
    assert vendor.last_synced_at is not None


def test_sync_vendor_from_remote_catalog(app, monkeypatch):
    ensure_seed_vendors()
    vendor = Vendor.query.filter_by(slug="tamko").one()
    products = [{"id": "tamko-titan", "name": "Titan XT", "type": "Shingle"}, {"id": "", "name": "skipped"}]
    monkeypatch.setattr(vendors.requests, "get", lambda *a, **kw: FakeResponse({"products": products}))
    result = sync_vendor(vendor, client=VendorCatalogClient(base_url="https://catalog.example"))
    assert (result.created, result.source) == (1, "remote")
    assert [p.external_id for p in vendor.products] == ["tamko-titan"]


@pytest.mark.parametrize("payload", [{"products": ["Timberline"]}, {"products": {"id": "x"}}, "catalog"])
def test_sync_vendor_malformed_catalog_uses_seed(app, monkeypatch, payload):
    ensure_seed_vendors()
    vendor = Vendor.query.filter_by(slug="gaf").one()
    monkeypatch.setattr(vendors.requests, "get", lambda *a, **kw: FakeResponse(payload))
    result = sync_vendor(vendor, client=VendorCatalogClient(base_url="https://catalog.example"))
    assert (result.created, result.source) == (4, "seed")


def test_sync_vendor_skips_non_object_products(app, monkeypatch):
    ensure_seed_vendors()
    vendor = Vendor.query.filter_by(slug="tamko").one()
    products = ["Heritage", {"id": 77, "name": "Heritage Vintage", "type": {"nested": True}, "warranty": 50}]
    monkeypatch.setattr(vendors.requests, "get", lambda *a, **kw: FakeResponse({"products": products}))
    result = sync_vendor(vendor, client=VendorCatalogClient(base_url="https://catalog.example"))
    assert (result.created, result.source) == (1, "remote")
    product = vendor.products[0]
    assert (product.external_id, product.product_type, product.warranty) == ("77", None, "50")


def test_vendor_api(client, member, admin):
    listing = client.get("/api/vendors?zip=85013&category=Tile", headers=auth(member)).get_json()
    assert [v["slug"] for v in listing["vendors"]] == ["abc-supply", "westlake-royal"]
    assert client.post("/api/vendors/gaf/sync", headers=auth(member)).status_code == 403
    resp = client.post("/api/vendors/gaf/sync", headers=auth(admin))
    assert resp.get_json()["sync"]["source"] == "seed"
    assert len(resp.get_json()["vendor"]["products"]) == 4
    assert client.post("/api/vendors/nobody/sync", headers=auth(admin)).status_code == 404
