from claimdesk.reports.templates import PACKET_LAYOUTS, REPORT_SECTIONS

from .conftest import auth


def test_health_is_public(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["ok"] is True
    assert body["health"]["database"] is True
    assert body["health"]["llm"] == {"backend": "mock", "model": "mock-llm", "available": False}


def test_health_reports_unwritable_documents(client, monkeypatch):
    from claimdesk.system import health

    monkeypatch.setattr(health, "disk_writable", lambda path: False)
    resp = client.get("/api/health")
    assert resp.status_code == 503
    assert "Documents folder not writable" in resp.get_json()["health"]["warnings"]


def test_zip_insight(client, viewer):
    resp = client.get("/api/zip-insight?zip=85013&category=roofing&subtype=hail", headers=auth(viewer))
    insight = resp.get_json()["insight"]
    assert insight["region"] == "Phoenix Metro, AZ"
    assert (insight["low"], insight["high"]) == (4800, 23800)
    assert insight["subtype"] == "hail"
    assert client.get("/api/zip-insight?zip=850", headers=auth(viewer)).status_code == 400
    assert client.get("/api/zip-insight?zip=85013").status_code == 401


def test_geometry_ellipse(client, viewer):
    resp = client.get("/api/geometry/ellipse?x=10&y=20&width=-40&height=30", headers=auth(viewer))
    body = resp.get_json()
    assert body["ellipse"] == {"cx": -10.0, "cy": 35.0, "rx": 20.0, "ry": 15.0}
    assert body["svg"].startswith('<ellipse cx="-10" cy="35"')
    assert client.get("/api/geometry/ellipse?x=1&y=2&width=w&height=4", headers=auth(viewer)).status_code == 400


def test_report_template_registry(client, viewer):
    body = client.get("/api/report-templates", headers=auth(viewer)).get_json()
    assert len(body["sections"]) == len(REPORT_SECTIONS)
    assert body["layouts"]["quick"] == PACKET_LAYOUTS["quick"]
    one = client.get("/api/report-templates/retail-quote", headers=auth(viewer)).get_json()
    assert one["sections"] == PACKET_LAYOUTS["retail"]
    assert client.get("/api/report-templates/none-such", headers=auth(viewer)).status_code == 404


def test_trade_profile_api(client, member):
    assert client.get("/api/trades/profile", headers=auth(member)).status_code == 404
    resp = client.put("/api/trades/profile", json={"display_name": "Member Pro", "trade": "gutters",
                                                   "service_zips": ["85013"]}, headers=auth(member))
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["slug"] == "member-pro"
    fetched = client.get("/api/trades/profile", headers=auth(member)).get_json()["profile"]
    assert fetched["service_zips"] == ["85013"]
    assert fetched["company"] == "Summit Roofing"


def test_unknown_api_route_is_json_404(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not-found"
