import smtplib

import pytest

from claimdesk.models import ClaimActivity, GeneratedReport
from claimdesk.reports import packet

from .conftest import auth


@pytest.fixture
def fake_pdf(monkeypatch):
    monkeypatch.setattr(packet, "_render_pdf", lambda html: (b"%PDF-1.4 fake", html.count('class="page"') or 1))


# ---- AI actions ----

@pytest.mark.parametrize("action,key", [
    ("narrative", "narrative"),
    ("code_summary", "code_summary"),
    ("carrier_summary", "carrier_summary"),
])
def test_ai_actions_fall_back_to_templates(client, member, claim, action, key):
    resp = client.post(f"/api/claims/{claim.id}/ai/actions", json={"action": action}, headers=auth(member))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["action"] == action
    assert body[key]


def test_ai_chat_and_appeal(client, member, claim):
    url = f"/api/claims/{claim.id}/ai/actions"
    chat = client.post(url, json={"action": "chat", "message": "Status?"}, headers=auth(member)).get_json()
    assert chat["chat"]["model_source"] == "template"
    appeal = client.post(url, json={"action": "appeal", "denial_reason": "Wear and tear, not storm damage",
                                    "tone": "firm"}, headers=auth(member)).get_json()
    assert appeal["appeal"]["tone"] == "firm"
    assert ClaimActivity.query.filter_by(kind="ai").count() == 1


def test_ai_unknown_action_and_bad_supplement(client, member, claim):
    url = f"/api/claims/{claim.id}/ai/actions"
    assert client.post(url, json={"action": "poem"}, headers=auth(member)).status_code == 400
    resp = client.post(url, json={"action": "appeal", "denial_reason": "Wear and tear, not storm damage",
                                  "supplement_id": 999}, headers=auth(member))
    assert resp.status_code == 404


@pytest.mark.parametrize("body", [
    {"action": 7},
    {"action": "narrative", "audience": ["adjuster"]},
    {"action": "appeal", "denial_reason": "Wear and tear, not storm damage", "tone": 1},
    {"action": "chat", "message": {"q": "status?"}},
])
def test_ai_action_rejects_non_text_fields(client, member, claim, body):
    resp = client.post(f"/api/claims/{claim.id}/ai/actions", json=body, headers=auth(member))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid-argument"


def test_viewer_cannot_run_ai(client, viewer, claim):
    resp = client.post(f"/api/claims/{claim.id}/ai/actions", json={"action": "narrative"}, headers=auth(viewer))
    assert resp.status_code == 403


# ---- packets ----

def test_packet_as_url_then_download(client, member, claim, fake_pdf):
    resp = client.post(f"/api/claims/{claim.id}/packet", json={"layout": "quick", "as_url": True}, headers=auth(member))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["page_count"] == 5
    assert body["sections"] == ["cover", "executive-summary", "pricing", "damage-annotated", "weather"]

    download = client.get(body["url"], headers=auth(member))
    assert download.status_code == 200
    assert download.mimetype == "application/pdf"
    assert download.data == b"%PDF-1.4 fake"


def test_packet_pdf_response_with_custom_sections(client, member, claim, fake_pdf):
    resp = client.post(f"/api/claims/{claim.id}/packet", json={"sections": ["cover", "signatures"]}, headers=auth(member))
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert "attachment" in resp.headers["Content-Disposition"]
    assert GeneratedReport.query.one().page_count == 2


def test_unknown_layout_is_invalid(client, member, claim, fake_pdf):
    resp = client.post(f"/api/claims/{claim.id}/packet", json={"layout": "mega"}, headers=auth(member))
    assert resp.status_code == 400


@pytest.mark.parametrize("sections", ["cover", {"cover": True}, ["cover", 3]])
def test_packet_sections_must_be_a_list_of_keys(client, member, claim, fake_pdf, sections):
    resp = client.post(f"/api/claims/{claim.id}/packet", json={"sections": sections}, headers=auth(member))
    assert resp.status_code == 400
    assert GeneratedReport.query.count() == 0


def test_report_of_another_org_is_hidden(client, member, outsider, claim, fake_pdf):
    body = client.post(f"/api/claims/{claim.id}/packet", json={"layout": "retail", "as_url": True},
                       headers=auth(member)).get_json()
    assert client.get(body["url"], headers=auth(outsider)).status_code == 404


def test_appeal_and_depreciation_pdfs(client, member, claim, fake_pdf):
    resp = client.post(f"/api/claims/{claim.id}/appeal/pdf",
                       json={"denial_reason": "Damage predates the policy period", "as_url": True},
                       headers=auth(member))
    assert resp.status_code == 201
    resp = client.post(f"/api/claims/{claim.id}/depreciation/export", json={"as_url": True}, headers=auth(member))
    assert resp.status_code == 201
    kinds = sorted(r.kind for r in GeneratedReport.query.all())
    assert kinds == ["appeal", "depreciation"]


# ---- carrier email ----

def test_send_to_carrier_requires_packet(client, member, claim):
    resp = client.post(f"/api/claims/{claim.id}/send-to-carrier", json={}, headers=auth(member))
    assert resp.status_code == 409


def test_send_to_carrier_without_smtp_config(client, member, claim, fake_pdf):
    client.post(f"/api/claims/{claim.id}/packet", json={"as_url": True}, headers=auth(member))
    resp = client.post(f"/api/claims/{claim.id}/send-to-carrier", json={}, headers=auth(member))
    assert resp.status_code == 409
    assert "not configured" in resp.get_json()["message"]


class _FakeSMTP:
    sent = []

    def __init__(self, host, port, **kwargs):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def login(self, user, password):
        pass

    def starttls(self, **kwargs):
        pass

    def send_message(self, msg):
        _FakeSMTP.sent.append(msg)


def test_send_to_carrier_emails_latest_packet(app, client, member, claim, fake_pdf, monkeypatch):
    app.config.update(SMTP_HOST="smtp.example", SMTP_FROM="claims@summit.example", SMTP_ENCRYPTION="ssl")
    _FakeSMTP.sent = []
    monkeypatch.setattr(smtplib, "SMTP_SSL", _FakeSMTP)
    client.post(f"/api/claims/{claim.id}/packet", json={"as_url": True}, headers=auth(member))

    resp = client.post(f"/api/claims/{claim.id}/send-to-carrier", json={}, headers=auth(member))
    assert resp.status_code == 200
    sent = resp.get_json()["sent"]
    assert sent["to"] == "pat.keller@carrier.example"
    assert sent["subject"] == "Claim CLM-2024-1001 - Dana Whitfield - Documentation Packet"
    msg = _FakeSMTP.sent[0]
    attachment = next(msg.iter_attachments())
    assert attachment.get_content() == b"%PDF-1.4 fake"
    assert ClaimActivity.query.filter_by(kind="email").count() == 1


def test_smtp_failure_is_unavailable(app, client, member, claim, fake_pdf, monkeypatch):
    app.config.update(SMTP_HOST="smtp.example", SMTP_FROM="claims@summit.example", SMTP_ENCRYPTION="none")

    class Broken(_FakeSMTP):
        def send_message(self, msg):
            raise smtplib.SMTPServerDisconnected("gone")

    monkeypatch.setattr(smtplib, "SMTP", Broken)
    client.post(f"/api/claims/{claim.id}/packet", json={"as_url": True}, headers=auth(member))
    resp = client.post(f"/api/claims/{claim.id}/send-to-carrier", json={"to": "desk@carrier.example"},
                       headers=auth(member))
    assert resp.status_code == 502
    assert resp.get_json()["error"] == "unavailable"
