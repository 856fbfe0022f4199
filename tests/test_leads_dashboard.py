import pytest

from claimdesk.errors import FailedPrecondition, InvalidArgument
from claimdesk.models import Claim, Lead
from claimdesk.services import dashboard_service, leads_service

from .conftest import auth


LEAD = {
    "title": "Hail damage - Whitfield",
    "source": "door-knock",
    "temperature": "hot",
    "value": "$18,400",
    "contact": {"first_name": "Dana", "last_name": "Whitfield", "email": "dana@example.com",
                "phone": "602-555-0110"},
    "street": "1420 W Camelback Rd",
    "city": "Phoenix",
    "state": "az",
    "zip_code": "85013",
}


def test_create_lead_with_contact_and_property(org, member):
    lead = leads_service.create_lead(org, LEAD, member)
    assert lead.stage == "new"
    assert lead.value == 18400.0
    assert lead.contact.phone == "6025550110"
    assert lead.property.state == "AZ"
    assert lead.assigned_to_id == member.id


@pytest.mark.parametrize("patch", [
    {"title": " "},
    {"stage": "maybe"},
    {"temperature": "lukewarm"},
    {"value": "lots"},
    {"contact": {"first_name": "Dana"}},
    {"contact": {"first_name": "Dana", "last_name": "W", "email": "nope"}},
    {"zip_code": "ABCDE"},
])
def test_create_lead_validation(org, patch):
    with pytest.raises(InvalidArgument):
        leads_service.create_lead(org, {**LEAD, **patch})


def test_list_leads_paginates(org):
    for i in range(5):
        leads_service.create_lead(org, {"title": f"Lead {i}", "stage": "contacted" if i % 2 else "new"})
    page = leads_service.list_leads(org, limit=2, offset=0)
    assert len(page["leads"]) == 2
    assert page["pagination"] == {"total": 5, "limit": 2, "offset": 0, "has_more": True}
    last = leads_service.list_leads(org, limit=2, offset=4)
    assert last["pagination"]["has_more"] is False
    assert leads_service.list_leads(org, stage="contacted")["pagination"]["total"] == 2


@pytest.mark.parametrize("kwargs", [{"limit": 0}, {"offset": -1}, {"limit": "ten"}, {"stage": "maybe"}])
def test_list_leads_rejects_bad_paging(org, kwargs):
    with pytest.raises(InvalidArgument):
        leads_service.list_leads(org, **kwargs)


def test_convert_lead_creates_claim_once(org, member):
    lead = leads_service.create_lead(org, LEAD, member)
    claim = leads_service.convert_lead_to_claim(lead, member, "CLM-2024-3003", extra={"carrier": "Travelers"})
    assert claim.insured_name == "Dana Whitfield"
    assert claim.carrier == "Travelers"
    assert claim.property.zip_code == "85013"
    assert lead.stage == "won" and lead.claim_id == claim.id
    assert sorted(a.kind for a in claim.activities) == ["created", "lead"]

    with pytest.raises(FailedPrecondition):
        leads_service.convert_lead_to_claim(lead, member, "CLM-2024-3004")


def test_lost_lead_cannot_convert(org, member):
    lead = leads_service.create_lead(org, {**LEAD, "stage": "lost"}, member)
    with pytest.raises(FailedPrecondition):
        leads_service.convert_lead_to_claim(lead, member, "CLM-2024-3005")


# ---- API ----

def test_lead_api_flow(client, member):
    created = client.post("/api/leads", json=LEAD, headers=auth(member))
    assert created.status_code == 201
    lead_id = created.get_json()["lead"]["id"]

    listing = client.get("/api/leads?limit=10", headers=auth(member)).get_json()
    assert listing["pagination"]["total"] == 1
    assert listing["leads"][0]["contact"]["last_name"] == "Whitfield"

    url = f"/api/leads/{lead_id}/convert"
    assert client.post(url, json={}, headers=auth(member)).status_code == 400
    converted = client.post(url, json={"claim_number": "CLM-2024-4004"}, headers=auth(member))
    assert converted.status_code == 201
    assert converted.get_json()["lead"]["stage"] == "won"
    assert client.post(url, json={"claim_number": "CLM-2024-4005"}, headers=auth(member)).status_code == 409
    assert Claim.query.count() == 1


def test_viewer_can_list_but_not_create_leads(client, viewer):
    assert client.get("/api/leads", headers=auth(viewer)).status_code == 200
    assert client.post("/api/leads", json=LEAD, headers=auth(viewer)).status_code == 403


def test_other_org_lead_is_not_found(client, org, outsider):
    lead = leads_service.create_lead(org, LEAD)
    resp = client.post(f"/api/leads/{lead.id}/convert", json={"claim_number": "X-1"}, headers=auth(outsider))
    assert resp.status_code == 404
    assert Lead.query.one().claim_id is None


# ---- dashboard ----

def test_dashboard_summary(org, other_org, admin, claim):
    from claimdesk.services import claims_service

    claims_service.add_estimate(claim, {"line_items": [{"description": "Roof", "total": 9000}]}, admin)
    denied = claims_service.create_claim(org, admin, {"claim_number": "CLM-2024-5005", "insured_name": "Ray Ortiz"})
    claims_service.change_stage(denied, "denied", admin)
    claims_service.create_claim(other_org, None, {"claim_number": "CLM-2024-5006", "insured_name": "Elsewhere"})
    leads_service.create_lead(org, {"title": "Hot lead", "stage": "qualified"})

    summary = dashboard_service.dashboard_summary(org)
    assert summary["claim_pipeline"]["inspection"] == 1
    assert summary["claim_pipeline"]["denied"] == 1
    assert summary["claim_pipeline"]["paid"] == 0
    assert summary["open_claims"] == 1
    assert summary["pipeline_value"] == 9000.0
    assert summary["lead_funnel"]["qualified"] == 1
    assert {a["claim_number"] for a in summary["recent_activity"]} == {"CLM-2024-1001", "CLM-2024-5005"}


def test_dashboard_api(client, viewer, claim):
    resp = client.get("/api/dashboard", headers=auth(viewer))
    assert resp.status_code == 200
    body = resp.get_json()["dashboard"]
    assert body["open_claims"] == 1
    assert all(isinstance(a["created_at"], str) for a in body["recent_activity"])
