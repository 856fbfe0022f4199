import pytest

from claimdesk.models import Claim, Lead
from claimdesk.services.trades_service import upsert_profile


def login(client, user, password="secret123"):
    return client.post("/login", data={"email": user.email, "password": password})


def test_pages_redirect_to_login(client):
    resp = client.get("/claims")
    assert resp.status_code == 302
    assert "/login?next=" in resp.headers["Location"]


def test_failed_login(client, admin):
    resp = login(client, admin, password="wrong")
    assert resp.status_code == 401
    assert b"Invalid email or password." in resp.data


def test_login_follows_relative_next_only(client, admin):
    resp = client.post("/login?next=/claims", data={"email": admin.email, "password": "secret123"})
    assert resp.headers["Location"].endswith("/claims")
    client.get("/logout")
    resp = client.post("/login?next=//evil.example", data={"email": admin.email, "password": "secret123"})
    assert resp.headers["Location"].endswith("/")


@pytest.mark.parametrize("path", ["/", "/claims", "/claims/new", "/leads", "/leads/new", "/vendors",
                                  "/vendors/gaf", "/reports/templates", "/trades/profile"])
def test_pages_render_for_admin(client, admin, claim, path):
    login(client, admin)
    client.get("/vendors")
    assert client.get(path).status_code == 200


def test_claim_detail_page(client, admin, claim):
    login(client, admin)
    resp = client.get(f"/claims/{claim.id}")
    assert resp.status_code == 200
    assert b"CLM-2024-1001" in resp.data
    assert b"Dana Whitfield" in resp.data


def test_create_claim_from_form(client, member):
    login(client, member)
    resp = client.post("/claims/new", data={"claim_number": "CLM-2024-7007", "insured_name": "Lee Park",
                                            "zip_code": "85004"})
    assert resp.status_code == 302
    assert Claim.query.filter_by(claim_number="CLM-2024-7007").one().property.zip_code == "85004"

    bad = client.post("/claims/new", data={"claim_number": "CLM-2024-7008", "insured_name": ""})
    assert bad.status_code == 400


def test_stage_form_flashes_invalid_transition(client, admin, claim):
    login(client, admin)
    client.post(f"/claims/{claim.id}/stage", data={"stage": "closed"})
    resp = client.post(f"/claims/{claim.id}/stage", data={"stage": "inspection"}, follow_redirects=True)
    assert b"Cannot move a claim" in resp.data
    assert Claim.query.one().lifecycle_stage == "closed"


def test_member_cannot_delete_from_page(client, member, claim):
    login(client, member)
    assert client.post(f"/claims/{claim.id}/delete").status_code == 403
    assert Claim.query.count() == 1


def test_other_org_claim_page_is_404(client, outsider, claim):
    login(client, outsider)
    assert client.get(f"/claims/{claim.id}").status_code == 404


def test_lead_form_and_convert(client, member):
    login(client, member)
    resp = client.post("/leads/new", data={"title": "Hail lead", "first_name": "Ana", "last_name": "Ruiz"})
    assert resp.status_code == 302
    lead = Lead.query.one()
    resp = client.post(f"/leads/{lead.id}/convert", data={"claim_number": "CLM-2024-8008"})
    assert resp.status_code == 302
    assert Claim.query.one().insured_name == "Ana Ruiz"


def test_public_pro_page(client, admin, org):
    upsert_profile(admin, org, {"display_name": "Summit Roofing", "bio": "Storm specialists"})
    resp = client.get("/pros/summit-roofing")
    assert resp.status_code == 200
    assert b"Storm specialists" in resp.data
    assert client.get("/pros/nobody").status_code == 404
