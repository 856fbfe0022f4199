import pytest

from claimdesk.models import Claim, ClaimActivity
from claimdesk.services.claims_service import can_transition

from .conftest import auth


NEW_CLAIM = {
    "claim_number": "CLM-2024-2002",
    "insured_name": "Marcus Lee",
    "insured_phone": "(602) 555-0199",
    "carrier": "USAA",
    "date_of_loss": "06/14/2024",
    "deductible": "$1,500",
    "street": "77 E Roosevelt St",
    "city": "Phoenix",
    "state": "az",
    "zip_code": "85004",
}


# ---- authentication / tenancy ----

def test_unauthenticated_request_gets_401(client, claim):
    resp = client.get("/api/claims")
    assert resp.status_code == 401
    assert resp.get_json() == {"ok": False, "error": "unauthenticated", "message": "Sign in required."}


def test_bad_token_gets_401(client):
    resp = client.get("/api/claims", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_viewer_cannot_create(client, viewer):
    resp = client.post("/api/claims", json=NEW_CLAIM, headers=auth(viewer))
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "permission-denied"


def test_member_cannot_delete(client, member, claim):
    resp = client.delete(f"/api/claims/{claim.id}", headers=auth(member))
    assert resp.status_code == 403


def test_body_user_id_must_match_caller(client, admin):
    resp = client.post("/api/claims", json={**NEW_CLAIM, "user_id": admin.id + 99}, headers=auth(admin))
    assert resp.status_code == 403


def test_other_org_claim_is_not_found(client, outsider, claim):
    resp = client.get(f"/api/claims/{claim.id}", headers=auth(outsider))
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not-found"


def test_org_header_for_foreign_org_is_denied(client, admin, other_org):
    resp = client.get("/api/claims", headers={**auth(admin), "X-Org-Id": str(other_org.id)})
    assert resp.status_code == 403


def test_list_is_scoped_to_org(client, admin, outsider, claim):
    assert len(client.get("/api/claims", headers=auth(admin)).get_json()["claims"]) == 1
    assert client.get("/api/claims", headers=auth(outsider)).get_json()["claims"] == []


# ---- CRUD ----

def test_create_claim_normalizes_input(client, admin):
    resp = client.post("/api/claims", json=NEW_CLAIM, headers=auth(admin))
    assert resp.status_code == 201
    body = resp.get_json()["claim"]
    assert body["lifecycle_stage"] == "inspection"
    assert body["date_of_loss"] == "2024-06-14"
    assert body["deductible"] == 1500.0
    assert body["property"]["state"] == "AZ"
    assert body["timeline"][0]["kind"] == "created"
    assert Claim.query.one().insured_phone == "6025550199"


@pytest.mark.parametrize("patch,msg", [
    ({"insured_name": ""}, "Insured name is required."),
    ({"insured_email": "nope"}, "Insured email is invalid"),
    ({"zip_code": "8500"}, "ZIP code is invalid"),
    ({"category": "meteor"}, "Category is invalid"),
    ({"date_of_loss": "June 14"}, "Date of loss must be YYYY-MM-DD or MM/DD/YYYY."),
    ({"deductible": "-5"}, "Deductible cannot be negative."),
])
def test_create_claim_validation(client, admin, patch, msg):
    resp = client.post("/api/claims", json={**NEW_CLAIM, **patch}, headers=auth(admin))
    assert resp.status_code == 400
    assert msg in resp.get_json()["message"]


def test_duplicate_claim_number_rejected(client, admin, claim):
    resp = client.post("/api/claims", json={**NEW_CLAIM, "claim_number": claim.claim_number}, headers=auth(admin))
    assert resp.status_code == 400


def test_same_claim_number_allowed_in_another_org(client, outsider, claim):
    resp = client.post("/api/claims", json={**NEW_CLAIM, "claim_number": claim.claim_number}, headers=auth(outsider))
    assert resp.status_code == 201


def test_non_object_body_rejected(client, admin):
    resp = client.post("/api/claims", json=["not", "an", "object"], headers=auth(admin))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid-argument"


def test_patch_and_search(client, admin, claim):
    resp = client.patch(f"/api/claims/{claim.id}", json={"carrier": "Allstate", "acv_paid": 8200}, headers=auth(admin))
    assert resp.status_code == 200
    assert resp.get_json()["claim"]["carrier"] == "Allstate"
    found = client.get("/api/claims?q=allst", headers=auth(admin)).get_json()["claims"]
    assert [c["id"] for c in found] == [claim.id]


def test_delete_claim(client, admin, claim):
    claim_id = claim.id
    resp = client.delete(f"/api/claims/{claim_id}", headers=auth(admin))
    assert resp.get_json() == {"ok": True, "deleted": claim_id}
    assert Claim.query.count() == 0
    assert ClaimActivity.query.count() == 0


# ---- lifecycle ----

@pytest.mark.parametrize("current,new,allowed", [
    ("inspection", "adjuster_review", True),
    ("inspection", "paid", True),
    ("approved", "inspection", True),
    ("approved", "adjuster_review", True),
    ("paid", "approved", False),
    ("paid", "closed", True),
    ("paid", "denied", False),
    ("denied", "adjuster_review", True),
    ("denied", "approved", False),
    ("closed", "inspection", False),
    ("adjuster_review", "denied", True),
    ("inspection", "inspection", False),
    ("inspection", "archived", False),
])
def test_can_transition(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_stage_change_logs_timeline(client, admin, claim):
    resp = client.post(f"/api/claims/{claim.id}/stage", json={"stage": "adjuster_review", "note": "Inspection done"},
                       headers=auth(admin))
    assert resp.get_json()["claim"]["lifecycle_stage"] == "adjuster_review"
    entry = ClaimActivity.query.filter_by(kind="stage").one()
    assert entry.message == "Stage changed: inspection -> adjuster_review (Inspection done)"


def test_invalid_transition_is_failed_precondition(client, admin, claim):
    client.post(f"/api/claims/{claim.id}/stage", json={"stage": "closed"}, headers=auth(admin))
    resp = client.post(f"/api/claims/{claim.id}/stage", json={"stage": "inspection"}, headers=auth(admin))
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "failed-precondition"


def test_unknown_stage_is_invalid(client, admin, claim):
    resp = client.post(f"/api/claims/{claim.id}/stage", json={"stage": "limbo"}, headers=auth(admin))
    assert resp.status_code == 400


@pytest.mark.parametrize("body", [
    {"stage": 3},
    {"stage": ["closed"]},
    {"stage": "adjuster_review", "note": {"text": "done"}},
])
def test_stage_rejects_non_text_values(client, admin, claim, body):
    resp = client.post(f"/api/claims/{claim.id}/stage", json=body, headers=auth(admin))
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid-argument"
    assert Claim.query.one().lifecycle_stage == "inspection"


# ---- notes / estimates / supplements / depreciation ----

def test_note_requires_text(client, member, claim):
    assert client.post(f"/api/claims/{claim.id}/notes", json={"message": " "}, headers=auth(member)).status_code == 400
    assert client.post(f"/api/claims/{claim.id}/notes", json={"message": 42}, headers=auth(member)).status_code == 400
    resp = client.post(f"/api/claims/{claim.id}/notes", json={"message": "Called adjuster"}, headers=auth(member))
    assert resp.status_code == 201


def test_estimate_total_sums_line_items(client, admin, claim):
    items = [
        {"description": "Remove & replace shingles", "quantity": 20, "unit": "SQ", "unit_price": 285, "total": 5700},
        {"description": "Drip edge", "quantity": 180, "unit": "LF", "unit_price": 3.1, "total": 558},
    ]
    resp = client.post(f"/api/claims/{claim.id}/estimates", json={"line_items": items}, headers=auth(admin))
    assert resp.status_code == 201
    assert resp.get_json()["estimate"]["total_amount"] == 6258.0
    detail = client.get(f"/api/claims/{claim.id}", headers=auth(admin)).get_json()["claim"]
    assert detail["latest_estimate"]["total_amount"] == 6258.0


def test_supplement_validation(client, admin, claim):
    url = f"/api/claims/{claim.id}/supplements"
    assert client.post(url, json={"item_description": "Starter"}, headers=auth(admin)).status_code == 400
    assert client.post(url, json={"item_description": "Starter", "amount": 10, "status": "maybe"},
                       headers=auth(admin)).status_code == 400
    resp = client.post(url, json={"item_description": "Starter strip", "amount": "412.50"}, headers=auth(admin))
    assert resp.get_json()["supplement"]["status"] == "draft"


def test_depreciation_items_and_summary(client, admin, claim):
    url = f"/api/claims/{claim.id}/depreciation"
    resp = client.post(url, json={"description": "Shingles", "rcv": 12000, "age_years": 5, "lifespan_years": 20,
                                  "completed": True}, headers=auth(admin))
    assert resp.status_code == 201
    item = resp.get_json()["item"]
    assert (item["depreciation"], item["acv"]) == (3000.0, 9000.0)

    assert client.post(url, json={"description": "Gutters", "rcv": 100, "depreciation": 150},
                       headers=auth(admin)).status_code == 400
    assert client.post(url, json={"description": "Gutters", "rcv": 100, "coverage": "Z"},
                       headers=auth(admin)).status_code == 400
    for bad in ({"rcv": "nan"}, {"rcv": "inf"}, {"rcv": True}, {"rcv": 100, "age_years": "nan", "lifespan_years": 20}):
        assert client.post(url, json={"description": "Gutters", **bad}, headers=auth(admin)).status_code == 400

    body = client.get(url, headers=auth(admin)).get_json()
    assert body["summary"]["recoverable_depreciation"] == 3000.0
    assert body["stage"] == "documentation_complete"
