import json
from datetime import datetime

from claimdesk import db
from claimdesk.models import Claim, Estimate, Lead, Property


def test_claim_latest_estimate_next_to_property_relationship(claim):
    assert claim.latest_estimate is None
    assert isinstance(claim.property, Property)

    db.session.add_all([
        Estimate(org_id=claim.org_id, claim_id=claim.id, source="carrier", total_amount=9800.0,
                 created_at=datetime(2024, 6, 20)),
        Estimate(org_id=claim.org_id, claim_id=claim.id, source="contractor", total_amount=14250.0,
                 created_at=datetime(2024, 7, 2)),
    ])
    db.session.commit()
    db.session.expire(claim)

    assert claim.latest_estimate.source == "contractor"
    assert claim.property.zip_code == "85013"


def test_lead_ai_materials_next_to_property_relationship(org):
    lead = Lead(
        org_id=org.id,
        title="Hail inspection request",
        ai_materials_json=json.dumps(["Timberline HDZ", "Synthetic underlayment"]),
        property=Property(org_id=org.id, street="88 E Thomas Rd", city="Phoenix", state="AZ", zip_code="85012"),
    )
    db.session.add(lead)
    db.session.commit()

    fetched = db.session.get(Lead, lead.id)
    assert fetched.ai_materials == ["Timberline HDZ", "Synthetic underlayment"]
    assert fetched.property.street == "88 E Thomas Rd"
    assert Lead(org_id=org.id, title="Empty").ai_materials == []


def test_property_attribute_is_a_relationship_on_both_models():
    assert "property" in Claim.__mapper__.relationships
    assert "property" in Lead.__mapper__.relationships
