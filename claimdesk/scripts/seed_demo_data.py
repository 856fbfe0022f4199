import argparse
import json
import random
from datetime import date, timedelta

from faker import Faker

from claimdesk import create_app, db
from claimdesk.integrations.vendors import ensure_seed_vendors
from claimdesk.models import (
    Claim, ClaimActivity, Contact, DamageAssessment, DepreciationItem, Estimate,
    GeneratedReport, Lead, Membership, Organization, Property, Supplement,
    TradeProfile, User, WeatherReport,
)
from claimdesk.services.claims_service import LIFECYCLE_STAGES
from claimdesk.services.leads_service import LEAD_STAGES, LEAD_TEMPERATURES

fake = Faker()

DEMO_PASSWORD = "demo1234"
CARRIERS = ["State Farm", "Allstate", "USAA", "Farmers", "Liberty Mutual", "Travelers"]
ROOF_TYPES = ["asphalt_shingle", "asphalt_shingle", "metal", "tile"]
DEMO_STATES = [("AZ", "85"), ("TX", "75"), ("CO", "80"), ("MN", "55")]

LINE_ITEMS = [
    ("Remove & replace laminated comp. shingles", "SQ", 285.0),
    ("Synthetic underlayment", "SQ", 32.0),
    ("Drip edge", "LF", 3.1),
    ("Starter strip", "LF", 2.4),
    ("Ridge cap", "LF", 9.8),
    ("Step flashing", "LF", 11.5),
    ("Ice & water barrier", "SQ", 110.0),
    ("Pipe jack flashing", "EA", 58.0),
]

# ============================================================
#  WIPE (FK-safe order)
# ============================================================

def wipe_domain_data():
    print("Wiping domain data in FK-safe order...")
    for model in (
        GeneratedReport, DamageAssessment, WeatherReport, DepreciationItem, Supplement,
        Estimate, ClaimActivity,
    ):
        db.session.query(model).delete()
    db.session.query(Lead).delete()
    db.session.query(Claim).delete()
    db.session.query(Contact).delete()
    db.session.query(Property).delete()
    db.session.query(TradeProfile).delete()
    db.session.query(Membership).delete()
    db.session.query(User).delete()
    db.session.query(Organization).delete()
    db.session.commit()
    print("Domain data wiped.")

# ============================================================
#  SEED HELPERS
# ============================================================

def seed_organization():
    org = Organization(
        name="Summit Roofing & Restoration",
        slug="summit-roofing",
        brand_color="#1565c0",
        phone="602-555-0142",
        email="office@summitroofing.example",
        license_number="ROC-123456",
    )
    db.session.add(org)
    db.session.commit()
    return org


def seed_users(org):
    users = []
    for role in ("admin", "manager", "member", "viewer"):
        user = User(email=f"{role}@summitroofing.example", full_name=fake.name())
        user.set_password(DEMO_PASSWORD)
        user.rotate_api_token()
        db.session.add(user)
        db.session.flush()
        db.session.add(Membership(org_id=org.id, user_id=user.id, role=role))
        users.append(user)
    db.session.commit()
    return users


def _property(org):
    state, zip_prefix = random.choice(DEMO_STATES)
    return Property(
        org_id=org.id,
        street=fake.street_address(),
        city=fake.city(),
        state=state,
        zip_code=f"{zip_prefix}{random.randint(100, 999)}",
        property_type="residential",
        roof_type=random.choice(ROOF_TYPES),
        year_built=random.randint(1985, 2018),
    )


def seed_claims(org, user, n=8):
    claims = []
    for i in range(n):
        dol = date.today() - timedelta(days=random.randint(10, 240))
        claim = Claim(
            org_id=org.id,
            claim_number=f"CLM-{dol.year}-{1000 + i}",
            title=f"{random.choice(['Hail', 'Wind', 'Storm'])} damage",
            insured_name=fake.name(),
            insured_email=fake.email(),
            insured_phone=fake.numerify("##########"),
            carrier=random.choice(CARRIERS),
            policy_number=fake.bothify("HO-########"),
            adjuster_name=fake.name(),
            adjuster_email=fake.email(),
            category="roofing",
            subtype=random.choice(["hail", "wind", "storm"]),
            loss_type="hail",
            date_of_loss=dol,
            lifecycle_stage=random.choice(LIFECYCLE_STAGES),
            deductible=random.choice([1000.0, 1500.0, 2500.0]),
            created_by_id=user.id,
            property=_property(org),
        )
        db.session.add(claim)
        db.session.flush()
        claim.activities.append(
            ClaimActivity(org_id=org.id, user_id=user.id, kind="created", message=f"Claim {claim.claim_number} created")
        )
        claims.append(claim)
    db.session.commit()
    return claims


def seed_estimates(claims):
    estimates = []
    for claim in claims:
        items = []
        for desc, unit, price in random.sample(LINE_ITEMS, k=random.randint(3, 6)):
            qty = round(random.uniform(2, 40), 1)
            items.append({
                "description": desc,
                "quantity": qty,
                "unit": unit,
                "unit_price": price,
                "total": round(qty * price, 2),
            })
        est = Estimate(
            org_id=claim.org_id,
            claim_id=claim.id,
            source=random.choice(["carrier", "contractor"]),
            total_amount=round(sum(i["total"] for i in items), 2),
            line_items_json=json.dumps(items),
        )
        db.session.add(est)
        estimates.append(est)
    db.session.commit()
    return estimates


def seed_depreciation(claims):
    rows = []
    for claim in claims:
        for desc, _, price in random.sample(LINE_ITEMS, k=3):
            rcv = round(price * random.uniform(10, 30), 2)
            dep = round(rcv * random.uniform(0.1, 0.4), 2)
            rows.append(DepreciationItem(
                org_id=claim.org_id,
                claim_id=claim.id,
                description=desc,
                coverage="A",
                rcv=rcv,
                depreciation=dep,
                acv=round(rcv - dep, 2),
                completed=random.random() < 0.6,
                recoverable=random.random() < 0.85,
            ))
        if random.random() < 0.5:
            rows.append(Supplement(
                org_id=claim.org_id,
                claim_id=claim.id,
                item_description=random.choice(["Starter strip omitted", "Ice & water barrier at eaves", "Drip edge"]),
                amount=round(random.uniform(150, 1800), 2),
                status=random.choice(["draft", "submitted", "approved", "denied"]),
            ))
    db.session.add_all(rows)
    db.session.commit()
    return rows


def seed_leads(org, user, n=12):
    leads = []
    for _ in range(n):
        contact = Contact(
            org_id=org.id,
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            email=fake.email(),
            phone=fake.numerify("##########"),
            role="Homeowner",
        )
        lead = Lead(
            org_id=org.id,
            title=f"{random.choice(['Hail', 'Wind', 'Leak'])} inspection - {fake.street_name()}",
            source=random.choice(["door-knock", "referral", "web", "storm-canvass"]),
            stage=random.choice([s for s in LEAD_STAGES if s != "won"]),
            temperature=random.choice(LEAD_TEMPERATURES),
            value=round(random.uniform(6000, 32000), -2),
            follow_up_date=date.today() + timedelta(days=random.randint(1, 21)),
            contact=contact,
            property=_property(org),
            assigned_to_id=user.id,
        )
        db.session.add(lead)
        leads.append(lead)
    db.session.commit()
    return leads


def seed_trade_profile(org, user):
    profile = TradeProfile(
        user_id=user.id,
        org_id=org.id,
        slug="summit-roofing-pro",
        display_name=f"{user.full_name} - Summit Roofing",
        trade="roofing",
        bio=fake.paragraph(nb_sentences=3),
        years_experience=random.randint(5, 25),
        license_number=org.license_number,
        service_zips_json=json.dumps(["85004", "85016", "85251"]),
    )
    db.session.add(profile)
    db.session.commit()
    return profile


def main():
    parser = argparse.ArgumentParser(description="Seed ClaimDesk demo data.")
    parser.add_argument("--wipe", action="store_true")
    parser.add_argument("--seed", action="store_true")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.wipe:
            wipe_domain_data()
        if args.seed:
            org = seed_organization()
            users = seed_users(org)
            admin = users[0]
            claims = seed_claims(org, admin, n=random.randint(6, 10))
            estimates = seed_estimates(claims)
            dep_rows = seed_depreciation(claims)
            leads = seed_leads(org, admin)
            seed_trade_profile(org, admin)
            vendors = ensure_seed_vendors()
            print("Demo data seeded successfully.")
            print(f"Organization: {org.name} ({org.slug})")
            for u in users:
                print(f"  {u.email} / {DEMO_PASSWORD}  token={u.api_token}")
            print(f"Claims: {len(claims)}")
            print(f"Estimates: {len(estimates)}")
            print(f"Depreciation items + supplements: {len(dep_rows)}")
            print(f"Leads: {len(leads)}")
            print(f"Vendors added: {vendors}")


if __name__ == "__main__":
    main()
