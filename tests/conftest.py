import pytest

from claimdesk import create_app, db
from claimdesk.config import TestingConfig
from claimdesk.models import Claim, Membership, Organization, Property, User


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        DOCUMENTS_ROOT = str(tmp_path / "documents")

    app = create_app(Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(org, email, role):
    user = User(email=email, full_name=email.split("@")[0].title())
    user.set_password("secret123")
    user.rotate_api_token()
    db.session.add(user)
    db.session.flush()
    db.session.add(Membership(org_id=org.id, user_id=user.id, role=role))
    db.session.commit()
    return user


@pytest.fixture
def org(app):
    org = Organization(name="Summit Roofing", slug="summit-roofing", license_number="ROC-1")
    db.session.add(org)
    db.session.commit()
    return org


@pytest.fixture
def other_org(app):
    org = Organization(name="Rival Exteriors", slug="rival-exteriors")
    db.session.add(org)
    db.session.commit()
    return org


@pytest.fixture
def admin(org):
    return _make_user(org, "admin@summit.example", "admin")


@pytest.fixture
def member(org):
    return _make_user(org, "member@summit.example", "member")


@pytest.fixture
def viewer(org):
    return _make_user(org, "viewer@summit.example", "viewer")


@pytest.fixture
def outsider(other_org):
    return _make_user(other_org, "owner@rival.example", "admin")


def auth(user):
    return {"Authorization": f"Bearer {user.api_token}"}


@pytest.fixture
def claim(org, admin):
    claim = Claim(
        org_id=org.id,
        claim_number="CLM-2024-1001",
        insured_name="Dana Whitfield",
        carrier="State Farm",
        adjuster_name="Pat Keller",
        adjuster_email="pat.keller@carrier.example",
        category="roofing",
        subtype="hail",
        created_by_id=admin.id,
        property=Property(
            org_id=org.id,
            street="1420 W Camelback Rd",
            city="Phoenix",
            state="AZ",
            zip_code="85013",
            roof_type="asphalt_shingle",
            year_built=2004,
        ),
    )
    db.session.add(claim)
    db.session.commit()
    return claim
