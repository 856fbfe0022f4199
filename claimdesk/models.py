"""
SQLAlchemy models for ClaimDesk.

This file defines:
- Tenancy: Organization, User, Membership (role per org)
- CRM entities: Property, Contact, Lead
- Claims and everything hanging off a claim: ClaimActivity, Estimate,
  Supplement, DepreciationItem, WeatherReport, DamageAssessment, GeneratedReport
- Global vendor catalog: Vendor, VendorLocation, VendorProduct
- Public trade-professional profiles: TradeProfile

Every tenant-owned row carries `org_id`; routes only ever load rows through
`claimdesk.tenancy.get_org_object_or_404` or an org-filtered query.
"""

import json
import secrets
from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from .extensions import db


def _load_json(raw, default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


# ============================================================
#  TENANCY
# ============================================================

class Organization(db.Model):
    __tablename__ = "organization"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True)

    # Branding used on PDF packets
    brand_color = db.Column(db.String(20), default="#1f3a5f")
    phone = db.Column(db.String(50))
    email = db.Column(db.String(255))
    license_number = db.Column(db.String(120))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    memberships = db.relationship("Membership", back_populates="organization", cascade="all, delete-orphan")
    claims = db.relationship("Claim", back_populates="organization")

    def __repr__(self):
        return f"<Organization {self.slug}>"


class User(db.Model):
    __tablename__ = "user_account"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    full_name = db.Column(db.String(255))
    password_hash = db.Column(db.String(255))

    # Bearer token for the JSON API
    api_token = db.Column(db.String(64), unique=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    memberships = db.relationship("Membership", back_populates="user", cascade="all, delete-orphan")
    trade_profile = db.relationship("TradeProfile", back_populates="user", uselist=False)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def rotate_api_token(self) -> str:
        self.api_token = secrets.token_hex(24)
        return self.api_token

    def __repr__(self):
        return f"<User {self.email}>"


class Membership(db.Model):
    __tablename__ = "membership"
    __table_args__ = (db.UniqueConstraint("org_id", "user_id", name="uq_membership_org_user"),)

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("user_account.id"), nullable=False)

    # admin | manager | member | viewer
    role = db.Column(db.String(20), nullable=False, default="member")

    organization = db.relationship("Organization", back_populates="memberships")
    user = db.relationship("User", back_populates="memberships")

    def __repr__(self):
        return f"<Membership org={self.org_id} user={self.user_id} role={self.role}>"


# ============================================================
#  CRM ENTITIES
# ============================================================

class Property(db.Model):
    __tablename__ = "property"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False, index=True)

    street = db.Column(db.String(255))
    city = db.Column(db.String(120))
    state = db.Column(db.String(10))
    zip_code = db.Column(db.String(20))

    property_type = db.Column(db.String(50))  # residential / commercial
    roof_type = db.Column(db.String(50))      # asphalt_shingle, metal, tile ...
    year_built = db.Column(db.Integer)

    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)

    @property
    def full_address(self) -> str:
        tail = " ".join(p for p in [self.state, self.zip_code] if p)
        parts = [p for p in [self.street, self.city, tail] if p]
        return ", ".join(parts)

    def __repr__(self):
        return f"<Property {self.full_address}>"


class Contact(db.Model):
    __tablename__ = "contact"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False, index=True)

    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    company = db.Column(db.String(255))
    role = db.Column(db.String(120))  # e.g. "Homeowner", "Adjuster", "PA"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Contact {self.full_name}>"


class Lead(db.Model):
    __tablename__ = "lead"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False, index=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    source = db.Column(db.String(80))
    stage = db.Column(db.String(30), nullable=False, default="new")
    temperature = db.Column(db.String(10), nullable=False, default="warm")
    value = db.Column(db.Float)
    probability = db.Column(db.Integer)
    follow_up_date = db.Column(db.Date)

    contact_id = db.Column(db.Integer, db.ForeignKey("contact.id"))
    property_id = db.Column(db.Integer, db.ForeignKey("property.id"))
    assigned_to_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    claim_id = db.Column(db.Integer, db.ForeignKey("claim.id", ondelete="SET NULL"))

    # AI intake enrichment
    ai_summary = db.Column(db.Text)
    ai_urgency_score = db.Column(db.Integer)
    ai_materials_json = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Python properties go above the `property` relationship, which shadows the builtin.
    @property
    def ai_materials(self) -> list:
        return _load_json(self.ai_materials_json, [])

    contact = db.relationship("Contact")
    property = db.relationship("Property")
    assigned_to = db.relationship("User")
    claim = db.relationship("Claim", back_populates="leads")

    def __repr__(self):
        return f"<Lead {self.title}>"


# ============================================================
#  CLAIM MODEL
# ============================================================

class Claim(db.Model):
    __tablename__ = "claim"
    __table_args__ = (db.UniqueConstraint("org_id", "claim_number", name="uq_claim_org_number"),)

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False, index=True)

    claim_number = db.Column(db.String(120), nullable=False)
    title = db.Column(db.String(255))
    insured_name = db.Column(db.String(255), nullable=False)
    insured_email = db.Column(db.String(255))
    insured_phone = db.Column(db.String(50))

    carrier = db.Column(db.String(255))
    policy_number = db.Column(db.String(120))
    adjuster_name = db.Column(db.String(255))
    adjuster_email = db.Column(db.String(255))

    # Category / subtype follow claimdesk.pricing.CLAIM_CATEGORIES
    category = db.Column(db.String(50), default="roofing")
    subtype = db.Column(db.String(50))
    loss_type = db.Column(db.String(80))
    date_of_loss = db.Column(db.Date)
    description = db.Column(db.Text)

    # inspection -> adjuster_review -> approved -> paid (+ denied / closed)
    lifecycle_stage = db.Column(db.String(30), nullable=False, default="inspection")

    deductible = db.Column(db.Float, default=1000.0)
    acv_paid = db.Column(db.Float)

    property_id = db.Column(db.Integer, db.ForeignKey("property.id"))
    created_by_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Declared before the `property` relationship below.
    @property
    def latest_estimate(self):
        return self.estimates[0] if self.estimates else None

    organization = db.relationship("Organization", back_populates="claims")
    property = db.relationship("Property")
    created_by = db.relationship("User")
    leads = db.relationship("Lead", back_populates="claim")

    activities = db.relationship(
        "ClaimActivity",
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="ClaimActivity.created_at.desc()",
    )
    estimates = db.relationship(
        "Estimate",
        back_populates="claim",
        cascade="all, delete-orphan",
        order_by="Estimate.created_at.desc()",
    )
    supplements = db.relationship("Supplement", back_populates="claim", cascade="all, delete-orphan")
    depreciation_items = db.relationship("DepreciationItem", back_populates="claim", cascade="all, delete-orphan")
    weather_reports = db.relationship("WeatherReport", back_populates="claim", cascade="all, delete-orphan")
    damage_assessments = db.relationship("DamageAssessment", back_populates="claim", cascade="all, delete-orphan")
    reports = db.relationship("GeneratedReport", back_populates="claim", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Claim {self.claim_number}>"


class ClaimActivity(db.Model):
    """Timeline entry (stage changes, notes, generated documents)."""
    __tablename__ = "claim_activity"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    claim_id = db.Column(db.Integer, db.ForeignKey("claim.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))

    kind = db.Column(db.String(40), nullable=False, default="note")
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    claim = db.relationship("Claim", back_populates="activities")
    user = db.relationship("User")

    def __repr__(self):
        return f"<ClaimActivity {self.kind} claim={self.claim_id}>"


class Estimate(db.Model):
    __tablename__ = "estimate"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    claim_id = db.Column(db.Integer, db.ForeignKey("claim.id"), nullable=False, index=True)

    source = db.Column(db.String(80))  # "carrier", "contractor", "xactimate"
    total_amount = db.Column(db.Float, default=0.0)
    # JSON list of {"description", "quantity", "unit", "unit_price", "total"}
    line_items_json = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    claim = db.relationship("Claim", back_populates="estimates")

    @property
    def line_items(self) -> list:
        return _load_json(self.line_items_json, [])

    def __repr__(self):
        return f"<Estimate claim={self.claim_id} total={self.total_amount}>"


class Supplement(db.Model):
    __tablename__ = "supplement"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    claim_id = db.Column(db.Integer, db.ForeignKey("claim.id"), nullable=False, index=True)

    item_description = db.Column(db.String(500), nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0.0)
    # draft | submitted | approved | denied
    status = db.Column(db.String(20), nullable=False, default="draft")
    denial_reason = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    claim = db.relationship("Claim", back_populates="supplements")

    def __repr__(self):
        return f"<Supplement {self.item_description} {self.status}>"


class DepreciationItem(db.Model):
    __tablename__ = "depreciation_item"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    claim_id = db.Column(db.Integer, db.ForeignKey("claim.id"), nullable=False, index=True)

    description = db.Column(db.String(500), nullable=False)
    coverage = db.Column(db.String(1), nullable=False, default="A")  # A / B / C
    rcv = db.Column(db.Float, nullable=False, default=0.0)
    depreciation = db.Column(db.Float, nullable=False, default=0.0)
    acv = db.Column(db.Float, nullable=False, default=0.0)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    recoverable = db.Column(db.Boolean, nullable=False, default=True)

    claim = db.relationship("Claim", back_populates="depreciation_items")

    def __repr__(self):
        return f"<DepreciationItem {self.description}>"


# ============================================================
#  EVIDENCE: WEATHER / DAMAGE
# ============================================================

class WeatherReport(db.Model):
    __tablename__ = "weather_report"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    claim_id = db.Column(db.Integer, db.ForeignKey("claim.id"), nullable=False, index=True)

    event_type = db.Column(db.String(80))
    report_date = db.Column(db.Date)
    max_wind_speed = db.Column(db.Float)  # mph
    max_hail_size = db.Column(db.Float)   # inches
    precip_in = db.Column(db.Float)
    summary = db.Column(db.Text)
    source = db.Column(db.String(120))
    is_mock = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    claim = db.relationship("Claim", back_populates="weather_reports")

    def __repr__(self):
        return f"<WeatherReport {self.event_type} {self.report_date}>"


class DamageAssessment(db.Model):
    __tablename__ = "damage_assessment"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    claim_id = db.Column(db.Integer, db.ForeignKey("claim.id"), nullable=False, index=True)

    image_url = db.Column(db.String(1000))
    damage_type = db.Column(db.String(80))
    severity = db.Column(db.String(20))
    confidence = db.Column(db.Float)
    # JSON list of detections (type, confidence, coordinates, severity, ellipse)
    detections_json = db.Column(db.Text)
    is_mock = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    claim = db.relationship("Claim", back_populates="damage_assessments")

    @property
    def detections(self) -> list:
        return _load_json(self.detections_json, [])

    def __repr__(self):
        return f"<DamageAssessment {self.damage_type} {self.severity}>"


# ============================================================
#  GENERATED DOCUMENTS
# ============================================================

class GeneratedReport(db.Model):
    __tablename__ = "generated_report"

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    claim_id = db.Column(db.Integer, db.ForeignKey("claim.id"), nullable=False, index=True)

    kind = db.Column(db.String(30), nullable=False, default="packet")  # packet / appeal / depreciation
    layout_key = db.Column(db.String(50))
    filename_stored = db.Column(db.String(500), nullable=False)
    page_count = db.Column(db.Integer)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    claim = db.relationship("Claim", back_populates="reports")
    created_by = db.relationship("User")

    def __repr__(self):
        return f"<GeneratedReport {self.kind} {self.filename_stored}>"


# ============================================================
#  VENDOR CATALOG (global, not tenant-owned)
# ============================================================

class Vendor(db.Model):
    __tablename__ = "vendor"

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(120), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    website = db.Column(db.String(500))
    phone = db.Column(db.String(50))
    email = db.Column(db.String(255))
    summary = db.Column(db.Text)
    categories_json = db.Column(db.Text)
    last_synced_at = db.Column(db.DateTime)

    locations = db.relationship("VendorLocation", back_populates="vendor", cascade="all, delete-orphan")
    products = db.relationship("VendorProduct", back_populates="vendor", cascade="all, delete-orphan")

    @property
    def categories(self) -> list:
        return _load_json(self.categories_json, [])

    def __repr__(self):
        return f"<Vendor {self.slug}>"


class VendorLocation(db.Model):
    __tablename__ = "vendor_location"

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendor.id"), nullable=False, index=True)

    city = db.Column(db.String(120))
    state = db.Column(db.String(10))
    address = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    hours = db.Column(db.String(120))
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)

    vendor = db.relationship("Vendor", back_populates="locations")

    def __repr__(self):
        return f"<VendorLocation {self.city}, {self.state}>"


class VendorProduct(db.Model):
    __tablename__ = "vendor_product"
    __table_args__ = (db.UniqueConstraint("vendor_id", "external_id", name="uq_vendor_product_external"),)

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendor.id"), nullable=False, index=True)

    external_id = db.Column(db.String(120), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    product_type = db.Column(db.String(80))
    description = db.Column(db.Text)
    warranty = db.Column(db.String(255))

    vendor = db.relationship("Vendor", back_populates="products")

    def __repr__(self):
        return f"<VendorProduct {self.name}>"


# ============================================================
#  TRADE PROFILES
# ============================================================

class TradeProfile(db.Model):
    __tablename__ = "trade_profile"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user_account.id"), nullable=False, unique=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organization.id"))

    slug = db.Column(db.String(120), nullable=False, unique=True)
    display_name = db.Column(db.String(255), nullable=False)
    trade = db.Column(db.String(80))
    bio = db.Column(db.Text)
    years_experience = db.Column(db.Integer)
    license_number = db.Column(db.String(120))
    service_zips_json = db.Column(db.Text)
    is_public = db.Column(db.Boolean, nullable=False, default=True)

    user = db.relationship("User", back_populates="trade_profile")
    organization = db.relationship("Organization")

    @property
    def service_zips(self) -> list:
        return _load_json(self.service_zips_json, [])

    def __repr__(self):
        return f"<TradeProfile {self.slug}>"
