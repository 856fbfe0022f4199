"""initial claimdesk schema

Revision ID: 4c1d2e8f9a01
Revises:
Create Date: 2026-10-17 14:40:02.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1d2e8f9a01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "organization",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=120), nullable=False, unique=True),
        sa.Column("brand_color", sa.String(length=20), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("license_number", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("api_token", sa.String(length=64), nullable=True, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "membership",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="member"),
        sa.UniqueConstraint("org_id", "user_id", name="uq_membership_org_user"),
    )

    op.create_table(
        "property",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("street", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=10), nullable=True),
        sa.Column("zip_code", sa.String(length=20), nullable=True),
        sa.Column("property_type", sa.String(length=50), nullable=True),
        sa.Column("roof_type", sa.String(length=50), nullable=True),
        sa.Column("year_built", sa.Integer(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
    )
    op.create_index("ix_property_org_id", "property", ["org_id"])

    op.create_table(
        "contact",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=120), nullable=True),
    )
    op.create_index("ix_contact_org_id", "contact", ["org_id"])

    op.create_table(
        "claim",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("claim_number", sa.String(length=120), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("insured_name", sa.String(length=255), nullable=False),
        sa.Column("insured_email", sa.String(length=255), nullable=True),
        sa.Column("insured_phone", sa.String(length=50), nullable=True),
        sa.Column("carrier", sa.String(length=255), nullable=True),
        sa.Column("policy_number", sa.String(length=120), nullable=True),
        sa.Column("adjuster_name", sa.String(length=255), nullable=True),
        sa.Column("adjuster_email", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("subtype", sa.String(length=50), nullable=True),
        sa.Column("loss_type", sa.String(length=80), nullable=True),
        sa.Column("date_of_loss", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("lifecycle_stage", sa.String(length=30), nullable=False, server_default="inspection"),
        sa.Column("deductible", sa.Float(), nullable=True),
        sa.Column("acv_paid", sa.Float(), nullable=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("property.id"), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("org_id", "claim_number", name="uq_claim_org_number"),
    )
    op.create_index("ix_claim_org_id", "claim", ["org_id"])

    op.create_table(
        "lead",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("source", sa.String(length=80), nullable=True),
        sa.Column("stage", sa.String(length=30), nullable=False, server_default="new"),
        sa.Column("temperature", sa.String(length=10), nullable=False, server_default="warm"),
        sa.Column("value", sa.Float(), nullable=True),
        sa.Column("probability", sa.Integer(), nullable=True),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        sa.Column("contact_id", sa.Integer(), sa.ForeignKey("contact.id"), nullable=True),
        sa.Column("property_id", sa.Integer(), sa.ForeignKey("property.id"), nullable=True),
        sa.Column("assigned_to_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=True),
        sa.Column("claim_id", sa.Integer(), sa.ForeignKey("claim.id", ondelete="SET NULL"), nullable=True),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("ai_urgency_score", sa.Integer(), nullable=True),
        sa.Column("ai_materials_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_lead_org_id", "lead", ["org_id"])

    op.create_table(
        "claim_activity",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("claim_id", sa.Integer(), sa.ForeignKey("claim.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=True),
        sa.Column("kind", sa.String(length=40), nullable=False, server_default="note"),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_claim_activity_claim_id", "claim_activity", ["claim_id"])

    op.create_table(
        "estimate",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("claim_id", sa.Integer(), sa.ForeignKey("claim.id"), nullable=False),
        sa.Column("source", sa.String(length=80), nullable=True),
        sa.Column("total_amount", sa.Float(), nullable=True),
        sa.Column("line_items_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_estimate_claim_id", "estimate", ["claim_id"])

    op.create_table(
        "supplement",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("claim_id", sa.Integer(), sa.ForeignKey("claim.id"), nullable=False),
        sa.Column("item_description", sa.String(length=500), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("denial_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_supplement_claim_id", "supplement", ["claim_id"])

    op.create_table(
        "depreciation_item",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("claim_id", sa.Integer(), sa.ForeignKey("claim.id"), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("coverage", sa.String(length=1), nullable=False, server_default="A"),
        sa.Column("rcv", sa.Float(), nullable=False, server_default="0"),
        sa.Column("depreciation", sa.Float(), nullable=False, server_default="0"),
        sa.Column("acv", sa.Float(), nullable=False, server_default="0"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("recoverable", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_depreciation_item_claim_id", "depreciation_item", ["claim_id"])

    op.create_table(
        "weather_report",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("claim_id", sa.Integer(), sa.ForeignKey("claim.id"), nullable=False),
        sa.Column("event_type", sa.String(length=80), nullable=True),
        sa.Column("report_date", sa.Date(), nullable=True),
        sa.Column("max_wind_speed", sa.Float(), nullable=True),
        sa.Column("max_hail_size", sa.Float(), nullable=True),
        sa.Column("precip_in", sa.Float(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("source", sa.String(length=120), nullable=True),
        sa.Column("is_mock", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_weather_report_claim_id", "weather_report", ["claim_id"])

    op.create_table(
        "damage_assessment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("claim_id", sa.Integer(), sa.ForeignKey("claim.id"), nullable=False),
        sa.Column("image_url", sa.String(length=1000), nullable=True),
        sa.Column("damage_type", sa.String(length=80), nullable=True),
        sa.Column("severity", sa.String(length=20), nullable=True),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("detections_json", sa.Text(), nullable=True),
        sa.Column("is_mock", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_damage_assessment_claim_id", "damage_assessment", ["claim_id"])

    op.create_table(
        "generated_report",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=False),
        sa.Column("claim_id", sa.Integer(), sa.ForeignKey("claim.id"), nullable=False),
        sa.Column("kind", sa.String(length=30), nullable=False, server_default="packet"),
        sa.Column("layout_key", sa.String(length=50), nullable=True),
        sa.Column("filename_stored", sa.String(length=500), nullable=False),
        sa.Column("page_count", sa.Integer(), nullable=True),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_generated_report_claim_id", "generated_report", ["claim_id"])

    op.create_table(
        "vendor",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slug", sa.String(length=120), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("categories_json", sa.Text(), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "vendor_location",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendor.id"), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=10), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("hours", sa.String(length=120), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
    )
    op.create_index("ix_vendor_location_vendor_id", "vendor_location", ["vendor_id"])
    op.create_table(
        "vendor_product",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendor.id"), nullable=False),
        sa.Column("external_id", sa.String(length=120), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("product_type", sa.String(length=80), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("warranty", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("vendor_id", "external_id", name="uq_vendor_product_external"),
    )
    op.create_index("ix_vendor_product_vendor_id", "vendor_product", ["vendor_id"])

    op.create_table(
        "trade_profile",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user_account.id"), nullable=False, unique=True),
        sa.Column("org_id", sa.Integer(), sa.ForeignKey("organization.id"), nullable=True),
        sa.Column("slug", sa.String(length=120), nullable=False, unique=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("trade", sa.String(length=80), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("years_experience", sa.Integer(), nullable=True),
        sa.Column("license_number", sa.String(length=120), nullable=True),
        sa.Column("service_zips_json", sa.Text(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("trade_profile")
    op.drop_index("ix_vendor_product_vendor_id", table_name="vendor_product")
    op.drop_table("vendor_product")
    op.drop_index("ix_vendor_location_vendor_id", table_name="vendor_location")
    op.drop_table("vendor_location")
    op.drop_table("vendor")
    for table in (
        "generated_report", "damage_assessment", "weather_report", "depreciation_item",
        "supplement", "estimate", "claim_activity",
    ):
        op.drop_index(f"ix_{table}_claim_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_lead_org_id", table_name="lead")
    op.drop_table("lead")
    op.drop_index("ix_claim_org_id", table_name="claim")
    op.drop_table("claim")
    op.drop_index("ix_contact_org_id", table_name="contact")
    op.drop_table("contact")
    op.drop_index("ix_property_org_id", table_name="property")
    op.drop_table("property")
    op.drop_table("membership")
    op.drop_table("user_account")
    op.drop_table("organization")
