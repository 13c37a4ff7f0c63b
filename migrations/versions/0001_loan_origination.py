"""Loan origination subjects and audit log"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_loan_origination"
down_revision = None
branch_labels = None
depends_on = None


def _subject_columns() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bank_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _party_columns() -> list[sa.Column]:
    return [
        sa.Column("loan_application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("mobile_number", sa.String(length=20), nullable=False),
        sa.Column("address_line1", sa.String(length=255), nullable=False),
        sa.Column("address_line2", sa.String(length=255), nullable=True),
        sa.Column("address_city", sa.String(length=100), nullable=False),
        sa.Column("address_state", sa.String(length=100), nullable=False),
        sa.Column("address_zip_code", sa.String(length=20), nullable=False),
    ]


def _subject_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_bank_id", table, ["bank_id"])
    op.create_index(f"ix_{table}_deleted_at", table, ["deleted_at"])


def upgrade() -> None:
    op.create_table(
        "applicants",
        *_subject_columns(),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("address_full", sa.String(length=500), nullable=True),
        sa.Column("address_city", sa.String(length=100), nullable=True),
        sa.Column("address_state", sa.String(length=100), nullable=True),
        sa.Column("address_pin_code", sa.String(length=10), nullable=True),
        sa.Column("aadhar_number", sa.LargeBinary(), nullable=True),
        sa.Column("pan_number", sa.LargeBinary(), nullable=True),
        sa.Column("aadhar_verification_status", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("pan_verification_status", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("photo_url", sa.String(length=1024), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    _subject_indexes("applicants")
    op.create_index(
        "uq_applicants_bank_email_active",
        "applicants",
        ["bank_id", "email"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "loan_applications",
        *_subject_columns(),
        sa.Column("applicant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("loan_type", sa.String(length=40), nullable=False),
        sa.Column("amount_requested", sa.Numeric(14, 2), nullable=False),
        sa.Column("proposed_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("selected_tenure_months", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="PENDING"),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["applicant_id"], ["applicants.id"], ondelete="CASCADE"),
        sa.CheckConstraint("amount_requested > 0", name="ck_loan_app_amount_positive"),
        sa.CheckConstraint("proposed_amount >= 0", name="ck_loan_app_proposed_nonneg"),
        sa.CheckConstraint(
            "selected_tenure_months IS NULL OR selected_tenure_months > 0",
            name="ck_loan_app_tenure_positive",
        ),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'PENDING', 'UNDER_REVIEW', 'PENDING_VERIFICATION', "
            "'VERIFICATION_IN_PROGRESS', 'VERIFICATION_COMPLETED', 'VERIFICATION_FAILED', "
            "'APPROVED', 'REJECTED', 'REJECTED_BY_APPLICANT')",
            name="ck_loan_app_status",
        ),
        sa.CheckConstraint(
            "loan_type IN ('PERSONAL', 'VEHICLE', 'HOUSE_CONSTRUCTION', 'PLOT_PURCHASE', "
            "'MORTGAGE', 'PLOT_AND_HOUSE_CONSTRUCTION')",
            name="ck_loan_app_loan_type",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    _subject_indexes("loan_applications")
    op.create_index("ix_loan_applications_applicant_id", "loan_applications", ["applicant_id"])
    op.create_index("ix_loan_applications_status", "loan_applications", ["status"])

    for table in ("co_applicants", "guarantors"):
        op.create_table(
            table,
            *_subject_columns(),
            *_party_columns(),
            sa.ForeignKeyConstraint(["loan_application_id"], ["loan_applications.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        _subject_indexes(table)
        op.create_index(f"ix_{table}_loan_application_id", table, ["loan_application_id"])

    op.create_table(
        "incomes",
        *_subject_columns(),
        sa.Column("applicant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("income_type", sa.String(length=50), nullable=False),
        sa.Column("gross_income", sa.Numeric(14, 2), nullable=False),
        sa.Column("taxable_income", sa.Numeric(14, 2), nullable=True),
        sa.Column("tax_paid", sa.Numeric(14, 2), nullable=True),
        sa.Column("average_monthly_expenditure", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("dependents", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["applicant_id"], ["applicants.id"], ondelete="CASCADE"),
        sa.CheckConstraint("dependents >= 0", name="ck_income_dependents_nonneg"),
        sa.CheckConstraint("gross_income >= 0", name="ck_income_gross_nonneg"),
        sa.PrimaryKeyConstraint("id"),
    )
    _subject_indexes("incomes")
    op.create_index("ix_incomes_applicant_id", "incomes", ["applicant_id"])
    op.create_index(
        "uq_incomes_applicant_year_type_active",
        "incomes",
        ["applicant_id", "year", "income_type"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
    )

    op.create_table(
        "reviews",
        *_subject_columns(),
        sa.Column("loan_application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("review_entity_type", sa.String(length=40), nullable=False),
        sa.Column("review_entity_id", sa.String(length=64), nullable=False),
        sa.Column("review_event_type", sa.String(length=40), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=False),
        sa.Column("result", sa.Boolean(), nullable=False),
        sa.Column("action_data", sa.JSON(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=40), nullable=False),
        sa.ForeignKeyConstraint(["loan_application_id"], ["loan_applications.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    _subject_indexes("reviews")
    op.create_index("ix_reviews_loan_application_id", "reviews", ["loan_application_id"])

    op.create_table(
        "verifications",
        *_subject_columns(),
        sa.Column("loan_application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("verification_type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("result", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("verification_date", sa.Date(), nullable=False),
        sa.Column("verification_time", sa.String(length=5), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("verifier_id", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(["loan_application_id"], ["loan_applications.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "verification_type IN ('RESIDENCE', 'BUSINESS', 'PROPERTY', 'VEHICLE')",
            name="ck_verification_type",
        ),
        sa.CheckConstraint("status IN ('PENDING', 'COMPLETED', 'FAILED')", name="ck_verification_status"),
        sa.PrimaryKeyConstraint("id"),
    )
    _subject_indexes("verifications")
    op.create_index("ix_verifications_loan_application_id", "verifications", ["loan_application_id"])
    op.create_index("ix_verifications_status", "verifications", ["status"])

    op.create_table(
        "audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bank_id", sa.String(length=64), nullable=True),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("resource_type", sa.String(length=255), nullable=False),
        sa.Column("resource_id", sa.String(length=255), nullable=False),
        sa.Column("old_value", sa.JSON(), nullable=True),
        sa.Column("new_value", sa.JSON(), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("summary", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_bank_id", "audit_logs", ["bank_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("verifications")
    op.drop_table("reviews")
    op.drop_table("incomes")
    op.drop_table("guarantors")
    op.drop_table("co_applicants")
    op.drop_table("loan_applications")
    op.drop_table("applicants")
