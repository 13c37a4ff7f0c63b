from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String, Text, Uuid

from app.db.base import Base
from app.models.mixins import TenantScopedMixin


class LoanApplication(TenantScopedMixin, Base):
    __tablename__ = "loan_applications"
    __table_args__ = (
        CheckConstraint("amount_requested > 0", name="ck_loan_app_amount_positive"),
        CheckConstraint("proposed_amount >= 0", name="ck_loan_app_proposed_nonneg"),
        CheckConstraint(
            "selected_tenure_months IS NULL OR selected_tenure_months > 0",
            name="ck_loan_app_tenure_positive",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'PENDING', 'UNDER_REVIEW', 'PENDING_VERIFICATION', "
            "'VERIFICATION_IN_PROGRESS', 'VERIFICATION_COMPLETED', 'VERIFICATION_FAILED', "
            "'APPROVED', 'REJECTED', 'REJECTED_BY_APPLICANT')",
            name="ck_loan_app_status",
        ),
        CheckConstraint(
            "loan_type IN ('PERSONAL', 'VEHICLE', 'HOUSE_CONSTRUCTION', 'PLOT_PURCHASE', "
            "'MORTGAGE', 'PLOT_AND_HOUSE_CONSTRUCTION')",
            name="ck_loan_app_loan_type",
        ),
    )

    applicant_id = Column(
        Uuid,
        ForeignKey("applicants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    loan_type = Column(String(40), nullable=False)
    amount_requested = Column(Numeric(14, 2), nullable=False)
    proposed_amount = Column(Numeric(14, 2), nullable=True)
    selected_tenure_months = Column(Integer, nullable=True)
    status = Column(String(40), nullable=False, default="PENDING", index=True)
    remarks = Column(Text, nullable=True)
