from sqlalchemy import JSON, Boolean, CheckConstraint, Column, Date, ForeignKey, String, Text, Uuid

from app.db.base import Base
from app.models.mixins import TenantScopedMixin


class Verification(TenantScopedMixin, Base):
    """Field visit (residence, business, property or vehicle) recorded against a loan application."""

    __tablename__ = "verifications"
    __table_args__ = (
        CheckConstraint(
            "verification_type IN ('RESIDENCE', 'BUSINESS', 'PROPERTY', 'VEHICLE')",
            name="ck_verification_type",
        ),
        CheckConstraint("status IN ('PENDING', 'COMPLETED', 'FAILED')", name="ck_verification_status"),
    )

    loan_application_id = Column(
        Uuid,
        ForeignKey("loan_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    verification_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    result = Column(Boolean, nullable=False, default=False)
    remarks = Column(Text, nullable=True)
    verification_date = Column(Date, nullable=False)
    verification_time = Column(String(5), nullable=True)
    # Type-specific findings, validated against the schema for ``verification_type``.
    details = Column(JSON, nullable=False, default=dict)
    verifier_id = Column(String(64), nullable=True)
