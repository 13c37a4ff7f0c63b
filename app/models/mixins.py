import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import declared_attr


class TenantScopedMixin:
    """Columns every subject row carries: identity, tenant, timestamps and the soft-delete tombstone."""

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    bank_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)


class LoanPartyMixin:
    """Contact person attached to a loan application (co-applicant, guarantor)."""

    @declared_attr
    def loan_application_id(cls):
        return Column(
            Uuid,
            ForeignKey("loan_applications.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    mobile_number = Column(String(20), nullable=False)
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    address_city = Column(String(100), nullable=False)
    address_state = Column(String(100), nullable=False)
    address_zip_code = Column(String(20), nullable=False)
