from sqlalchemy import Boolean, Column, Date, Index, String, text

from app.db.base import Base
from app.models.mixins import TenantScopedMixin
from app.models.types import EncryptedString


class Applicant(TenantScopedMixin, Base):
    __tablename__ = "applicants"
    __table_args__ = (
        # Soft-deleted applicants release their email for re-registration.
        Index(
            "uq_applicants_bank_email_active",
            "bank_id",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address_full = Column(String(500), nullable=True)
    address_city = Column(String(100), nullable=True)
    address_state = Column(String(100), nullable=True)
    address_pin_code = Column(String(10), nullable=True)
    aadhar_number = Column(EncryptedString(), nullable=True)
    pan_number = Column(EncryptedString(), nullable=True)
    aadhar_verification_status = Column(Boolean, nullable=False, default=False)
    pan_verification_status = Column(Boolean, nullable=False, default=False)
    photo_url = Column(String(1024), nullable=True)
