from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.common import SubjectPayload, reject_null, validate_mobile


class LoanPartyUpdate(SubjectPayload):
    """Co-applicant / guarantor payload; both share the same contact columns."""

    loan_application_id: UUID | None = None
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    mobile_number: str | None = None
    address_line1: str | None = Field(default=None, min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    address_city: str | None = Field(default=None, min_length=1, max_length=100)
    address_state: str | None = Field(default=None, min_length=1, max_length=100)
    address_zip_code: str | None = Field(default=None, min_length=3, max_length=20)

    @field_validator(
        "loan_application_id",
        "first_name",
        "last_name",
        "email",
        "mobile_number",
        "address_line1",
        "address_city",
        "address_state",
        "address_zip_code",
    )
    @classmethod
    def not_null(cls, v):
        return reject_null(v)

    @field_validator("mobile_number")
    @classmethod
    def check_mobile(cls, v: str | None) -> str | None:
        return validate_mobile(v)


class LoanPartyCreate(LoanPartyUpdate):
    loan_application_id: UUID
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    mobile_number: str
    address_line1: str = Field(min_length=1, max_length=255)
    address_city: str = Field(min_length=1, max_length=100)
    address_state: str = Field(min_length=1, max_length=100)
    address_zip_code: str = Field(min_length=3, max_length=20)


class LoanPartyFilters(BaseModel):
    model_config = ConfigDict(extra="ignore")

    loan_application_id: UUID | None = None
