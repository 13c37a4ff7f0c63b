from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from app.schemas.common import SubjectPayload, reject_null


class VerificationType(str, Enum):
    RESIDENCE = "RESIDENCE"
    BUSINESS = "BUSINESS"
    PROPERTY = "PROPERTY"
    VEHICLE = "VEHICLE"


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ResidenceType(str, Enum):
    OWNED = "OWNED"
    RENTED = "RENTED"


class StructureType(str, Enum):
    DUPLEX = "DUPLEX"
    APARTMENT = "APARTMENT"
    BUNGALOW = "BUNGALOW"


V = VerificationStatus

TERMINAL_VERIFICATION_STATUSES = frozenset({V.COMPLETED.value, V.FAILED.value})
VERIFICATION_TRANSITIONS: dict[str, frozenset[str]] = {
    V.PENDING.value: frozenset({V.COMPLETED.value, V.FAILED.value}),
}


class _Details(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, use_enum_values=True)


class _SiteDetails(_Details):
    address_line1: str = Field(min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    address_city: str = Field(min_length=1, max_length=100)
    address_state: str = Field(min_length=1, max_length=100)
    address_zip_code: str = Field(min_length=3, max_length=20)
    location_from_main: str = Field(min_length=1, max_length=255)


class ResidenceDetails(_SiteDetails):
    owner_first_name: str = Field(min_length=1, max_length=100)
    owner_last_name: str = Field(min_length=1, max_length=100)
    resident_since: str | None = Field(default=None, max_length=50)
    residence_type: ResidenceType
    structure_type: StructureType


class BusinessDetails(_SiteDetails):
    business_name: str = Field(min_length=1, max_length=255)
    business_type: str = Field(min_length=1, max_length=100)
    contact_details: str = Field(min_length=1, max_length=255)
    business_existence: bool
    nature_of_business: str = Field(min_length=1, max_length=255)
    sales_per_day: str = Field(min_length=1, max_length=100)


class PropertyDetails(_SiteDetails):
    owner_first_name: str = Field(min_length=1, max_length=100)
    owner_last_name: str = Field(min_length=1, max_length=100)
    structure_type: str = Field(min_length=1, max_length=100)


class VehicleDetails(_Details):
    make: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=100)
    vehicle_type: str | None = Field(default=None, max_length=50)
    registration_number: str | None = Field(default=None, max_length=20)
    engine_number: str | None = Field(default=None, max_length=50)
    chassis_number: str | None = Field(default=None, max_length=50)


DETAIL_SCHEMAS: dict[str, type[_Details]] = {
    VerificationType.RESIDENCE.value: ResidenceDetails,
    VerificationType.BUSINESS.value: BusinessDetails,
    VerificationType.PROPERTY.value: PropertyDetails,
    VerificationType.VEHICLE.value: VehicleDetails,
}


def validate_details(verification_type: str, details: dict[str, Any]) -> dict[str, Any]:
    """Validate ``details`` against the schema for the verification type; returns the normalized dict."""
    schema = DETAIL_SCHEMAS[verification_type]
    try:
        return schema.model_validate(details).model_dump(mode="json", exclude_none=True)
    except ValidationError as exc:
        problems = ", ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ValueError(f"Invalid {verification_type.lower()} details ({problems})") from exc


_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class VerificationUpdate(SubjectPayload):
    model_config = ConfigDict(use_enum_values=True)

    status: VerificationStatus | None = None
    result: bool | None = None
    remarks: str | None = Field(default=None, max_length=2000)
    verification_date: date | None = None
    verification_time: str | None = Field(default=None, pattern=_TIME_PATTERN)
    details: dict[str, Any] | None = None

    @field_validator("status", "result", "verification_date", "details")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class VerificationCreate(SubjectPayload):
    # Declared in full so ``verification_type`` is validated before ``details``.
    model_config = ConfigDict(use_enum_values=True)

    loan_application_id: UUID
    verification_type: VerificationType
    status: VerificationStatus = Field(default=VerificationStatus.PENDING, validate_default=True)
    result: bool = False
    remarks: str | None = Field(default=None, max_length=2000)
    verification_date: date = Field(default_factory=date.today)
    verification_time: str | None = Field(default=None, pattern=_TIME_PATTERN)
    details: dict[str, Any]

    @field_validator("details")
    @classmethod
    def check_details(cls, v: dict[str, Any], info: ValidationInfo) -> dict[str, Any]:
        verification_type = info.data.get("verification_type")
        if verification_type is None:
            return v
        return validate_details(verification_type, v)


class VerificationFilters(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    loan_application_id: UUID | None = None
    verification_type: VerificationType | None = None
    status: VerificationStatus | None = None
