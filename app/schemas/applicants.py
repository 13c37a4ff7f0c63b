from __future__ import annotations

import re
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.schemas.common import SubjectPayload, reject_null, validate_mobile

_AADHAR_RE = re.compile(r"^\d{12}$")
_PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
_PIN_RE = re.compile(r"^\d{6}$")


class VerificationStatus(str, Enum):
    FULLY_VERIFIED = "FULLY_VERIFIED"
    PARTIALLY_VERIFIED = "PARTIALLY_VERIFIED"
    UNVERIFIED = "UNVERIFIED"


class ApplicantUpdate(SubjectPayload):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone_number: str | None = None
    date_of_birth: date | None = None
    address_full: str | None = Field(default=None, max_length=500)
    address_city: str | None = Field(default=None, max_length=100)
    address_state: str | None = Field(default=None, max_length=100)
    address_pin_code: str | None = None
    aadhar_number: str | None = None
    pan_number: str | None = None
    aadhar_verification_status: bool | None = None
    pan_verification_status: bool | None = None
    photo_url: str | None = Field(default=None, max_length=1024)

    @field_validator(
        "first_name",
        "last_name",
        "email",
        "aadhar_verification_status",
        "pan_verification_status",
    )
    @classmethod
    def not_null(cls, v):
        return reject_null(v)

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        return validate_mobile(v)

    @field_validator("date_of_birth")
    @classmethod
    def check_birth_date(cls, v: date | None) -> date | None:
        if v is not None and v >= date.today():
            raise ValueError("Date of birth must be in the past")
        return v

    @field_validator("address_pin_code")
    @classmethod
    def check_pin_code(cls, v: str | None) -> str | None:
        if v is not None and not _PIN_RE.fullmatch(v):
            raise ValueError("PIN code must be 6 digits")
        return v

    @field_validator("aadhar_number")
    @classmethod
    def check_aadhar(cls, v: str | None) -> str | None:
        if v is None:
            return v
        cleaned = v.replace(" ", "").replace("-", "")
        if not _AADHAR_RE.fullmatch(cleaned):
            raise ValueError("Aadhaar number must be 12 digits")
        return cleaned

    @field_validator("pan_number")
    @classmethod
    def check_pan(cls, v: str | None) -> str | None:
        if v is None:
            return v
        cleaned = v.upper()
        if not _PAN_RE.fullmatch(cleaned):
            raise ValueError("PAN must look like AAAAA9999A")
        return cleaned


class ApplicantCreate(ApplicantUpdate):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    aadhar_verification_status: bool = False
    pan_verification_status: bool = False


class ApplicantFilters(BaseModel):
    model_config = ConfigDict(extra="ignore")

    verification_status: VerificationStatus | None = None
    address_state: str | None = None


def verification_status_of(aadhar_verified: bool | None, pan_verified: bool | None) -> str | None:
    if aadhar_verified is None and pan_verified is None:
        return None
    if aadhar_verified and pan_verified:
        return VerificationStatus.FULLY_VERIFIED.value
    if aadhar_verified or pan_verified:
        return VerificationStatus.PARTIALLY_VERIFIED.value
    return VerificationStatus.UNVERIFIED.value
