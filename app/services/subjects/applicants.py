from __future__ import annotations

from sqlalchemy import and_, func, not_, or_

from app.core.permissions import SubjectType
from app.models.applicant import Applicant
from app.models.loan_application import LoanApplication
from app.schemas.applicants import (
    ApplicantCreate,
    ApplicantFilters,
    ApplicantUpdate,
    VerificationStatus,
    verification_status_of,
)
from app.schemas.loan_applications import TERMINAL_STATUSES
from app.services.lifecycle import GuardSet, no_active_dependents
from app.services.subjects.base import (
    DerivedField,
    SubjectDefinition,
    UniqueRule,
    declared_fields,
    join_present,
)

ADDRESS_FIELDS = ("address_full", "address_city", "address_state", "address_pin_code")


def _verification_criteria(status: str):
    aadhar = Applicant.aadhar_verification_status.is_(True)
    pan = Applicant.pan_verification_status.is_(True)
    if status == VerificationStatus.FULLY_VERIFIED.value:
        return and_(aadhar, pan)
    if status == VerificationStatus.PARTIALLY_VERIFIED.value:
        return and_(or_(aadhar, pan), not_(and_(aadhar, pan)))
    return and_(not_(aadhar), not_(pan))


def apply_filters(filters: ApplicantFilters) -> list:
    criteria = []
    if filters.verification_status is not None:
        criteria.append(_verification_criteria(VerificationStatus(filters.verification_status).value))
    if filters.address_state:
        criteria.append(func.lower(Applicant.address_state) == filters.address_state.strip().lower())
    return criteria


DEFINITION = SubjectDefinition(
    subject_type=SubjectType.APPLICANT,
    model=Applicant,
    resource="applicant",
    path="applicants",
    create_schema=ApplicantCreate,
    update_schema=ApplicantUpdate,
    fields=declared_fields(Applicant),
    derived=(
        DerivedField(
            "full_name",
            ("first_name", "last_name"),
            lambda v: join_present(v, ("first_name", "last_name"), " "),
        ),
        DerivedField("full_address", ADDRESS_FIELDS, lambda v: join_present(v, ADDRESS_FIELDS, ", ")),
        DerivedField(
            "verification_status",
            ("aadhar_verification_status", "pan_verification_status"),
            lambda v: verification_status_of(
                v.get("aadhar_verification_status"),
                v.get("pan_verification_status"),
            ),
        ),
    ),
    filter_schema=ApplicantFilters,
    apply_filters=apply_filters,
    search_fields=("first_name", "last_name", "email", "phone_number"),
    guards=GuardSet(
        delete=(
            no_active_dependents(
                LoanApplication,
                "applicant_id",
                "applicant.has_active_loans",
                terminal_statuses=TERMINAL_STATUSES,
            ),
        ),
    ),
    unique_rules=(
        UniqueRule("uq_applicants_bank_email_active", ("bank_id", "email"), "applicant.email_exists", "email"),
    ),
    sensitive_fields=frozenset({"aadhar_number", "pan_number"}),
)
