"""Co-applicants and guarantors: contact people hanging off a loan application."""

from __future__ import annotations

from app.core.permissions import SubjectType
from app.models.co_applicant import CoApplicant
from app.models.guarantor import Guarantor
from app.models.loan_application import LoanApplication
from app.schemas.loan_applications import TERMINAL_STATUSES
from app.schemas.parties import LoanPartyCreate, LoanPartyFilters, LoanPartyUpdate
from app.services.lifecycle import GuardSet, parent_not_terminal, parent_visible
from app.services.subjects.base import DerivedField, SubjectDefinition, declared_fields, join_present

ADDRESS_FIELDS = ("address_line1", "address_line2", "address_city", "address_state", "address_zip_code")


def _filters_for(model):
    def apply_filters(filters: LoanPartyFilters) -> list:
        if filters.loan_application_id:
            return [model.loan_application_id == filters.loan_application_id]
        return []

    return apply_filters


def party_definition(subject_type: SubjectType, model, resource: str, path: str) -> SubjectDefinition:
    locked = parent_not_terminal(LoanApplication, "loan_application_id", TERMINAL_STATUSES, "loan_application.locked")
    parent = parent_visible(LoanApplication, "loan_application_id")
    return SubjectDefinition(
        subject_type=subject_type,
        model=model,
        resource=resource,
        path=path,
        create_schema=LoanPartyCreate,
        update_schema=LoanPartyUpdate,
        fields=declared_fields(model),
        derived=(
            DerivedField(
                "full_name",
                ("first_name", "last_name"),
                lambda v: join_present(v, ("first_name", "last_name"), " "),
            ),
            DerivedField("full_address", ADDRESS_FIELDS, lambda v: join_present(v, ADDRESS_FIELDS, ", ")),
        ),
        filter_schema=LoanPartyFilters,
        apply_filters=_filters_for(model),
        search_fields=("first_name", "last_name", "email", "mobile_number"),
        guards=GuardSet(create=(parent, locked), update=(parent, locked), delete=(locked,)),
    )


CO_APPLICANT_DEFINITION = party_definition(SubjectType.CO_APPLICANT, CoApplicant, "co_applicant", "co-applicants")
GUARANTOR_DEFINITION = party_definition(SubjectType.GUARANTOR, Guarantor, "guarantor", "guarantors")
