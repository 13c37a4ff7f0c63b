from __future__ import annotations

from app.core.permissions import SubjectType
from app.models.applicant import Applicant
from app.models.loan_application import LoanApplication
from app.schemas.loan_applications import (
    INITIAL_STATUSES,
    STATUS_TRANSITIONS,
    TERMINAL_STATUSES,
    LoanApplicationCreate,
    LoanApplicationFilters,
    LoanApplicationStatus,
    LoanApplicationUpdate,
)
from app.services.lifecycle import (
    GuardSet,
    deny_when_status,
    initial_status,
    parent_visible,
    status_workflow,
)
from app.services.subjects.base import SubjectDefinition, declared_fields


def apply_filters(filters: LoanApplicationFilters) -> list:
    model = LoanApplication
    criteria = []
    if filters.status:
        criteria.append(model.status.in_(list(filters.status)))
    if filters.loan_type:
        criteria.append(model.loan_type == filters.loan_type)
    if filters.applicant_id:
        criteria.append(model.applicant_id == filters.applicant_id)
    if filters.active_only:
        criteria.append(model.status.not_in(list(TERMINAL_STATUSES)))
    return criteria


DEFINITION = SubjectDefinition(
    subject_type=SubjectType.LOAN_APPLICATION,
    model=LoanApplication,
    resource="loan_application",
    path="loan-applications",
    create_schema=LoanApplicationCreate,
    update_schema=LoanApplicationUpdate,
    fields=declared_fields(LoanApplication),
    filter_schema=LoanApplicationFilters,
    apply_filters=apply_filters,
    search_fields=("remarks",),
    guards=GuardSet(
        create=(
            parent_visible(Applicant, "applicant_id"),
            initial_status("loan_application", INITIAL_STATUSES),
        ),
        update=(
            parent_visible(Applicant, "applicant_id"),
            status_workflow("loan_application", TERMINAL_STATUSES, STATUS_TRANSITIONS),
        ),
        delete=(
            deny_when_status({LoanApplicationStatus.APPROVED.value}, "loan_application.approved_locked"),
        ),
    ),
)
