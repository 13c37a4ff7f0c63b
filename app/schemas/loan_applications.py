from __future__ import annotations

from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import SubjectPayload, reject_null


class LoanApplicationStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFICATION_IN_PROGRESS = "VERIFICATION_IN_PROGRESS"
    VERIFICATION_COMPLETED = "VERIFICATION_COMPLETED"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REJECTED_BY_APPLICANT = "REJECTED_BY_APPLICANT"


class LoanType(str, Enum):
    PERSONAL = "PERSONAL"
    VEHICLE = "VEHICLE"
    HOUSE_CONSTRUCTION = "HOUSE_CONSTRUCTION"
    PLOT_PURCHASE = "PLOT_PURCHASE"
    MORTGAGE = "MORTGAGE"
    PLOT_AND_HOUSE_CONSTRUCTION = "PLOT_AND_HOUSE_CONSTRUCTION"


S = LoanApplicationStatus

TERMINAL_STATUSES = frozenset({S.APPROVED.value, S.REJECTED.value, S.REJECTED_BY_APPLICANT.value})
INITIAL_STATUSES = frozenset({S.DRAFT.value, S.PENDING.value})

STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    S.DRAFT.value: frozenset({S.PENDING.value, S.REJECTED_BY_APPLICANT.value}),
    S.PENDING.value: frozenset(
        {S.UNDER_REVIEW.value, S.PENDING_VERIFICATION.value, S.REJECTED.value, S.REJECTED_BY_APPLICANT.value}
    ),
    S.UNDER_REVIEW.value: frozenset(
        {S.PENDING_VERIFICATION.value, S.APPROVED.value, S.REJECTED.value, S.REJECTED_BY_APPLICANT.value}
    ),
    S.PENDING_VERIFICATION.value: frozenset(
        {S.VERIFICATION_IN_PROGRESS.value, S.REJECTED.value, S.REJECTED_BY_APPLICANT.value}
    ),
    S.VERIFICATION_IN_PROGRESS.value: frozenset(
        {S.VERIFICATION_COMPLETED.value, S.VERIFICATION_FAILED.value}
    ),
    S.VERIFICATION_COMPLETED.value: frozenset(
        {S.UNDER_REVIEW.value, S.APPROVED.value, S.REJECTED.value}
    ),
    S.VERIFICATION_FAILED.value: frozenset(
        {S.PENDING_VERIFICATION.value, S.REJECTED.value, S.REJECTED_BY_APPLICANT.value}
    ),
}


class LoanApplicationUpdate(SubjectPayload):
    model_config = ConfigDict(use_enum_values=True)

    applicant_id: UUID | None = None
    loan_type: LoanType | None = None
    amount_requested: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    proposed_amount: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    selected_tenure_months: int | None = Field(default=None, ge=1, le=480)
    status: LoanApplicationStatus | None = None
    remarks: str | None = Field(default=None, max_length=2000)

    @field_validator("applicant_id", "loan_type", "amount_requested", "status")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class LoanApplicationCreate(LoanApplicationUpdate):
    applicant_id: UUID
    loan_type: LoanType
    amount_requested: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    status: LoanApplicationStatus = Field(default=LoanApplicationStatus.PENDING, validate_default=True)


class LoanApplicationFilters(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    status: list[LoanApplicationStatus] | None = None
    loan_type: LoanType | None = None
    applicant_id: UUID | None = None
    active_only: bool = False

    @field_validator("status", mode="before")
    @classmethod
    def split_status(cls, v):
        # ``?status=A,B`` and ``?status=A&status=B`` are both accepted.
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v
