from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import SubjectPayload


class ReviewEntityType(str, Enum):
    APPLICANT = "APPLICANT"
    CO_APPLICANT = "CO_APPLICANT"
    GUARANTOR = "GUARANTOR"
    INCOME = "INCOME"
    LOAN_APPLICATION = "LOAN_APPLICATION"
    DOCUMENT = "DOCUMENT"


class ReviewEventType(str, Enum):
    VERIFICATION = "VERIFICATION"
    APPROVAL = "APPROVAL"
    REJECTION = "REJECTION"
    COMMENT = "COMMENT"
    STATUS_CHANGE = "STATUS_CHANGE"


class ReviewCreate(SubjectPayload):
    model_config = ConfigDict(use_enum_values=True)

    loan_application_id: UUID
    review_entity_type: ReviewEntityType
    review_entity_id: str = Field(min_length=1, max_length=64)
    review_event_type: ReviewEventType
    remarks: str = Field(min_length=1, max_length=2000)
    result: bool
    action_data: dict[str, Any] = Field(default_factory=dict)


class ReviewUpdate(SubjectPayload):
    remarks: str | None = Field(default=None, max_length=2000)


class ReviewFilters(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    loan_application_id: UUID | None = None
    review_entity_type: ReviewEntityType | None = None
    review_event_type: ReviewEventType | None = None
    result: bool | None = None
