from __future__ import annotations

from typing import Any

from app.core.permissions import SubjectType
from app.models.loan_application import LoanApplication
from app.models.review import Review
from app.schemas.reviews import ReviewCreate, ReviewFilters, ReviewUpdate
from app.services.authz import Actor
from app.services.lifecycle import GuardSet, immutable, parent_visible
from app.services.subjects.base import SubjectDefinition, declared_fields


def stamp_reviewer(actor: Actor, values: dict[str, Any]) -> None:
    values["user_id"] = actor.id
    values["role"] = actor.role


def apply_filters(filters: ReviewFilters) -> list:
    criteria = []
    if filters.loan_application_id:
        criteria.append(Review.loan_application_id == filters.loan_application_id)
    if filters.review_entity_type:
        criteria.append(Review.review_entity_type == filters.review_entity_type)
    if filters.review_event_type:
        criteria.append(Review.review_event_type == filters.review_event_type)
    if filters.result is not None:
        criteria.append(Review.result == filters.result)
    return criteria


_append_only = immutable("review.immutable")

DEFINITION = SubjectDefinition(
    subject_type=SubjectType.REVIEW,
    model=Review,
    resource="review",
    path="reviews",
    create_schema=ReviewCreate,
    update_schema=ReviewUpdate,
    fields=declared_fields(Review),
    filter_schema=ReviewFilters,
    apply_filters=apply_filters,
    search_fields=("remarks",),
    guards=GuardSet(
        create=(parent_visible(LoanApplication, "loan_application_id"),),
        update=(_append_only,),
        delete=(_append_only,),
    ),
    populate=stamp_reviewer,
)
