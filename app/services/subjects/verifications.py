"""Field verifications and the loan status they drive.

A new verification moves its application into ``VERIFICATION_IN_PROGRESS``.
A failed one moves it to ``VERIFICATION_FAILED``. A completed one moves it
to ``VERIFICATION_COMPLETED`` once no other verification of the application
is still pending. Every move must be a legal loan status transition.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import update

from app.core.permissions import SubjectType
from app.models.loan_application import LoanApplication
from app.models.verification import Verification
from app.schemas.loan_applications import STATUS_TRANSITIONS, LoanApplicationStatus
from app.schemas.verifications import (
    TERMINAL_VERIFICATION_STATUSES,
    VERIFICATION_TRANSITIONS,
    VerificationCreate,
    VerificationFilters,
    VerificationStatus,
    VerificationUpdate,
    validate_details,
)
from app.services.audit import record_audit_log
from app.services.authz import Actor
from app.services.lifecycle import (
    GuardContext,
    GuardDecision,
    GuardSet,
    deny_when_status,
    initial_status,
    parent_visible,
    status_workflow,
)
from app.services.subjects.base import SubjectDefinition, declared_fields
from app.services.tenant_scope import TenantFilter, scoped_count, scoped_select

logger = logging.getLogger(__name__)

L = LoanApplicationStatus

LOAN_STATUS_FOR: dict[str, str] = {
    VerificationStatus.PENDING.value: L.VERIFICATION_IN_PROGRESS.value,
    VerificationStatus.COMPLETED.value: L.VERIFICATION_COMPLETED.value,
    VerificationStatus.FAILED.value: L.VERIFICATION_FAILED.value,
}


def stamp_verifier(actor: Actor, values: dict[str, Any]) -> None:
    values["verifier_id"] = actor.id


async def loan_status_move(db, tenant_filter: TenantFilter, loan_id, status: str, verification_id=None):
    """Return ``(loan, target)``; ``target`` is None when the loan keeps its status."""
    stmt = scoped_select(LoanApplication, tenant_filter, LoanApplication.id == loan_id)
    loan = await db.scalar(stmt.execution_options(populate_existing=True))
    if loan is None:
        return None, None
    target = LOAN_STATUS_FOR[status]
    if target == L.VERIFICATION_COMPLETED.value:
        # A failure sticks until the application is sent back for verification.
        if loan.status == L.VERIFICATION_FAILED.value:
            return loan, None
        criteria = [
            Verification.loan_application_id == loan.id,
            Verification.status == VerificationStatus.PENDING.value,
        ]
        if verification_id is not None:
            criteria.append(Verification.id != verification_id)
        if await scoped_count(db, Verification, TenantFilter.unrestricted(), *criteria):
            return loan, None
    if target == loan.status:
        return loan, None
    return loan, target


async def loan_status_follows(ctx: GuardContext) -> GuardDecision:
    if ctx.existing is not None and not ctx.changed("status"):
        return GuardDecision.allow()
    loan, target = await loan_status_move(
        ctx.db,
        ctx.scope,
        ctx.value("loan_application_id"),
        ctx.value("status"),
        getattr(ctx.existing, "id", None),
    )
    if target is not None and target not in STATUS_TRANSITIONS.get(loan.status, ()):
        return GuardDecision.deny("loan_application.invalid_status_transition", "status")
    return GuardDecision.allow()


async def details_match_type(ctx: GuardContext) -> GuardDecision:
    if not ctx.changed("details"):
        return GuardDecision.allow()
    try:
        validate_details(ctx.existing.verification_type, ctx.changes["details"])
    except ValueError:
        return GuardDecision.deny("verification.invalid_details", "details")
    return GuardDecision.allow()


async def move_loan_status(ctx: GuardContext, before: dict[str, Any] | None, verification) -> None:
    if before is not None and before.get("status") == verification.status:
        return
    loan, target = await loan_status_move(
        ctx.db,
        ctx.scope,
        verification.loan_application_id,
        verification.status,
        verification.id,
    )
    if target is None:
        return
    await ctx.db.execute(
        update(LoanApplication)
        .where(LoanApplication.id == loan.id)
        .values(status=target)
        .execution_options(synchronize_session=False)
    )
    record_audit_log(
        ctx.db,
        ctx.actor,
        bank_id=loan.bank_id,
        action="loan_application.updated",
        resource_type=SubjectType.LOAN_APPLICATION.value,
        resource_id=str(loan.id),
        old_value={"status": loan.status},
        new_value={"status": target},
    )
    logger.info(
        "Verification moved loan application to %s",
        target,
        extra={"subject": SubjectType.VERIFICATION.value, "resource_id": str(verification.id)},
    )


def apply_filters(filters: VerificationFilters) -> list:
    criteria = []
    if filters.loan_application_id:
        criteria.append(Verification.loan_application_id == filters.loan_application_id)
    if filters.verification_type:
        criteria.append(Verification.verification_type == filters.verification_type)
    if filters.status:
        criteria.append(Verification.status == filters.status)
    return criteria


DEFINITION = SubjectDefinition(
    subject_type=SubjectType.VERIFICATION,
    model=Verification,
    resource="verification",
    path="verifications",
    create_schema=VerificationCreate,
    update_schema=VerificationUpdate,
    fields=declared_fields(Verification),
    filter_schema=VerificationFilters,
    apply_filters=apply_filters,
    search_fields=("remarks",),
    guards=GuardSet(
        create=(
            parent_visible(LoanApplication, "loan_application_id"),
            initial_status("verification", {VerificationStatus.PENDING.value}),
            loan_status_follows,
        ),
        update=(
            status_workflow("verification", TERMINAL_VERIFICATION_STATUSES, VERIFICATION_TRANSITIONS),
            details_match_type,
            loan_status_follows,
        ),
        delete=(
            deny_when_status(TERMINAL_VERIFICATION_STATUSES, "verification.finalized"),
        ),
    ),
    populate=stamp_verifier,
    after_write=move_loan_status,
)
