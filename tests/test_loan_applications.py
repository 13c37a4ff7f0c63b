from decimal import Decimal

import pytest

from app.core.permissions import SubjectType
from app.models.loan_application import LoanApplication
from app.schemas.loan_applications import STATUS_TRANSITIONS, TERMINAL_STATUSES, LoanApplicationStatus
from app.schemas.results import ResultKind
from app.services.registry import pipeline_for
from conftest import BANK_2, make_applicant, make_loan

loans = pipeline_for(SubjectType.LOAN_APPLICATION)


def _payload(applicant, **overrides):
    payload = {
        "applicant_id": str(applicant.id),
        "loan_type": "VEHICLE",
        "amount_requested": "450000.00",
        "selected_tenure_months": 48,
    }
    payload.update(overrides)
    return payload


async def _status(db, loan_id) -> str:
    return (await db.get(LoanApplication, loan_id, populate_existing=True)).status


def test_terminal_statuses_have_no_outgoing_transitions():
    assert TERMINAL_STATUSES.isdisjoint(STATUS_TRANSITIONS)
    reachable = {target for targets in STATUS_TRANSITIONS.values() for target in targets}
    assert reachable <= {status.value for status in LoanApplicationStatus}


@pytest.mark.asyncio
async def test_officer_create_defaults_to_pending_and_ignores_status(db, officer):
    applicant = await make_applicant(db)
    result = await loans.create(db, officer, _payload(applicant, status="APPROVED", proposed_amount="1"))
    assert result.success, result.field_errors
    assert result.data["status"] == "PENDING"
    assert result.data["proposed_amount"] is None
    assert result.data["amount_requested"] == Decimal("450000")


@pytest.mark.asyncio
async def test_create_requires_visible_applicant(db, officer):
    foreign = await make_applicant(db, BANK_2)
    result = await loans.create(db, officer, _payload(foreign))
    assert result.kind is ResultKind.CONFLICT
    assert result.field_errors == {"applicant_id": "parent_not_found"}


@pytest.mark.asyncio
async def test_create_rejects_bad_amount(db, officer):
    applicant = await make_applicant(db)
    result = await loans.create(db, officer, _payload(applicant, amount_requested="-5"))
    assert result.kind is ResultKind.VALIDATION_ERROR
    assert "amount_requested" in result.field_errors


@pytest.mark.asyncio
async def test_admin_cannot_create_in_terminal_status(db, bank_admin):
    applicant = await make_applicant(db)
    result = await loans.create(db, bank_admin, _payload(applicant, status="APPROVED"))
    assert result.kind is ResultKind.CONFLICT
    assert result.code == "loan_application.invalid_initial_status"


@pytest.mark.asyncio
async def test_officer_status_change_is_dropped_but_remarks_apply(db, officer):
    applicant = await make_applicant(db)
    loan = await make_loan(db, applicant)

    result = await loans.update(db, officer, loan.id, {"status": "APPROVED", "remarks": "ok"})
    assert result.success
    assert result.data["remarks"] == "ok"
    assert result.data["status"] == "PENDING"
    assert await _status(db, loan.id) == "PENDING"


@pytest.mark.asyncio
async def test_inspector_moves_status_along_workflow(db, inspector):
    applicant = await make_applicant(db)
    loan = await make_loan(db, applicant)

    jumped = await loans.update(db, inspector, loan.id, {"status": "APPROVED"})
    assert jumped.kind is ResultKind.CONFLICT
    assert jumped.code == "loan_application.invalid_status_transition"
    assert jumped.field_errors == {"status": "loan_application.invalid_status_transition"}

    reviewed = await loans.update(db, inspector, loan.id, {"status": "UNDER_REVIEW"})
    assert reviewed.success
    approved = await loans.update(db, inspector, loan.id, {"status": "APPROVED"})
    assert approved.success
    assert await _status(db, loan.id) == "APPROVED"


@pytest.mark.asyncio
async def test_terminal_status_is_final(db, bank_admin):
    applicant = await make_applicant(db)
    loan = await make_loan(db, applicant, status="REJECTED")

    result = await loans.update(db, bank_admin, loan.id, {"status": "PENDING"})
    assert result.code == "loan_application.status_terminal"
    # Non-status fields stay editable.
    assert (await loans.update(db, bank_admin, loan.id, {"remarks": "closed"})).success


@pytest.mark.asyncio
async def test_approved_application_cannot_be_deleted(db, bank_admin):
    applicant = await make_applicant(db)
    approved = await make_loan(db, applicant, status="APPROVED")
    rejected = await make_loan(db, applicant, status="REJECTED")

    blocked = await loans.remove(db, bank_admin, approved.id)
    assert blocked.kind is ResultKind.CONFLICT
    assert blocked.code == "loan_application.approved_locked"
    assert (await loans.remove(db, bank_admin, rejected.id)).success


@pytest.mark.asyncio
async def test_officer_cannot_delete_applications(db, officer):
    applicant = await make_applicant(db)
    loan = await make_loan(db, applicant)
    assert (await loans.remove(db, officer, loan.id)).kind is ResultKind.FORBIDDEN


@pytest.mark.asyncio
async def test_list_filters_by_status(db, inspector):
    applicant = await make_applicant(db)
    await make_loan(db, applicant, status="PENDING")
    await make_loan(db, applicant, status="UNDER_REVIEW")
    await make_loan(db, applicant, status="REJECTED")

    pending = await loans.list(db, inspector, {"status": "PENDING,UNDER_REVIEW"})
    assert sorted(row["status"] for row in pending.data) == ["PENDING", "UNDER_REVIEW"]

    active = await loans.list(db, inspector, {"active_only": "true"})
    assert active.meta.total == 2

    invalid = await loans.list(db, inspector, {"status": "LOST"})
    assert invalid.kind is ResultKind.VALIDATION_ERROR
