import pytest
from sqlalchemy import select

from app.core.permissions import SubjectType
from app.models.audit_log import AuditLog
from app.models.loan_application import LoanApplication
from app.models.verification import Verification
from app.schemas.results import ResultKind
from app.services.registry import pipeline_for
from conftest import BANK_2, make_applicant, make_loan

verifications = pipeline_for(SubjectType.VERIFICATION)

RESIDENCE = {
    "owner_first_name": "Suresh",
    "owner_last_name": "Patil",
    "residence_type": "OWNED",
    "structure_type": "APARTMENT",
    "address_line1": "4 Lake View",
    "address_city": "Pune",
    "address_state": "Maharashtra",
    "address_zip_code": "411001",
    "location_from_main": "2 km from the station",
}


def _verification(loan, **overrides):
    payload = {
        "loan_application_id": str(loan.id),
        "verification_type": "RESIDENCE",
        "verification_time": "14:30",
        "details": dict(RESIDENCE),
    }
    payload.update(overrides)
    return payload


async def _loan_status(db, loan_id) -> str:
    return (await db.get(LoanApplication, loan_id, populate_existing=True)).status


async def _ready_loan(db, applicant=None):
    applicant = applicant or await make_applicant(db)
    return await make_loan(db, applicant, status="PENDING_VERIFICATION")


@pytest.mark.asyncio
async def test_create_starts_verification_and_stamps_verifier(db, inspector):
    loan = await _ready_loan(db)

    result = await verifications.create(db, inspector, _verification(loan, verifier_id="someone-else"))
    assert result.success, result.field_errors
    assert result.code == "verification.created"
    assert result.data["status"] == "PENDING"
    assert result.data["result"] is False
    assert result.data["verifier_id"] == inspector.id
    assert result.data["details"]["residence_type"] == "OWNED"
    assert "address_line2" not in result.data["details"]

    assert await _loan_status(db, loan.id) == "VERIFICATION_IN_PROGRESS"
    moved = (await db.scalars(select(AuditLog).where(AuditLog.resource_type == "LoanApplication"))).one()
    assert moved.resource_id == str(loan.id)
    assert moved.old_value == {"status": "PENDING_VERIFICATION"}
    assert moved.new_value == {"status": "VERIFICATION_IN_PROGRESS"}


@pytest.mark.asyncio
async def test_create_requires_loan_ready_for_verification(db, inspector):
    loan = await make_loan(db, await make_applicant(db))

    result = await verifications.create(db, inspector, _verification(loan))
    assert result.kind is ResultKind.CONFLICT
    assert result.code == "loan_application.invalid_status_transition"
    assert (await db.scalars(select(Verification))).all() == []
    assert await _loan_status(db, loan.id) == "PENDING"


@pytest.mark.asyncio
async def test_create_requires_visible_loan(db, inspector):
    foreign = await make_loan(db, await make_applicant(db, BANK_2), status="PENDING_VERIFICATION")

    result = await verifications.create(db, inspector, _verification(foreign))
    assert result.kind is ResultKind.CONFLICT
    assert result.field_errors == {"loan_application_id": "parent_not_found"}


@pytest.mark.asyncio
async def test_details_are_validated_for_the_type(db, inspector):
    loan = await _ready_loan(db)
    incomplete = {key: value for key, value in RESIDENCE.items() if key != "owner_first_name"}

    rejected = await verifications.create(db, inspector, _verification(loan, details=incomplete))
    assert rejected.kind is ResultKind.VALIDATION_ERROR
    assert "details" in rejected.field_errors

    vehicle = await verifications.create(
        db,
        inspector,
        _verification(loan, verification_type="VEHICLE", details={"make": "Tata", "model": "Nexon"}),
    )
    assert vehicle.success, vehicle.field_errors
    assert vehicle.data["details"] == {"make": "Tata", "model": "Nexon"}

    swapped = await verifications.update(db, inspector, vehicle.data["id"], {"details": RESIDENCE})
    assert swapped.kind is ResultKind.CONFLICT
    assert swapped.field_errors == {"details": "verification.invalid_details"}


@pytest.mark.asyncio
async def test_loan_completes_after_last_pending_verification(db, inspector):
    loan = await _ready_loan(db)
    first = await verifications.create(db, inspector, _verification(loan))
    second = await verifications.create(db, inspector, _verification(loan, verification_type="VEHICLE", details={"make": "Tata", "model": "Nexon"}))
    assert second.success

    done = await verifications.update(db, inspector, first.data["id"], {"status": "COMPLETED", "result": True})
    assert done.success
    assert done.data["status"] == "COMPLETED"
    assert await _loan_status(db, loan.id) == "VERIFICATION_IN_PROGRESS"

    assert (await verifications.update(db, inspector, second.data["id"], {"status": "COMPLETED"})).success
    assert await _loan_status(db, loan.id) == "VERIFICATION_COMPLETED"


@pytest.mark.asyncio
async def test_failed_verification_fails_the_loan(db, inspector):
    loan = await _ready_loan(db)
    first = await verifications.create(db, inspector, _verification(loan))
    second = await verifications.create(db, inspector, _verification(loan))

    assert (await verifications.update(db, inspector, first.data["id"], {"status": "FAILED"})).success
    assert await _loan_status(db, loan.id) == "VERIFICATION_FAILED"

    # Completing the remaining one records it without clearing the failure.
    assert (await verifications.update(db, inspector, second.data["id"], {"status": "COMPLETED"})).success
    assert await _loan_status(db, loan.id) == "VERIFICATION_FAILED"


@pytest.mark.asyncio
async def test_finished_verifications_are_final(db, inspector, bank_admin):
    applicant = await make_applicant(db)
    loan = await _ready_loan(db, applicant)
    created = await verifications.create(db, inspector, _verification(loan))
    assert (await verifications.update(db, inspector, created.data["id"], {"status": "COMPLETED"})).success

    reopened = await verifications.update(db, inspector, created.data["id"], {"status": "FAILED"})
    assert reopened.code == "verification.status_terminal"
    # Non-status fields stay editable.
    assert (await verifications.update(db, inspector, created.data["id"], {"remarks": "Neighbour confirmed"})).success

    removed = await verifications.remove(db, bank_admin, created.data["id"])
    assert removed.kind is ResultKind.CONFLICT
    assert removed.code == "verification.finalized"

    pending = await verifications.create(db, inspector, _verification(await _ready_loan(db, applicant)))
    assert pending.success
    assert (await verifications.remove(db, bank_admin, pending.data["id"])).success


@pytest.mark.asyncio
async def test_officer_reads_but_cannot_record_verifications(db, officer, inspector):
    loan = await _ready_loan(db)
    assert (await verifications.create(db, officer, _verification(loan))).kind is ResultKind.FORBIDDEN

    created = await verifications.create(db, inspector, _verification(loan))
    fetched = await verifications.get(db, officer, created.data["id"])
    assert fetched.success
    assert fetched.data["details"]["owner_last_name"] == "Patil"
    assert (await verifications.update(db, officer, created.data["id"], {"status": "FAILED"})).kind is ResultKind.FORBIDDEN


@pytest.mark.asyncio
async def test_list_filters_by_status_and_type(db, inspector):
    loan = await _ready_loan(db)
    first = await verifications.create(db, inspector, _verification(loan))
    await verifications.create(db, inspector, _verification(loan, verification_type="VEHICLE", details={"make": "Tata", "model": "Nexon"}))
    await verifications.update(db, inspector, first.data["id"], {"status": "COMPLETED"})

    completed = await verifications.list(db, inspector, {"status": "COMPLETED"})
    assert [row["id"] for row in completed.data] == [first.data["id"]]

    vehicles = await verifications.list(db, inspector, {"verification_type": "VEHICLE", "loan_application_id": str(loan.id)})
    assert [row["verification_type"] for row in vehicles.data] == ["VEHICLE"]
