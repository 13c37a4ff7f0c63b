from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.limiter import limiter
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from conftest import applicant_payload


def _auth(actor_id: str, role: str, bank_id: str | None = "bank-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(actor_id, role, bank_id)}"}


OFFICER = _auth("officer-1", "LOAN_OFFICER")
INSPECTOR = _auth("inspector-1", "LOAN_INSPECTOR")
BANK_ADMIN = _auth("bank-admin-1", "BANK_ADMIN")
OTHER_BANK_ADMIN = _auth("bank-admin-2", "BANK_ADMIN", "bank-2")


@pytest.fixture
def client(tmp_path):
    path = tmp_path / "api.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    factory = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_applicant(client, headers=OFFICER, **overrides) -> dict:
    response = client.post("/api/v1/applicants", json=applicant_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/v1/applicants")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "unauthorized"
    assert body["data"] is None


def test_invalid_token_is_unauthorized(client):
    response = client.get("/api/v1/applicants", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


def test_create_and_fetch_applicant(client):
    created = _create_applicant(client)
    assert created["bank_id"] == "bank-1"
    assert created["full_name"] == "Asha Rao"

    response = client.get(f"/api/v1/applicants/{created['id']}", headers=OFFICER)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["code"] == "applicant.retrieved"
    assert body["field_errors"] is None
    assert body["data"]["email"] == "asha.rao@lendwell.in"


def test_forbidden_create(client):
    response = client.post("/api/v1/applicants", json=applicant_payload(), headers=INSPECTOR)
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"


def test_other_bank_gets_not_found(client):
    created = _create_applicant(client)
    response = client.get(f"/api/v1/applicants/{created['id']}", headers=OTHER_BANK_ADMIN)
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_patch_applies_writable_fields(client):
    created = _create_applicant(client)
    response = client.patch(
        f"/api/v1/applicants/{created['id']}",
        json={"address_city": "Nagpur", "pan_verification_status": True},
        headers=OFFICER,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["address_city"] == "Nagpur"
    assert data["pan_verification_status"] is False


def test_pipeline_validation_errors_are_keyed_by_field(client):
    response = client.post("/api/v1/applicants", json=applicant_payload(email="nope"), headers=OFFICER)
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert "email" in body["field_errors"]


def test_non_object_body_is_rejected(client):
    response = client.post("/api/v1/applicants", json=["not", "an", "object"], headers=OFFICER)
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "validation_error"
    assert body["field_errors"]


def test_delete_then_not_found(client):
    created = _create_applicant(client)
    deleted = client.delete(f"/api/v1/applicants/{created['id']}", headers=BANK_ADMIN)
    assert deleted.status_code == 200
    assert deleted.json()["code"] == "applicant.deleted"

    assert client.get(f"/api/v1/applicants/{created['id']}", headers=BANK_ADMIN).status_code == 404


def test_list_carries_page_meta(client):
    for index in range(3):
        _create_applicant(client, email=f"list{index}@lendwell.in")

    response = client.get("/api/v1/applicants", params={"page_size": 2, "sort_by": "email", "sort_order": "asc"}, headers=OFFICER)
    assert response.status_code == 200
    body = response.json()
    assert [row["email"] for row in body["data"]] == ["list0@lendwell.in", "list1@lendwell.in"]
    assert body["meta"] == {"total": 3, "page": 1, "page_size": 2, "total_pages": 2}


def test_list_with_bad_sort_field(client):
    response = client.get("/api/v1/applicants", params={"sort_by": "password"}, headers=OFFICER)
    assert response.status_code == 422
    assert response.json()["field_errors"] == {"sort_by": "Unsupported sort field"}


def test_visibility_endpoint(client):
    response = client.get("/api/v1/incomes/visibility", headers=INSPECTOR)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["subject"] == "Income"
    assert data["actions"] == {"create": False, "read": True, "update": False, "delete": False}
    assert data["readable"]["tax_paid"] is False
    assert data["readable"]["net_income"] is True


def test_money_is_serialized_as_string(client):
    applicant = _create_applicant(client)
    response = client.post(
        "/api/v1/loan-applications",
        json={
            "applicant_id": applicant["id"],
            "loan_type": "HOUSE_CONSTRUCTION",
            "amount_requested": 2500000.5,
            "selected_tenure_months": 240,
        },
        headers=OFFICER,
    )
    assert response.status_code == 201, response.json()
    data = response.json()["data"]
    assert isinstance(data["amount_requested"], str)
    assert Decimal(data["amount_requested"]) == Decimal("2500000.50")
    assert data["status"] == "PENDING"


def test_conflict_status_code(client):
    _create_applicant(client)
    response = client.post("/api/v1/applicants", json=applicant_payload(), headers=OFFICER)
    assert response.status_code == 409
    assert response.json()["code"] == "applicant.email_exists"


def test_request_id_is_echoed(client):
    response = client.get("/api/v1/health/live", headers={"x-request-id": "req-123"})
    assert response.headers["x-request-id"] == "req-123"

    generated = client.get("/api/v1/health/live")
    assert generated.headers["x-request-id"]


def test_verification_moves_loan_status(client):
    applicant = _create_applicant(client)
    loan = client.post(
        "/api/v1/loan-applications",
        json={"applicant_id": applicant["id"], "loan_type": "VEHICLE", "amount_requested": "600000"},
        headers=OFFICER,
    ).json()["data"]
    queued = client.patch(f"/api/v1/loan-applications/{loan['id']}", json={"status": "PENDING_VERIFICATION"}, headers=INSPECTOR)
    assert queued.status_code == 200

    created = client.post(
        "/api/v1/verifications",
        json={"loan_application_id": loan["id"], "verification_type": "VEHICLE", "details": {"make": "Tata", "model": "Nexon"}},
        headers=INSPECTOR,
    )
    assert created.status_code == 201, created.json()
    verification = created.json()["data"]

    done = client.patch(f"/api/v1/verifications/{verification['id']}", json={"status": "COMPLETED", "result": True}, headers=INSPECTOR)
    assert done.status_code == 200
    fetched = client.get(f"/api/v1/loan-applications/{loan['id']}", headers=OFFICER)
    assert fetched.json()["data"]["status"] == "VERIFICATION_COMPLETED"
