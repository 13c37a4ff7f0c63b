"""Shared fixtures: a throwaway SQLite database per test, actors and row factories.

Environment defaults must be set before any app import because settings are
read at import time.
"""

from __future__ import annotations

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-boot")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test-boot.db")
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app import models  # noqa: F401 - registers tables on Base.metadata
from app.core.permissions import Role
from app.db.base import Base
from app.models.applicant import Applicant
from app.models.loan_application import LoanApplication
from app.services.authz import Actor, build_actor

BANK_1 = "bank-1"
BANK_2 = "bank-2"


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'loans.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def saas_admin() -> Actor:
    return build_actor("admin-1", Role.SAAS_ADMIN)


@pytest.fixture
def bank_admin() -> Actor:
    return build_actor("bank-admin-1", Role.BANK_ADMIN, BANK_1)


@pytest.fixture
def officer() -> Actor:
    return build_actor("officer-1", Role.LOAN_OFFICER, BANK_1)


@pytest.fixture
def inspector() -> Actor:
    return build_actor("inspector-1", Role.LOAN_INSPECTOR, BANK_1)


@pytest.fixture
def other_bank_admin() -> Actor:
    return build_actor("bank-admin-2", Role.BANK_ADMIN, BANK_2)


def applicant_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "first_name": "Asha",
        "last_name": "Rao",
        "email": "asha.rao@lendwell.in",
        "phone_number": "9876543210",
        "address_city": "Mumbai",
        "address_state": "Maharashtra",
        "address_pin_code": "400001",
    }
    payload.update(overrides)
    return payload


async def make_applicant(db, bank_id: str | None = BANK_1, **overrides: Any) -> Applicant:
    values: dict[str, Any] = dict(
        bank_id=bank_id,
        first_name="Asha",
        last_name="Rao",
        email=f"asha.{bank_id or 'global'}@lendwell.in",
        address_city="Mumbai",
        address_state="Maharashtra",
    )
    values.update(overrides)
    applicant = Applicant(**values)
    db.add(applicant)
    await db.commit()
    return applicant


async def make_loan(db, applicant: Applicant, **overrides: Any) -> LoanApplication:
    values: dict[str, Any] = dict(
        bank_id=applicant.bank_id,
        applicant_id=applicant.id,
        loan_type="PERSONAL",
        amount_requested=Decimal("250000.00"),
        selected_tenure_months=36,
        status="PENDING",
    )
    values.update(overrides)
    loan = LoanApplication(**values)
    db.add(loan)
    await db.commit()
    return loan
