from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.common import SubjectPayload, reject_null

_MONEY = {"max_digits": 14, "decimal_places": 2}


class IncomeType(str, Enum):
    SALARY = "SALARY"
    BUSINESS = "BUSINESS"
    AGRICULTURE = "AGRICULTURE"
    RENTAL = "RENTAL"
    PENSION = "PENSION"
    OTHER = "OTHER"


class IncomeUpdate(SubjectPayload):
    model_config = ConfigDict(use_enum_values=True)

    applicant_id: UUID | None = None
    year: int | None = Field(default=None, ge=1900)
    income_type: IncomeType | None = None
    gross_income: Decimal | None = Field(default=None, ge=0, **_MONEY)
    taxable_income: Decimal | None = Field(default=None, ge=0, **_MONEY)
    tax_paid: Decimal | None = Field(default=None, ge=0, **_MONEY)
    average_monthly_expenditure: Decimal | None = Field(default=None, ge=0, **_MONEY)
    dependents: int | None = Field(default=None, ge=0, le=50)

    @field_validator("applicant_id", "year", "income_type", "gross_income")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)

    @field_validator("year")
    @classmethod
    def check_year(cls, v: int | None) -> int | None:
        if v is not None and v > date.today().year:
            raise ValueError("Year cannot be in the future")
        return v

    @model_validator(mode="after")
    def check_tax(self):
        if self.gross_income is not None and self.tax_paid is not None and self.tax_paid > self.gross_income:
            raise ValueError("Tax paid cannot exceed gross income")
        return self


class IncomeCreate(IncomeUpdate):
    applicant_id: UUID
    year: int = Field(ge=1900)
    income_type: IncomeType
    gross_income: Decimal = Field(ge=0, **_MONEY)
    average_monthly_expenditure: Decimal = Field(default=Decimal("0"), ge=0, **_MONEY)
    dependents: int = Field(default=0, ge=0, le=50)


class IncomeFilters(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=True)

    applicant_id: UUID | None = None
    year: int | None = None
    income_type: IncomeType | None = None


def net_income_of(gross_income: Decimal | None, tax_paid: Decimal | None) -> Decimal | None:
    if gross_income is None:
        return None
    return Decimal(gross_income) - Decimal(tax_paid or 0)
