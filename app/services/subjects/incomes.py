from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from app.core.permissions import SubjectType
from app.models.applicant import Applicant
from app.models.income import Income
from app.schemas.incomes import IncomeCreate, IncomeFilters, IncomeUpdate, net_income_of
from app.services.lifecycle import GuardContext, GuardDecision, GuardSet, parent_visible
from app.services.subjects.base import DerivedField, SubjectDefinition, UniqueRule, declared_fields


def _net_income(values: Mapping[str, Any]):
    # Only computed when both inputs are visible to the caller.
    if "gross_income" not in values or "tax_paid" not in values:
        return None
    return net_income_of(values["gross_income"], values["tax_paid"])


async def tax_within_gross(ctx: GuardContext) -> GuardDecision:
    """A partial update is checked against the stored counterpart."""
    if not (ctx.changed("tax_paid") or ctx.changed("gross_income")):
        return GuardDecision.allow()
    gross, tax = ctx.value("gross_income"), ctx.value("tax_paid")
    if gross is not None and tax is not None and Decimal(tax) > Decimal(gross):
        return GuardDecision.deny("income.tax_exceeds_gross", "tax_paid")
    return GuardDecision.allow()


def apply_filters(filters: IncomeFilters) -> list:
    criteria = []
    if filters.applicant_id:
        criteria.append(Income.applicant_id == filters.applicant_id)
    if filters.year is not None:
        criteria.append(Income.year == filters.year)
    if filters.income_type:
        criteria.append(Income.income_type == filters.income_type)
    return criteria


DEFINITION = SubjectDefinition(
    subject_type=SubjectType.INCOME,
    model=Income,
    resource="income",
    path="incomes",
    create_schema=IncomeCreate,
    update_schema=IncomeUpdate,
    fields=declared_fields(Income),
    derived=(DerivedField("net_income", ("gross_income", "tax_paid"), _net_income),),
    filter_schema=IncomeFilters,
    apply_filters=apply_filters,
    guards=GuardSet(
        create=(parent_visible(Applicant, "applicant_id"),),
        update=(parent_visible(Applicant, "applicant_id"), tax_within_gross),
    ),
    unique_rules=(
        UniqueRule(
            "uq_incomes_applicant_year_type_active",
            ("applicant_id", "year", "income_type"),
            "income.duplicate_year",
            "year",
        ),
    ),
)
