from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, Numeric, String, Uuid, text

from app.db.base import Base
from app.models.mixins import TenantScopedMixin


class Income(TenantScopedMixin, Base):
    __tablename__ = "incomes"
    __table_args__ = (
        CheckConstraint("dependents >= 0", name="ck_income_dependents_nonneg"),
        CheckConstraint("gross_income >= 0", name="ck_income_gross_nonneg"),
        Index(
            "uq_incomes_applicant_year_type_active",
            "applicant_id",
            "year",
            "income_type",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    applicant_id = Column(
        Uuid,
        ForeignKey("applicants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year = Column(Integer, nullable=False)
    income_type = Column(String(50), nullable=False)
    gross_income = Column(Numeric(14, 2), nullable=False)
    taxable_income = Column(Numeric(14, 2), nullable=True)
    tax_paid = Column(Numeric(14, 2), nullable=True)
    average_monthly_expenditure = Column(Numeric(14, 2), nullable=False, default=0)
    dependents = Column(Integer, nullable=False, default=0)
