from app.db.base import Base
from app.models.mixins import LoanPartyMixin, TenantScopedMixin


class CoApplicant(TenantScopedMixin, LoanPartyMixin, Base):
    __tablename__ = "co_applicants"
