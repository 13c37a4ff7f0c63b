from app.db.base import Base
from app.models.mixins import LoanPartyMixin, TenantScopedMixin


class Guarantor(TenantScopedMixin, LoanPartyMixin, Base):
    __tablename__ = "guarantors"
