from app.models.applicant import Applicant
from app.models.audit_log import AuditLog
from app.models.co_applicant import CoApplicant
from app.models.guarantor import Guarantor
from app.models.income import Income
from app.models.loan_application import LoanApplication
from app.models.review import Review
from app.models.verification import Verification

__all__ = [
    "Applicant",
    "AuditLog",
    "CoApplicant",
    "Guarantor",
    "Income",
    "LoanApplication",
    "Review",
    "Verification",
]
