from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase
from typing import Iterable, List


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    # Implies every other action on the subject type.
    MANAGE = "manage"

    @classmethod
    def parse(cls, value: "Action | str") -> "Action | None":
        if isinstance(value, Action):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class SubjectType(str, Enum):
    APPLICANT = "Applicant"
    CO_APPLICANT = "CoApplicant"
    GUARANTOR = "Guarantor"
    INCOME = "Income"
    LOAN_APPLICATION = "LoanApplication"
    REVIEW = "Review"
    VERIFICATION = "Verification"
    # Wildcard, only meaningful inside a rule.
    ALL = "all"

    @classmethod
    def parse(cls, value: "SubjectType | str") -> "SubjectType | None":
        if isinstance(value, SubjectType):
            return None if value is cls.ALL else value
        try:
            subject = cls(str(value).strip())
        except ValueError:
            return None
        return None if subject is cls.ALL else subject

    @classmethod
    def list_concrete(cls) -> List["SubjectType"]:
        return [subject for subject in cls if subject is not cls.ALL]


class Role(str, Enum):
    SAAS_ADMIN = "SAAS_ADMIN"
    BANK_ADMIN = "BANK_ADMIN"
    LOAN_OFFICER = "LOAN_OFFICER"
    LOAN_INSPECTOR = "LOAN_INSPECTOR"


@dataclass(frozen=True, slots=True)
class PolicyRule:
    """Allow rule. ``field`` is an exact field name, a glob pattern, or None for the whole type."""

    action: Action
    subject_type: SubjectType
    field: str | None = None

    def covers_subject(self, subject_type: SubjectType) -> bool:
        return self.subject_type is SubjectType.ALL or self.subject_type is subject_type

    def matches_field(self, field: str) -> bool:
        if self.field is None:
            return True
        return fnmatchcase(field, self.field)


def allow(
    actions: Action | Iterable[Action],
    subject_type: SubjectType,
    fields: Iterable[str] | None = None,
) -> List[PolicyRule]:
    """Expand ``actions`` x ``fields`` into individual rules."""
    action_list = [actions] if isinstance(actions, Action) else list(actions)
    field_list: list[str | None] = list(fields) if fields is not None else [None]
    return [
        PolicyRule(action=action, subject_type=subject_type, field=field)
        for action in action_list
        for field in field_list
    ]


_READ_CREATE = (Action.READ, Action.CREATE)

APPLICANT_IDENTITY_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone_number",
    "date_of_birth",
    "address_*",
    "aadhar_number",
    "pan_number",
)
APPLICANT_VERIFICATION_FIELDS = (
    "aadhar_verification_status",
    "pan_verification_status",
    "photo_url",
)
OFFICER_LOAN_FIELDS = ("loan_type", "amount_requested", "selected_tenure_months", "remarks")
# Inspectors see the declared income but not the tax breakdown.
INSPECTOR_INCOME_FIELDS = (
    "id",
    "bank_id",
    "applicant_id",
    "year",
    "income_type",
    "gross_income",
    "created_at",
    "updated_at",
)

ROLE_POLICIES: dict[Role, dict] = {
    Role.SAAS_ADMIN: {
        "description": "Platform administrator with unrestricted access across banks",
        "tenant_scoped": False,
        "rules": allow(Action.MANAGE, SubjectType.ALL),
    },
    Role.BANK_ADMIN: {
        "description": "Full control over every record of the bank",
        "tenant_scoped": True,
        "rules": [
            rule
            for subject in SubjectType.list_concrete()
            for rule in allow(Action.MANAGE, subject)
        ],
    },
    Role.LOAN_OFFICER: {
        "description": "Originates applications and maintains applicant data",
        "tenant_scoped": True,
        "rules": [
            *allow(Action.READ, SubjectType.APPLICANT),
            *allow((Action.CREATE, Action.UPDATE), SubjectType.APPLICANT, APPLICANT_IDENTITY_FIELDS),
            *allow(Action.READ, SubjectType.LOAN_APPLICATION),
            *allow(Action.CREATE, SubjectType.LOAN_APPLICATION, ("applicant_id", *OFFICER_LOAN_FIELDS)),
            *allow(Action.UPDATE, SubjectType.LOAN_APPLICATION, OFFICER_LOAN_FIELDS),
            *allow((Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE), SubjectType.CO_APPLICANT),
            *allow((Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE), SubjectType.GUARANTOR),
            *allow((Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE), SubjectType.INCOME),
            *allow(_READ_CREATE, SubjectType.REVIEW),
            *allow(Action.READ, SubjectType.VERIFICATION),
        ],
    },
    Role.LOAN_INSPECTOR: {
        "description": "Verifies applicants and moves applications through review",
        "tenant_scoped": True,
        "rules": [
            *allow(Action.READ, SubjectType.APPLICANT),
            *allow(Action.UPDATE, SubjectType.APPLICANT, APPLICANT_VERIFICATION_FIELDS),
            *allow(Action.READ, SubjectType.LOAN_APPLICATION),
            *allow(Action.UPDATE, SubjectType.LOAN_APPLICATION, ("status", "remarks")),
            *allow(Action.READ, SubjectType.CO_APPLICANT),
            *allow(Action.READ, SubjectType.GUARANTOR),
            *allow(Action.READ, SubjectType.INCOME, INSPECTOR_INCOME_FIELDS),
            *allow(_READ_CREATE, SubjectType.REVIEW),
            *allow((Action.READ, Action.CREATE, Action.UPDATE), SubjectType.VERIFICATION),
        ],
    },
}


def rules_for_role(role: Role | str) -> tuple[PolicyRule, ...]:
    try:
        resolved = Role(role)
    except ValueError:
        return ()
    return tuple(ROLE_POLICIES[resolved]["rules"])


def is_tenant_scoped_role(role: Role | str) -> bool:
    try:
        resolved = Role(role)
    except ValueError:
        return True
    return bool(ROLE_POLICIES[resolved]["tenant_scoped"])
