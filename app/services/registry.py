from app.core.permissions import SubjectType
from app.services.mutation_pipeline import MutationPipeline
from app.services.subjects import applicants, incomes, loan_applications, parties, reviews, verifications
from app.services.subjects.base import SubjectDefinition

DEFINITIONS: dict[SubjectType, SubjectDefinition] = {
    definition.subject_type: definition
    for definition in (
        applicants.DEFINITION,
        parties.CO_APPLICANT_DEFINITION,
        parties.GUARANTOR_DEFINITION,
        incomes.DEFINITION,
        loan_applications.DEFINITION,
        reviews.DEFINITION,
        verifications.DEFINITION,
    )
}

PIPELINES: dict[SubjectType, MutationPipeline] = {
    subject_type: MutationPipeline(definition) for subject_type, definition in DEFINITIONS.items()
}


def pipeline_for(subject_type: SubjectType | str) -> MutationPipeline:
    return PIPELINES[SubjectType(subject_type)]


__all__ = ["DEFINITIONS", "PIPELINES", "pipeline_for"]
