from sqlalchemy import JSON, Boolean, Column, ForeignKey, String, Text, Uuid

from app.db.base import Base
from app.models.mixins import TenantScopedMixin


class Review(TenantScopedMixin, Base):
    __tablename__ = "reviews"

    loan_application_id = Column(
        Uuid,
        ForeignKey("loan_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    review_entity_type = Column(String(40), nullable=False)
    review_entity_id = Column(String(64), nullable=False)
    review_event_type = Column(String(40), nullable=False)
    remarks = Column(Text, nullable=False)
    result = Column(Boolean, nullable=False)
    action_data = Column(JSON, nullable=False, default=dict)
    # Reviewer identity is stamped from the actor, never from the payload.
    user_id = Column(String(64), nullable=False)
    role = Column(String(40), nullable=False)
