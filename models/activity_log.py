"""
Audit log model for mutations performed on behalf of users.
"""

from sqlalchemy import Column, ForeignKey, String, Text

from .base import UUID, BaseModel, JSONType


class ActivityLog(BaseModel):
    """
    Append-only record of who changed which entity and how.
    """

    __tablename__ = "activity_logs"

    user_id = Column(UUID(), ForeignKey("users.id"), nullable=True)
    action = Column(String(100), nullable=False)  # e.g. ai_update_vision
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(UUID(), nullable=True)
    description = Column(Text)
    meta = Column("metadata", JSONType, nullable=True)
