"""
Vision and mission statements with current-flag versioning.
"""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text

from .base import UUID, BaseModel


class VisionMission(BaseModel):
    """
    One version of the company vision or mission.

    Rows are never rewritten: a new statement is inserted with
    ``is_current=True`` and the previous current row of the same ``type`` is
    flipped to ``False``, so the table doubles as the edit history.
    """

    __tablename__ = "visions_missions"

    type = Column(String(20), nullable=False, index=True)  # vision, mission
    content = Column(Text, nullable=False)
    is_current = Column(Boolean, default=True, nullable=False)
    ai_enhanced = Column(Boolean, default=False)
    change_reason = Column(String(255))
    created_by = Column(UUID(), ForeignKey("users.id"), nullable=True)
