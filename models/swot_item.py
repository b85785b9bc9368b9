"""
SWOT analysis item model.
"""

from sqlalchemy import Boolean, Column, ForeignKey, String, Text

from .base import UUID, BaseModel

SWOT_CATEGORIES = ("strength", "weakness", "opportunity", "threat")
SWOT_PLURALS = {
    "strength": "strengths",
    "weakness": "weaknesses",
    "opportunity": "opportunities",
    "threat": "threats",
}


class SwotItem(BaseModel):
    """
    Represents one strength, weakness, opportunity or threat.
    """

    __tablename__ = "swot_items"

    category = Column(String(20), nullable=False, index=True)
    content = Column(Text, nullable=False)
    impact_level = Column(String(10), default="medium")  # low, medium, high
    ai_generated = Column(Boolean, default=False)
    created_by = Column(UUID(), ForeignKey("users.id"), nullable=True)
