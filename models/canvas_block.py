"""
Business model canvas block model.
"""

from sqlalchemy import Column, ForeignKey, String, Text

from .base import UUID, BaseModel


class CanvasBlock(BaseModel):
    """
    Represents one entry in a business model canvas block
    (key_partners, value_propositions, revenue_streams, ...).
    """

    __tablename__ = "canvas_blocks"

    block_type = Column(String(50), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_by = Column(UUID(), ForeignKey("users.id"), nullable=True)
