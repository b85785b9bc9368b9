"""
Quarterly objectives and their key results (OKRs).
"""

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class Objective(BaseModel):
    """
    Represents a quarterly objective.
    """

    __tablename__ = "objectives"

    title = Column(String(500), nullable=False)
    description = Column(Text, default="")
    quarter = Column(String(2), nullable=False)  # Q1..Q4
    year = Column(Integer, nullable=False)
    status = Column(String(20), default="active")  # active, completed, archived
    progress = Column(Integer, default=0)
    ai_generated = Column(Boolean, default=False)
    created_by = Column(UUID(), ForeignKey("users.id"), nullable=True)

    # Relationships
    key_results = relationship(
        "KeyResult",
        back_populates="objective",
        cascade="all, delete-orphan",
        order_by="KeyResult.created_at",
    )


class KeyResult(BaseModel):
    """
    Represents a measurable key result attached to an objective.
    """

    __tablename__ = "key_results"

    objective_id = Column(UUID(), ForeignKey("objectives.id"), nullable=False)
    title = Column(String(500), nullable=False)
    current_value = Column(Float, default=0)
    target_value = Column(Float, default=100)
    unit = Column(String(50))

    # Relationships
    objective = relationship("Objective", back_populates="key_results")
