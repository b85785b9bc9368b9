"""
Strategic foundation models: core values, strategic objectives and pillars.
"""

from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, String, Text

from .base import UUID, BaseModel


class CoreValue(BaseModel):
    """
    Represents a company core value, shown in ``order_position`` order.
    """

    __tablename__ = "core_values"

    title = Column(String(255), nullable=False)
    description = Column(Text, default="")
    icon = Column(String(16), default="💎")
    order_position = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_by = Column(UUID(), ForeignKey("users.id"), nullable=True)


class StrategicObjective(BaseModel):
    """
    Represents a long-term (1, 3 or 5 year) strategic objective.
    """

    __tablename__ = "strategic_objectives"

    title = Column(String(500), nullable=False)
    description = Column(Text, default="")
    timeframe = Column(String(20), default="3_years")  # 1_year, 3_years, 5_years
    target_date = Column(Date)
    status = Column(String(20), default="active")
    order_position = Column(Integer, default=0)
    created_by = Column(UUID(), ForeignKey("users.id"), nullable=True)


class StrategicPillar(BaseModel):
    """
    Represents a strategic pillar (key focus area).
    """

    __tablename__ = "strategic_pillars"

    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    order_position = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_by = Column(UUID(), ForeignKey("users.id"), nullable=True)
