"""
Models package initialization.
"""

from .activity_log import ActivityLog
from .base import Base, BaseModel
from .canvas_block import CanvasBlock
from .chat_conversation import ChatConversation, ConversationStatus
from .chat_message import ChatMessage, MessageActionState, MessageRole
from .objective import KeyResult, Objective
from .strategic import CoreValue, StrategicObjective, StrategicPillar
from .swot_item import SWOT_CATEGORIES, SWOT_PLURALS, SwotItem
from .user import User
from .vision_mission import VisionMission

__all__ = [
    "Base",
    "BaseModel",
    "User",
    # Chat models
    "ChatConversation",
    "ConversationStatus",
    "ChatMessage",
    "MessageActionState",
    "MessageRole",
    # Planning models
    "VisionMission",
    "Objective",
    "KeyResult",
    "SwotItem",
    "SWOT_CATEGORIES",
    "SWOT_PLURALS",
    "CanvasBlock",
    "CoreValue",
    "StrategicObjective",
    "StrategicPillar",
    # Audit
    "ActivityLog",
]
