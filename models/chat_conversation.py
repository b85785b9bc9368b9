"""
Chat conversation model for AI assistant conversations.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, String
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel, JSONType


class ConversationStatus(str, enum.Enum):
    """Conversation lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"


class ChatConversation(BaseModel):
    """
    Represents a chat session between one user and the assistant.

    At most one conversation per user is ``active``; the assistant service
    always looks up the most recent active one before creating another.
    Conversations are completed, never deleted.
    """

    __tablename__ = "chat_conversations"

    user_id = Column(UUID(), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    status = Column(
        Enum(ConversationStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ConversationStatus.ACTIVE,
    )
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSONType, nullable=True)  # {"started_at": ..., "client": ...}

    # Relationships
    user = relationship("User", back_populates="chat_conversations")
    messages = relationship(
        "ChatMessage",
        back_populates="conversation",
        order_by="ChatMessage.created_at",
    )
