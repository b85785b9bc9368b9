"""
Chat message model for AI assistant messages.
"""

import enum

from sqlalchemy import Boolean, Column, Enum, ForeignKey, Text
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class MessageRole(str, enum.Enum):
    """Message role enumeration."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageActionState(str, enum.Enum):
    """Where a message stands with respect to the action it proposed."""

    NONE = "none"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ChatMessage(BaseModel):
    """
    Represents a single turn in a conversation.

    Content is written once; afterwards only the action flags change and
    outcome annotations are appended to the content. At most one of
    ``action_pending``, ``action_completed`` and ``action_failed`` is true,
    which :meth:`apply_action_state` guarantees.
    """

    __tablename__ = "chat_messages"

    conversation_id = Column(UUID(), ForeignKey("chat_conversations.id"), nullable=False, index=True)
    role = Column(
        Enum(MessageRole, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    content = Column(Text, nullable=False)
    user_id = Column(UUID(), ForeignKey("users.id"), nullable=True)

    has_action = Column(Boolean, default=False, nullable=False)
    action_pending = Column(Boolean, default=False, nullable=False)
    action_completed = Column(Boolean, default=False, nullable=False)
    action_failed = Column(Boolean, default=False, nullable=False)

    # Relationships
    conversation = relationship("ChatConversation", back_populates="messages")

    @property
    def action_state(self) -> MessageActionState:
        if self.action_pending:
            return MessageActionState.PENDING
        if self.action_completed:
            return MessageActionState.COMPLETED
        if self.action_failed:
            return MessageActionState.FAILED
        if self.has_action:
            return MessageActionState.CANCELLED
        return MessageActionState.NONE

    def apply_action_state(self, state: MessageActionState) -> None:
        """Set the action flags for ``state``, clearing the other two."""
        self.has_action = state is not MessageActionState.NONE
        self.action_pending = state is MessageActionState.PENDING
        self.action_completed = state is MessageActionState.COMPLETED
        self.action_failed = state is MessageActionState.FAILED

    def append_content(self, annotation: str) -> None:
        self.content = f"{self.content}\n\n{annotation}"
