"""Conversation and message persistence for the assistant."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.exceptions.assistant import ConversationNotFoundError
from models.chat_conversation import ChatConversation, ConversationStatus
from models.chat_message import ChatMessage, MessageActionState, MessageRole


logger = logging.getLogger(__name__)


class AssistantService:
    """Service class for assistant conversations and their messages."""

    def __init__(self, db: AsyncSession):
        """Initialize assistant service with database session.

        Args:
            db: Async database session for data operations.
        """
        self.db = db

    async def get_active_conversation(self, user_id: UUID) -> ChatConversation | None:
        """Return the user's most recent active conversation, if any."""
        query = (
            select(ChatConversation)
            .where(
                ChatConversation.user_id == user_id,
                ChatConversation.status == ConversationStatus.ACTIVE,
            )
            .order_by(ChatConversation.created_at.desc())
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create_active_conversation(
        self, user_id: UUID, client: str | None = None
    ) -> ChatConversation:
        """Get the active conversation or open a new one.

        Args:
            user_id: Owner of the conversation
            client: Client descriptor (User-Agent) stored in new conversations' metadata

        Returns:
            The active conversation
        """
        conversation = await self.get_active_conversation(user_id)
        if conversation:
            return conversation

        now = datetime.now(UTC)
        conversation = ChatConversation(
            user_id=user_id,
            title=f"Chat {now.date().isoformat()}",
            status=ConversationStatus.ACTIVE,
            meta={"started_at": now.isoformat(), "client": client},
        )
        return await self._save(conversation)

    async def get_conversation(self, conversation_id: UUID, user_id: UUID) -> ChatConversation:
        query = select(ChatConversation).where(
            ChatConversation.id == conversation_id, ChatConversation.user_id == user_id
        )
        result = await self.db.execute(query)
        conversation = result.scalar_one_or_none()
        if not conversation:
            raise ConversationNotFoundError()
        return conversation

    async def complete_conversation(self, conversation_id: UUID, user_id: UUID) -> None:
        """Mark a conversation completed. Conversations are never deleted."""
        try:
            await self.db.execute(
                update(ChatConversation)
                .where(ChatConversation.id == conversation_id, ChatConversation.user_id == user_id)
                .values(status=ConversationStatus.COMPLETED)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to complete conversation {conversation_id}: {str(e)}")
            raise

    async def add_message(
        self,
        conversation_id: UUID,
        role: MessageRole,
        content: str,
        user_id: UUID | None = None,
        action_state: MessageActionState = MessageActionState.NONE,
    ) -> ChatMessage:
        """Persist one message with its initial action state."""
        message = ChatMessage(
            conversation_id=conversation_id,
            role=role,
            content=content,
            user_id=user_id,
        )
        message.apply_action_state(action_state)
        return await self._save(message)

    async def settle_message(
        self,
        message_id: UUID,
        action_state: MessageActionState,
        annotation: str | None = None,
    ) -> ChatMessage:
        """Move a message to a new action state, optionally appending outcome text."""
        message = await self.db.get(ChatMessage, message_id, populate_existing=True)
        if message is None:
            raise ConversationNotFoundError("Message not found")

        message.apply_action_state(action_state)
        if annotation:
            message.append_content(annotation)
        return await self._save(message)

    async def list_messages(self, conversation_id: UUID) -> list[ChatMessage]:
        """Messages of a conversation in creation order."""
        query = (
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.created_at)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_pending_messages(self, conversation_id: UUID) -> list[ChatMessage]:
        """Assistant messages of a conversation still flagged pending."""
        query = (
            select(ChatMessage)
            .where(
                ChatMessage.conversation_id == conversation_id,
                ChatMessage.role == MessageRole.ASSISTANT,
                ChatMessage.action_pending.is_(True),
            )
            .order_by(ChatMessage.created_at)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _save(self, instance):
        try:
            self.db.add(instance)
            await self.db.commit()
            await self.db.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save {type(instance).__name__}: {str(e)}")
            raise
