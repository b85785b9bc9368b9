"""Unit tests for model serialization."""

import uuid
from datetime import datetime

import pytest

from models import ActivityLog, ChatConversation, ConversationStatus


class TestToDict:
    """Test cases for BaseModel.to_dict."""

    def test_renamed_column_uses_row_value(self):
        entry = ActivityLog(action="ai_update_vision", entity_type="vision_mission", meta={"content": "New"})

        data = entry.to_dict()

        assert data["metadata"] == {"content": "New"}
        assert "meta" not in data

    def test_conversation_metadata_and_types(self):
        conversation_id = uuid.uuid4()
        user_id = uuid.uuid4()
        conversation = ChatConversation(
            id=conversation_id,
            user_id=user_id,
            title="Chat 2026-08-14",
            status=ConversationStatus.ACTIVE,
            meta={"client": "planner-tests/1.0"},
            created_at=datetime(2026, 8, 14, 9, 30),
        )

        data = conversation.to_dict()

        assert data["id"] == str(conversation_id)
        assert data["user_id"] == str(user_id)
        assert data["metadata"] == {"client": "planner-tests/1.0"}
        assert data["created_at"] == "2026-08-14T09:30:00"

    @pytest.mark.asyncio
    async def test_persisted_row_round_trips_metadata(self, test_db, test_user):
        entry = ActivityLog(
            user_id=test_user.id,
            action="ai_add_swot_item",
            entity_type="swot_item",
            meta={"category": "strength"},
        )
        test_db.add(entry)
        await test_db.commit()

        assert entry.to_dict()["metadata"] == {"category": "strength"}
