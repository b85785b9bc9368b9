"""Assistant schemas for action intents, results and conversation views."""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import ConfigDict, Field

from models.chat_conversation import ConversationStatus
from models.chat_message import MessageRole

from .base import BaseModelSchema, BaseSchema


class ActionKind(str, Enum):
    """Mutations the assistant can request."""

    UPDATE_VISION = "update_vision"
    UPDATE_MISSION = "update_mission"
    ADD_CORE_VALUE = "add_core_value"
    ADD_STRATEGIC_OBJECTIVE = "add_strategic_objective"
    ADD_STRATEGIC_PILLAR = "add_strategic_pillar"
    CREATE_OBJECTIVE = "create_objective"
    ADD_SWOT_ITEM = "add_swot_item"
    # Reserved: classified but not executable yet
    UPDATE_OBJECTIVE = "update_objective"
    DELETE_OBJECTIVE = "delete_objective"
    CREATE_KEY_RESULT = "create_key_result"
    UPDATE_KEY_RESULT = "update_key_result"
    UPDATE_SWOT_ITEM = "update_swot_item"
    DELETE_SWOT_ITEM = "delete_swot_item"
    UPDATE_CANVAS_BLOCK = "update_canvas_block"


class SafetyTier(str, Enum):
    """Risk tier of an action kind."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TurnPhase(str, Enum):
    """Orchestrator state for one conversation."""

    IDLE = "idle"
    AWAITING_COMPLETION = "awaiting_completion"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING_ACTION = "executing_action"


class ActionStatusType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class ActionIntent(BaseSchema):
    """A parsed request to mutate planning data. Never persisted."""

    model_config = ConfigDict(frozen=True)

    action: ActionKind
    params: dict[str, Any] = Field(default_factory=dict)
    safety_tier: SafetyTier | None = None


class ActionResult(BaseSchema):
    """Normalized outcome of one executor call.

    Exactly one of three shapes: ``requires_confirmation`` (nothing written),
    ``success`` with ``data``, or failure with ``error``.
    """

    success: bool = False
    requires_confirmation: bool = False
    action: str | None = None
    params: dict[str, Any] | None = None
    data: dict[str, Any] | None = None
    message: str | None = None
    error: str | None = None
    error_code: str | None = None
    audit_logged: bool | None = None

    @classmethod
    def confirmation_required(cls, action: ActionKind, params: dict[str, Any]) -> ActionResult:
        return cls(
            requires_confirmation=True,
            action=action.value,
            params=params,
            message="This action requires your confirmation",
        )

    @classmethod
    def failed(cls, error: str, error_code: str = "store_error", action: str | None = None) -> ActionResult:
        return cls(success=False, error=error, error_code=error_code, action=action)


class ConfirmationPayload(BaseSchema):
    """Human-readable summary of a pending action."""

    title: str
    description: str
    content: str
    warning: str | None = None


class ContextPayload(BaseSchema):
    """Screen-scoped snapshot of planning data folded into the system prompt."""

    current_page: str
    data: dict[str, Any] = Field(default_factory=dict)


class ActionStatus(BaseSchema):
    """Notification for the host interface after an action settles."""

    type: ActionStatusType
    message: str


class ChatMessageResponse(BaseModelSchema):
    """Schema for chat message response."""

    conversation_id: UUID
    role: MessageRole
    content: str
    has_action: bool = False
    action_pending: bool = False
    action_completed: bool = False
    action_failed: bool = False


class ChatConversationResponse(BaseModelSchema):
    """Schema for chat conversation response."""

    user_id: UUID
    title: str | None = None
    status: ConversationStatus
    meta: dict[str, Any] | None = Field(default=None, serialization_alias="metadata")


class PendingConfirmationResponse(BaseSchema):
    """Pending action as exposed to the operator."""

    action: ActionKind
    params: dict[str, Any]
    safety_tier: SafetyTier
    message_id: UUID
    confirmation: ConfirmationPayload


class ConversationView(BaseSchema):
    """Everything the host interface needs to render the assistant panel."""

    conversation: ChatConversationResponse
    messages: list[ChatMessageResponse] = Field(default_factory=list)
    phase: TurnPhase = TurnPhase.IDLE
    pending_confirmation: PendingConfirmationResponse | None = None


class TurnResult(BaseSchema):
    """Outcome of one submit, confirm or reject call."""

    conversation_id: UUID
    phase: TurnPhase
    user_message: ChatMessageResponse | None = None
    assistant_message: ChatMessageResponse | None = None
    intent: ActionIntent | None = None
    action_result: ActionResult | None = None
    pending_confirmation: PendingConfirmationResponse | None = None
    action_summary: ConfirmationPayload | None = None
    status: ActionStatus | None = None
    refresh: list[str] = Field(default_factory=list)


class SubmitMessageRequest(BaseSchema):
    """Schema for a user message submission."""

    message: str = Field(..., max_length=10000, description="User message")
    current_page: str = Field(default="/", max_length=255, description="Route of the screen the user is on")


class ConversationStartedResponse(BaseSchema):
    """Schema returned after starting a fresh conversation."""

    conversation: ConversationView
    cancelled_pending_action: bool = False
