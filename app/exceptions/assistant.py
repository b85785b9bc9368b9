# ruff: noqa: D107
"""Assistant conversation exceptions."""

from typing import Any

from .base import ConflictError, NotFoundError, ValidationError


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation does not exist or belongs to another user."""

    def __init__(self, message: str = "Conversation not found", details: dict[str, Any] | None = None):
        super().__init__(message=message, error_code="CONVERSATION_NOT_FOUND", details=details)


class EmptyMessageError(ValidationError):
    """Raised when a submitted message is empty after trimming."""

    def __init__(self, message: str = "Message cannot be empty"):
        super().__init__(message=message, error_code="EMPTY_MESSAGE")


class TurnInProgressError(ConflictError):
    """Raised when a submission arrives while another turn is still open."""

    def __init__(self, message: str = "A turn is already in progress", details: dict[str, Any] | None = None):
        super().__init__(message=message, error_code="TURN_IN_PROGRESS", details=details)


class NoPendingActionError(ConflictError):
    """Raised when confirm or reject is called with nothing awaiting confirmation."""

    def __init__(self, message: str = "No action is awaiting confirmation"):
        super().__init__(message=message, error_code="NO_PENDING_ACTION")
