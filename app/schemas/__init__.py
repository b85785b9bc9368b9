# ruff: noqa: F403, F401
"""Schemas package initialization."""

from .assistant import *
from .base import *

# ConversationStartedResponse nests ConversationView; resolve postponed annotations
from .assistant import ConversationStartedResponse, ConversationView, TurnResult

ConversationView.model_rebuild()
TurnResult.model_rebuild()
ConversationStartedResponse.model_rebuild()
