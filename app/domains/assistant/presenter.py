"""Confirmation presenter: human-readable summaries of proposed actions."""

import json
from typing import Any

from app.schemas.assistant import ActionKind, ConfirmationPayload

from .executor import normalize_timeframe


def _with_description(head: str, params: dict[str, Any]) -> str:
    description = params.get("description")
    return f"{head} - {description}" if description else head


def present_action(action: ActionKind | str, params: dict[str, Any]) -> ConfirmationPayload:
    """Format a pending action for display and operator decision."""
    try:
        kind = ActionKind(action)
    except ValueError:
        kind = None

    if kind is ActionKind.UPDATE_VISION:
        return ConfirmationPayload(
            title="Update Vision Statement",
            description="The AI wants to update your vision to:",
            content=params.get("content", ""),
            warning="This will create a new version of your vision statement.",
        )

    if kind is ActionKind.UPDATE_MISSION:
        return ConfirmationPayload(
            title="Update Mission Statement",
            description="The AI wants to update your mission to:",
            content=params.get("content", ""),
            warning="This will create a new version of your mission statement.",
        )

    if kind is ActionKind.CREATE_OBJECTIVE:
        return ConfirmationPayload(
            title="Create New Objective",
            description="The AI wants to create a new objective for this quarter:",
            content=params.get("title", ""),
        )

    if kind is ActionKind.ADD_CORE_VALUE:
        return ConfirmationPayload(
            title="Add Core Value",
            description="The AI wants to add a core value:",
            content=_with_description(params.get("title", ""), params),
        )

    if kind is ActionKind.ADD_STRATEGIC_OBJECTIVE:
        timeframe = normalize_timeframe(params.get("timeframe")).replace("_", " ")
        return ConfirmationPayload(
            title="Add Strategic Objective",
            description=f"The AI wants to add a strategic objective ({timeframe}):",
            content=_with_description(params.get("title", ""), params),
        )

    if kind is ActionKind.ADD_STRATEGIC_PILLAR:
        return ConfirmationPayload(
            title="Add Strategic Pillar",
            description="The AI wants to add a strategic pillar:",
            content=_with_description(params.get("name", ""), params),
        )

    if kind is ActionKind.ADD_SWOT_ITEM:
        return ConfirmationPayload(
            title="Add SWOT Item",
            description=f"The AI wants to add a {params.get('category', 'SWOT item')}:",
            content=params.get("content", ""),
        )

    return ConfirmationPayload(
        title="AI Action",
        description="The AI wants to perform an action",
        content=json.dumps(params, default=str),
    )
