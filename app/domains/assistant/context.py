"""Context assembler: screen-scoped planning data for the system prompt."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from app.schemas.assistant import ContextPayload
from models.canvas_block import CanvasBlock
from models.objective import Objective
from models.strategic import CoreValue, StrategicObjective, StrategicPillar
from models.swot_item import SWOT_CATEGORIES, SWOT_PLURALS, SwotItem
from models.vision_mission import VisionMission


logger = logging.getLogger(__name__)

VISION_MISSION_PAGE = "/vision-mission"
OKR_PAGE = "/okr"
SWOT_PAGE = "/swot"
CANVAS_PAGE = "/canvas"
STRATEGIC_FOUNDATION_PAGE = "/strategic-foundation"

NO_VISION = "No vision set yet"
NO_MISSION = "No mission set yet"
MAX_CONTEXT_OBJECTIVES = 5

ASSISTANT_INTRO = (
    "You are Todak AI, a helpful business planning assistant. You help users with their "
    "vision, mission, OKRs, SWOT analysis, strategic foundation and business model canvas."
)

ACTION_INSTRUCTIONS = """IMPORTANT: You can change the user's planning data when they ask you to. To perform an action, include it in your reply using one of these EXACT formats:

- To update vision: I'll update the vision to: "[new vision text]"
- To update mission: I'll update the mission to: "[new mission text]"
- To add core value: I'll add a core value: "[value title]" - "[description]"
- To add strategic objective: I'll add a strategic objective: "[objective title]" - "[description]" (3 years)
- To add strategic pillar: I'll add a strategic pillar: "[pillar name]" - "[description]"
- To create quarterly objective: I'll create an objective: "[objective title]"
- To add SWOT item: I'll add to [strength/weakness/opportunity/threat]: "[item text]"

Use at most one action per reply. Always explain what you are doing and why. Major changes will be shown to the user for confirmation before they are applied."""


class ContextAssembler:
    """Fetches the slice of planning data relevant to the user's current screen.

    Query failures are logged and degrade to partial or empty data; enrichment
    never fails a conversation turn.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self._loaders: dict[str, Callable[[dict[str, Any]], Awaitable[None]]] = {
            VISION_MISSION_PAGE: self._vision_mission,
            OKR_PAGE: self._okrs,
            SWOT_PAGE: self._swot,
            CANVAS_PAGE: self._canvas,
            STRATEGIC_FOUNDATION_PAGE: self._strategic_foundation,
        }

    async def assemble(self, current_page: str) -> ContextPayload:
        payload = ContextPayload(current_page=current_page)
        loader = self._loaders.get(current_page)
        if loader is None:
            return payload

        # Loaders fill this in place so a late failure keeps earlier results
        data: dict[str, Any] = {}
        try:
            await loader(data)
        except Exception as e:
            logger.error(f"Error getting context data for {current_page}: {str(e)}")
            await self.db.rollback()
        payload.data = data
        return payload

    async def _vision_mission(self, data: dict[str, Any]) -> None:
        result = await self.db.execute(select(VisionMission).where(VisionMission.is_current.is_(True)))
        rows = result.scalars().all()
        vision = next((row for row in rows if row.type == "vision"), None)
        mission = next((row for row in rows if row.type == "mission"), None)
        data["vision"] = vision.content if vision else NO_VISION
        data["mission"] = mission.content if mission else NO_MISSION

    async def _okrs(self, data: dict[str, Any]) -> None:
        query = (
            select(Objective)
            .options(selectinload(Objective.key_results))
            .where(Objective.status == "active")
            .order_by(Objective.created_at)
            .limit(MAX_CONTEXT_OBJECTIVES)
        )
        result = await self.db.execute(query)
        okrs = []
        for objective in result.scalars().all():
            entry = objective.to_dict()
            entry["key_results"] = [kr.to_dict() for kr in objective.key_results]
            okrs.append(entry)
        data["okrs"] = okrs

    async def _swot(self, data: dict[str, Any]) -> None:
        result = await self.db.execute(select(SwotItem).order_by(SwotItem.category))
        data["swot"] = [item.to_dict() for item in result.scalars().all()]

    async def _canvas(self, data: dict[str, Any]) -> None:
        result = await self.db.execute(select(CanvasBlock))
        data["canvas"] = [block.to_dict() for block in result.scalars().all()]

    async def _strategic_foundation(self, data: dict[str, Any]) -> None:
        values = await self.db.execute(
            select(CoreValue).where(CoreValue.is_active.is_(True)).order_by(CoreValue.order_position)
        )
        data["core_values"] = [row.to_dict() for row in values.scalars().all()]
        objectives = await self.db.execute(
            select(StrategicObjective)
            .where(StrategicObjective.status == "active")
            .order_by(StrategicObjective.order_position)
        )
        data["strategic_objectives"] = [row.to_dict() for row in objectives.scalars().all()]
        pillars = await self.db.execute(
            select(StrategicPillar)
            .where(StrategicPillar.is_active.is_(True))
            .order_by(StrategicPillar.order_position)
        )
        data["strategic_pillars"] = [row.to_dict() for row in pillars.scalars().all()]


def _format_number(value: Any, default: float) -> str:
    if value is None:
        value = default
    return f"{value:g}" if isinstance(value, float) else str(value)


def build_system_prompt(context: ContextPayload) -> str:
    """Fold the context payload into the assistant's system prompt."""
    sections = [ASSISTANT_INTRO]
    data = context.data

    if context.current_page == VISION_MISSION_PAGE and data:
        sections.append(
            "Current Vision & Mission data:\n"
            f'Vision: "{data.get("vision", NO_VISION)}"\n'
            f'Mission: "{data.get("mission", NO_MISSION)}"'
        )
    elif context.current_page == OKR_PAGE and data.get("okrs"):
        lines = ["Current OKRs:"]
        for index, objective in enumerate(data["okrs"], start=1):
            lines.append(f"{index}. {objective['title']} ({objective.get('progress') or 0}% complete)")
            for kr in objective.get("key_results", []):
                current = _format_number(kr.get("current_value"), 0)
                target = _format_number(kr.get("target_value"), 100)
                lines.append(f"   - {kr['title']}: {current}/{target} {kr.get('unit') or ''}".rstrip())
        sections.append("\n".join(lines))
    elif context.current_page == SWOT_PAGE and data.get("swot"):
        by_category: dict[str, list[str]] = {category: [] for category in SWOT_CATEGORIES}
        for item in data["swot"]:
            if item.get("category") in by_category:
                by_category[item["category"]].append(item["content"])
        lines = ["Current SWOT Analysis:"]
        for category, items in by_category.items():
            if items:
                lines.append(f"{SWOT_PLURALS[category].capitalize()}: {', '.join(items)}")
        sections.append("\n".join(lines))
    elif context.current_page == CANVAS_PAGE and data.get("canvas"):
        blocks: dict[str, list[str]] = {}
        for block in data["canvas"]:
            blocks.setdefault(block["block_type"], []).append(block["content"])
        lines = ["Current Business Model Canvas:"]
        for block_type, items in blocks.items():
            lines.append(f"{block_type.replace('_', ' ').title()}: {', '.join(items)}")
        sections.append("\n".join(lines))
    elif context.current_page == STRATEGIC_FOUNDATION_PAGE and data:
        lines = ["Current Strategic Foundation:"]
        if data.get("core_values"):
            lines.append("Core values: " + ", ".join(value["title"] for value in data["core_values"]))
        if data.get("strategic_objectives"):
            lines.append(
                "Strategic objectives: "
                + ", ".join(
                    f"{obj['title']} ({(obj.get('timeframe') or '3_years').replace('_', ' ')})"
                    for obj in data["strategic_objectives"]
                )
            )
        if data.get("strategic_pillars"):
            lines.append("Strategic pillars: " + ", ".join(p["name"] for p in data["strategic_pillars"]))
        if len(lines) > 1:
            sections.append("\n".join(lines))

    sections.append(
        "Be concise, practical, and supportive. When asked about the current data, "
        "provide specific insights and suggestions based on what you can see."
    )
    sections.append(ACTION_INSTRUCTIONS)
    return "\n\n".join(sections)
