"""Action executor: applies assistant-requested mutations to planning data."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.schemas.assistant import ActionKind, ActionResult
from models.activity_log import ActivityLog
from models.base import BaseModel
from models.objective import Objective
from models.strategic import CoreValue, StrategicObjective, StrategicPillar
from models.swot_item import SWOT_CATEGORIES, SWOT_PLURALS, SwotItem
from models.vision_mission import VisionMission

from .safety import SafetyClassifier


logger = logging.getLogger(__name__)

AI_CHANGE_REASON = "Updated by AI assistant"
DEFAULT_TIMEFRAME = "3_years"
TIMEFRAME_YEARS = {"1_year": 1, "3_years": 3, "5_years": 5}

# Read views that go stale after a successful action of each kind
ACTION_SCOPES: dict[ActionKind, str] = {
    ActionKind.UPDATE_VISION: "vision_mission",
    ActionKind.UPDATE_MISSION: "vision_mission",
    ActionKind.ADD_CORE_VALUE: "strategic_foundation",
    ActionKind.ADD_STRATEGIC_OBJECTIVE: "strategic_foundation",
    ActionKind.ADD_STRATEGIC_PILLAR: "strategic_foundation",
    ActionKind.CREATE_OBJECTIVE: "okr",
    ActionKind.UPDATE_OBJECTIVE: "okr",
    ActionKind.DELETE_OBJECTIVE: "okr",
    ActionKind.CREATE_KEY_RESULT: "okr",
    ActionKind.UPDATE_KEY_RESULT: "okr",
    ActionKind.ADD_SWOT_ITEM: "swot",
    ActionKind.UPDATE_SWOT_ITEM: "swot",
    ActionKind.DELETE_SWOT_ITEM: "swot",
    ActionKind.UPDATE_CANVAS_BLOCK: "canvas",
}


class InvalidActionParamsError(ValueError):
    """Raised when parsed parameters cannot produce a valid row."""


class InconsistentStateError(RuntimeError):
    """Raised when a versioned replace leaves other than one current row."""


@dataclass
class Mutation:
    """A staged (flushed, not yet committed) change plus its audit description."""

    row: BaseModel
    message: str
    entity_type: str
    audit_action: str
    description: str
    metadata: dict[str, Any] = field(default_factory=dict)
    always_audit: bool = False


def quarter_for(month: int) -> str:
    """Calendar quarter label for a 1-indexed month."""
    return f"Q{(month + 2) // 3}"


def normalize_timeframe(value: Any) -> str:
    """Map loose timeframe input onto 1_year/3_years/5_years, defaulting to 3 years."""
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return DEFAULT_TIMEFRAME

    key = value.strip().lower().replace(" ", "_").replace("-", "_")
    if key in TIMEFRAME_YEARS:
        return key
    digits = key.split("_", 1)[0]
    for timeframe, years in TIMEFRAME_YEARS.items():
        if digits == str(years):
            return timeframe
    return DEFAULT_TIMEFRAME


def add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return start.replace(year=start.year + years, day=28)


class ActionExecutor:
    """Executes action intents against the data store.

    High-tier actions (and medium-tier ones when configured) stop at
    ``requires_confirmation`` on the first call and only write once called
    again with ``needs_confirmation=False``. Store errors never escape: they
    come back as failed :class:`ActionResult` values.
    """

    def __init__(
        self,
        db: AsyncSession,
        classifier: SafetyClassifier | None = None,
        gate_medium: bool | None = None,
        audit_all: bool | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.classifier = classifier or SafetyClassifier()
        self.gate_medium = (
            settings.assistant_medium_tier_requires_confirmation if gate_medium is None else gate_medium
        )
        self.audit_all = settings.assistant_audit_all_actions if audit_all is None else audit_all
        self.today = today
        self._handlers: dict[ActionKind, Callable[[dict[str, Any], UUID], Awaitable[Mutation]]] = {
            ActionKind.UPDATE_VISION: self._update_vision,
            ActionKind.UPDATE_MISSION: self._update_mission,
            ActionKind.CREATE_OBJECTIVE: self._create_objective,
            ActionKind.ADD_CORE_VALUE: self._add_core_value,
            ActionKind.ADD_STRATEGIC_OBJECTIVE: self._add_strategic_objective,
            ActionKind.ADD_STRATEGIC_PILLAR: self._add_strategic_pillar,
            ActionKind.ADD_SWOT_ITEM: self._add_swot_item,
        }

    async def execute(
        self,
        action: ActionKind | str,
        params: dict[str, Any],
        user_id: UUID,
        needs_confirmation: bool = True,
    ) -> ActionResult:
        """Run one action, or report that it must be confirmed first."""
        try:
            kind = ActionKind(action)
        except ValueError:
            logger.error(f"Executor received unknown action: {action}")
            return ActionResult.failed("Unknown action", "unknown_action", action=str(action))

        # Raises UnclassifiedActionError for a kind missing from the table
        self.classifier.classify(kind)

        if needs_confirmation and self.classifier.requires_confirmation(kind, self.gate_medium):
            return ActionResult.confirmation_required(kind, params)

        handler = self._handlers.get(kind)
        if handler is None:
            logger.error(f"No executor handler for action: {kind.value}")
            return ActionResult.failed("Unknown action", "unknown_action", action=kind.value)

        try:
            mutation = await handler(params, user_id)
            await self.db.commit()
            await self.db.refresh(mutation.row)
        except InvalidActionParamsError as e:
            await self.db.rollback()
            return ActionResult.failed(str(e), "invalid_params", action=kind.value)
        except InconsistentStateError as e:
            await self.db.rollback()
            logger.error(f"AI action {kind.value} aborted: {str(e)}")
            return ActionResult.failed(str(e), "inconsistent_state", action=kind.value)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"AI action {kind.value} failed: {str(e)}")
            return ActionResult.failed(str(e), "store_error", action=kind.value)

        # Snapshot before auditing; a failed audit rollback expires the row
        data = mutation.row.to_dict()

        audit_logged = None
        if self.audit_all or mutation.always_audit:
            audit_logged = await self._write_audit(mutation, user_id)

        logger.info(f"AI action {kind.value} applied to {mutation.entity_type} {data['id']}")
        return ActionResult(
            success=True,
            action=kind.value,
            data=data,
            message=mutation.message,
            audit_logged=audit_logged,
        )

    # Per-kind handlers

    async def _update_vision(self, params: dict[str, Any], user_id: UUID) -> Mutation:
        return await self._replace_statement("vision", params, user_id)

    async def _update_mission(self, params: dict[str, Any], user_id: UUID) -> Mutation:
        return await self._replace_statement("mission", params, user_id)

    async def _replace_statement(self, statement_type: str, params: dict[str, Any], user_id: UUID) -> Mutation:
        """Supersede the current statement of ``statement_type`` with a new version."""
        content = self._require(params, "content")

        await self.db.execute(
            update(VisionMission)
            .where(VisionMission.type == statement_type, VisionMission.is_current.is_(True))
            .values(is_current=False)
        )

        row = VisionMission(
            type=statement_type,
            content=content,
            is_current=True,
            created_by=user_id,
            ai_enhanced=True,
            change_reason=AI_CHANGE_REASON,
        )
        self.db.add(row)
        await self.db.flush()

        current_count = await self.db.scalar(
            select(func.count(VisionMission.id)).where(
                VisionMission.type == statement_type, VisionMission.is_current.is_(True)
            )
        )
        if current_count != 1:
            raise InconsistentStateError(
                f"Expected exactly one current {statement_type}, found {current_count}"
            )

        return Mutation(
            row=row,
            message=f"{statement_type.capitalize()} updated successfully",
            entity_type="vision_mission",
            audit_action=f"ai_update_{statement_type}",
            description=f"AI updated {statement_type}",
            metadata={"content": content},
            always_audit=True,
        )

    async def _create_objective(self, params: dict[str, Any], user_id: UUID) -> Mutation:
        title = self._require(params, "title")
        today = self.today()

        row = Objective(
            title=title,
            description=params.get("description") or "",
            quarter=quarter_for(today.month),
            year=today.year,
            status="active",
            created_by=user_id,
            ai_generated=True,
        )
        self.db.add(row)
        await self.db.flush()

        return Mutation(
            row=row,
            message="Objective created successfully",
            entity_type="objective",
            audit_action="ai_create_objective",
            description=f"AI created objective for {row.quarter} {row.year}",
            metadata={"title": title},
        )

    async def _add_core_value(self, params: dict[str, Any], user_id: UUID) -> Mutation:
        title = self._require(params, "title")

        row = CoreValue(
            title=title,
            description=params.get("description") or "",
            icon=params.get("icon") or "💎",
            order_position=await self._next_position(CoreValue),
            is_active=True,
            created_by=user_id,
        )
        self.db.add(row)
        await self.db.flush()

        return Mutation(
            row=row,
            message=f'Core value "{title}" added',
            entity_type="core_value",
            audit_action="ai_add_core_value",
            description="AI added core value",
            metadata={"title": title, "description": row.description},
        )

    async def _add_strategic_objective(self, params: dict[str, Any], user_id: UUID) -> Mutation:
        title = self._require(params, "title")
        timeframe = normalize_timeframe(params.get("timeframe"))

        row = StrategicObjective(
            title=title,
            description=params.get("description") or "",
            timeframe=timeframe,
            target_date=add_years(self.today(), TIMEFRAME_YEARS[timeframe]),
            status="active",
            order_position=await self._next_position(StrategicObjective),
            created_by=user_id,
        )
        self.db.add(row)
        await self.db.flush()

        return Mutation(
            row=row,
            message=f'Strategic objective "{title}" added',
            entity_type="strategic_objective",
            audit_action="ai_add_strategic_objective",
            description=f"AI added strategic objective ({timeframe.replace('_', ' ')})",
            metadata={"title": title, "timeframe": timeframe},
        )

    async def _add_strategic_pillar(self, params: dict[str, Any], user_id: UUID) -> Mutation:
        name = self._require(params, "name")

        row = StrategicPillar(
            name=name,
            description=params.get("description") or "",
            order_position=await self._next_position(StrategicPillar),
            is_active=True,
            created_by=user_id,
        )
        self.db.add(row)
        await self.db.flush()

        return Mutation(
            row=row,
            message=f'Strategic pillar "{name}" added',
            entity_type="strategic_pillar",
            audit_action="ai_add_strategic_pillar",
            description="AI added strategic pillar",
            metadata={"name": name, "description": row.description},
        )

    async def _add_swot_item(self, params: dict[str, Any], user_id: UUID) -> Mutation:
        category = self._require(params, "category").lower()
        content = self._require(params, "content")
        if category not in SWOT_CATEGORIES:
            raise InvalidActionParamsError(f"Unknown SWOT category: {category}")

        row = SwotItem(
            category=category,
            content=content,
            impact_level=params.get("impact_level") or params.get("impactLevel") or "medium",
            created_by=user_id,
            ai_generated=True,
        )
        self.db.add(row)
        await self.db.flush()

        return Mutation(
            row=row,
            message=f"Added to {SWOT_PLURALS[category]}",
            entity_type="swot_item",
            audit_action="ai_add_swot_item",
            description=f"AI added {category}",
            metadata={"category": category, "content": content},
        )

    # Helpers

    @staticmethod
    def _require(params: dict[str, Any], key: str) -> str:
        value = params.get(key)
        if not isinstance(value, str) or not value.strip():
            raise InvalidActionParamsError(f"Missing required parameter: {key}")
        return value.strip()

    async def _next_position(self, model) -> int:
        """Ordering value that places a new row after every existing one."""
        highest = await self.db.scalar(select(func.max(model.order_position)))
        return 0 if highest is None else highest + 1

    async def _write_audit(self, mutation: Mutation, user_id: UUID) -> bool:
        """Append an audit entry. Failure is logged and never undoes the mutation."""
        try:
            self.db.add(
                ActivityLog(
                    user_id=user_id,
                    action=mutation.audit_action,
                    entity_type=mutation.entity_type,
                    entity_id=mutation.row.id,
                    description=mutation.description,
                    meta=mutation.metadata,
                )
            )
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to write audit entry for {mutation.audit_action}: {str(e)}")
            return False
