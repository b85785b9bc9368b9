"""Safety tiers for assistant actions."""

from collections.abc import Mapping
from types import MappingProxyType

from app.schemas.assistant import ActionKind, SafetyTier


DEFAULT_SAFETY_TABLE: Mapping[ActionKind, SafetyTier] = MappingProxyType(
    {
        ActionKind.UPDATE_VISION: SafetyTier.HIGH,
        ActionKind.UPDATE_MISSION: SafetyTier.HIGH,
        ActionKind.ADD_CORE_VALUE: SafetyTier.MEDIUM,
        ActionKind.ADD_STRATEGIC_OBJECTIVE: SafetyTier.MEDIUM,
        ActionKind.ADD_STRATEGIC_PILLAR: SafetyTier.MEDIUM,
        ActionKind.CREATE_OBJECTIVE: SafetyTier.MEDIUM,
        ActionKind.UPDATE_OBJECTIVE: SafetyTier.MEDIUM,
        ActionKind.DELETE_OBJECTIVE: SafetyTier.HIGH,
        ActionKind.CREATE_KEY_RESULT: SafetyTier.LOW,
        ActionKind.UPDATE_KEY_RESULT: SafetyTier.LOW,
        ActionKind.ADD_SWOT_ITEM: SafetyTier.LOW,
        ActionKind.UPDATE_SWOT_ITEM: SafetyTier.MEDIUM,
        ActionKind.DELETE_SWOT_ITEM: SafetyTier.MEDIUM,
        ActionKind.UPDATE_CANVAS_BLOCK: SafetyTier.MEDIUM,
    }
)


class UnclassifiedActionError(LookupError):
    """An action kind has no safety tier. Indicates a broken table, not bad input."""


class SafetyClassifier:
    """Static lookup from action kind to safety tier."""

    def __init__(self, table: Mapping[ActionKind, SafetyTier] = DEFAULT_SAFETY_TABLE):
        self.table = MappingProxyType(dict(table))

    def classify(self, action: ActionKind) -> SafetyTier:
        try:
            return self.table[action]
        except KeyError:
            raise UnclassifiedActionError(f"No safety tier defined for action '{action}'") from None

    def requires_confirmation(self, action: ActionKind, gate_medium: bool = False) -> bool:
        """Whether a first execution attempt of ``action`` must stop for approval."""
        tier = self.classify(action)
        return tier is SafetyTier.HIGH or (gate_medium and tier is SafetyTier.MEDIUM)
