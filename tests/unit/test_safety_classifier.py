"""Unit tests for the safety classifier."""

import pytest

from app.domains.assistant.safety import DEFAULT_SAFETY_TABLE, SafetyClassifier, UnclassifiedActionError
from app.schemas.assistant import ActionKind, SafetyTier


class TestSafetyClassifier:
    """Test cases for SafetyClassifier."""

    @pytest.mark.parametrize("kind", list(ActionKind))
    def test_every_kind_has_exactly_one_tier(self, kind):
        assert SafetyClassifier().classify(kind) in set(SafetyTier)

    @pytest.mark.parametrize(
        "kind,tier",
        [
            (ActionKind.UPDATE_VISION, SafetyTier.HIGH),
            (ActionKind.UPDATE_MISSION, SafetyTier.HIGH),
            (ActionKind.DELETE_OBJECTIVE, SafetyTier.HIGH),
            (ActionKind.CREATE_OBJECTIVE, SafetyTier.MEDIUM),
            (ActionKind.ADD_CORE_VALUE, SafetyTier.MEDIUM),
            (ActionKind.UPDATE_CANVAS_BLOCK, SafetyTier.MEDIUM),
            (ActionKind.ADD_SWOT_ITEM, SafetyTier.LOW),
            (ActionKind.UPDATE_KEY_RESULT, SafetyTier.LOW),
        ],
    )
    def test_default_tiers(self, kind, tier):
        assert SafetyClassifier().classify(kind) == tier

    def test_missing_tier_raises(self):
        classifier = SafetyClassifier(table={ActionKind.UPDATE_VISION: SafetyTier.HIGH})

        with pytest.raises(UnclassifiedActionError) as exc_info:
            classifier.classify(ActionKind.ADD_SWOT_ITEM)

        assert isinstance(exc_info.value, LookupError)

    def test_default_table_is_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_SAFETY_TABLE[ActionKind.UPDATE_VISION] = SafetyTier.LOW

    def test_injected_table_is_copied(self):
        table = {ActionKind.ADD_SWOT_ITEM: SafetyTier.LOW}
        classifier = SafetyClassifier(table=table)

        table[ActionKind.ADD_SWOT_ITEM] = SafetyTier.HIGH

        assert classifier.classify(ActionKind.ADD_SWOT_ITEM) == SafetyTier.LOW

    def test_only_high_requires_confirmation_by_default(self):
        classifier = SafetyClassifier()

        assert classifier.requires_confirmation(ActionKind.UPDATE_VISION) is True
        assert classifier.requires_confirmation(ActionKind.CREATE_OBJECTIVE) is False
        assert classifier.requires_confirmation(ActionKind.ADD_SWOT_ITEM) is False

    def test_medium_gate_knob(self):
        classifier = SafetyClassifier()

        assert classifier.requires_confirmation(ActionKind.CREATE_OBJECTIVE, gate_medium=True) is True
        assert classifier.requires_confirmation(ActionKind.ADD_SWOT_ITEM, gate_medium=True) is False
