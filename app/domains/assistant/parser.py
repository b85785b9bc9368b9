"""Intent parser: turns assistant free text into an action intent.

The pattern table is ordered and the first matching entry wins, so a reply
that mentions both a vision update and a SWOT item always yields the vision
update. Every accepted phrasing is listed here; nothing is inferred.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from app.schemas.assistant import ActionIntent, ActionKind

from .executor import normalize_timeframe
from .safety import SafetyClassifier

_QUOTED = r'"([^"]+)"'
_OPTIONAL_DESCRIPTION = r'(?:\s*-\s*"([^"]*)")?'
_OPTIONAL_TIMEFRAME = r'(?:\s*\(\s*(\d+)[\s_-]*years?\s*\))?'


@dataclass(frozen=True)
class ActionPattern:
    """One row of the parser table."""

    action: ActionKind
    regex: re.Pattern
    extract: Callable[[re.Match], dict[str, Any]]


def _content(match: re.Match) -> dict[str, Any]:
    return {"content": match.group(1)}


def _title_description(match: re.Match) -> dict[str, Any]:
    return {"title": match.group(1), "description": match.group(2) or ""}


def _strategic_objective(match: re.Match) -> dict[str, Any]:
    params = _title_description(match)
    if match.group(3):
        params["timeframe"] = normalize_timeframe(match.group(3))
    return params


def _name_description(match: re.Match) -> dict[str, Any]:
    return {"name": match.group(1), "description": match.group(2) or ""}


def _title(match: re.Match) -> dict[str, Any]:
    return {"title": match.group(1)}


def _swot(match: re.Match) -> dict[str, Any]:
    return {"category": match.group(1).lower(), "content": match.group(2)}


def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


DEFAULT_ACTION_PATTERNS: tuple[ActionPattern, ...] = (
    ActionPattern(
        ActionKind.UPDATE_VISION,
        _compile(r"(?:update|change|modify|set)\s+(?:the\s+)?vision\s+to:?\s*" + _QUOTED),
        _content,
    ),
    ActionPattern(
        ActionKind.UPDATE_MISSION,
        _compile(r"(?:update|change|modify|set)\s+(?:the\s+)?mission\s+to:?\s*" + _QUOTED),
        _content,
    ),
    ActionPattern(
        ActionKind.ADD_CORE_VALUE,
        _compile(r"add\s+(?:a\s+)?(?:new\s+)?core\s+value:?\s*" + _QUOTED + _OPTIONAL_DESCRIPTION),
        _title_description,
    ),
    ActionPattern(
        ActionKind.ADD_STRATEGIC_OBJECTIVE,
        _compile(
            r"add\s+(?:a\s+)?(?:new\s+)?strategic\s+objective:?\s*"
            + _QUOTED
            + _OPTIONAL_DESCRIPTION
            + _OPTIONAL_TIMEFRAME
        ),
        _strategic_objective,
    ),
    ActionPattern(
        ActionKind.ADD_STRATEGIC_PILLAR,
        _compile(r"add\s+(?:a\s+)?(?:new\s+)?strategic\s+pillar:?\s*" + _QUOTED + _OPTIONAL_DESCRIPTION),
        _name_description,
    ),
    ActionPattern(
        ActionKind.CREATE_OBJECTIVE,
        _compile(r"(?:create|add|new)\s+(?:an?\s+)?(?:new\s+)?(?:quarterly\s+)?objective:?\s*" + _QUOTED),
        _title,
    ),
    ActionPattern(
        ActionKind.ADD_SWOT_ITEM,
        _compile(r"add\s+to\s+(strength|weakness|opportunity|threat):?\s*" + _QUOTED),
        _swot,
    ),
)


class IntentParser:
    """Scans text against an ordered pattern table; first match wins."""

    def __init__(
        self,
        patterns: Sequence[ActionPattern] = DEFAULT_ACTION_PATTERNS,
        classifier: SafetyClassifier | None = None,
    ):
        self.patterns = tuple(patterns)
        self.classifier = classifier

    def parse(self, text: str | None) -> ActionIntent | None:
        if not text:
            return None

        for pattern in self.patterns:
            match = pattern.regex.search(text)
            if match:
                tier = self.classifier.classify(pattern.action) if self.classifier else None
                return ActionIntent(
                    action=pattern.action,
                    params=pattern.extract(match),
                    safety_tier=tier,
                )

        return None
