"""Pydantic 数据模型。"""

from tracen.models.character import (
    GENERAL_ATTRIBUTES,
    RACE_ATTRIBUTES,
    RELATION_KINDS,
    CallingRule,
    Character,
    CharacterRef,
    CharacterTemplate,
    Relationship,
    RuntimeTag,
    TagTemplate,
)
from tracen.models.event import EventBranch, EventCatalog, EventOption, GameEvent
from tracen.models.state import GameState, LogEntry, PendingChoice

__all__ = [
    "GENERAL_ATTRIBUTES",
    "RACE_ATTRIBUTES",
    "RELATION_KINDS",
    "CallingRule",
    "Character",
    "CharacterRef",
    "CharacterTemplate",
    "EventBranch",
    "EventCatalog",
    "EventOption",
    "GameEvent",
    "GameState",
    "LogEntry",
    "PendingChoice",
    "Relationship",
    "RuntimeTag",
    "TagTemplate",
]
