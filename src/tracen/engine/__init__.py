"""事件脚本解释器与编排器。"""

from tracen.engine.calendar import format_turn_date, get_turn_info
from tracen.engine.commands import (
    ExecutionResult,
    SkipReason,
    StatementOutcome,
    apply_relationship_modifier,
    execute_command,
    parse_statement,
)
from tracen.engine.conditions import evaluate_condition
from tracen.engine.context import WorldContext
from tracen.engine.diff import generate_state_diff_log
from tracen.engine.errors import ChainDepthExceeded, ContentLoadError, TracenError
from tracen.engine.orchestrator import EventOrchestrator
from tracen.engine.targets import resolve_target
from tracen.engine.text import render_text
from tracen.engine.values import resolve_value

__all__ = [
    "ChainDepthExceeded",
    "ContentLoadError",
    "EventOrchestrator",
    "ExecutionResult",
    "SkipReason",
    "StatementOutcome",
    "TracenError",
    "WorldContext",
    "apply_relationship_modifier",
    "evaluate_condition",
    "execute_command",
    "format_turn_date",
    "generate_state_diff_log",
    "get_turn_info",
    "parse_statement",
    "render_text",
    "resolve_target",
    "resolve_value",
]
