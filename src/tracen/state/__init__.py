"""开局与回合推进。"""

from tracen.state.character_state import (
    advance_turn,
    available_start_tags,
    create_runtime_character,
    new_game,
    obscured_date_for,
)

__all__ = [
    "advance_turn",
    "available_start_tags",
    "create_runtime_character",
    "new_game",
    "obscured_date_for",
]
