"""全局游戏状态、日志与待选事件。"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from tracen.models.character import Character
from tracen.models.event import GameEvent

LogType = Literal["event", "system", "choice"]
GamePhase = Literal["setup", "playing", "gameover"]


class LogEntry(BaseModel):
    """日志条目。"""

    turn: int = Field(description="回合")
    character_name: str = Field(description="角色名称，系统日志为 '系统'")
    text: str = Field(description="日志正文（已包含变化摘要）")
    type: LogType = Field(default="event", description="日志类型")
    is_important: bool = Field(default=False, description="是否为重要事件（有标题）")
    effects: list[str] = Field(default_factory=list, description="状态变化摘要行")


class PendingChoice(BaseModel):
    """等待玩家选择的事件。标题与正文已预先解析，界面无需再跑解析器。"""

    character_id: str = Field(description="所属角色实例 ID")
    event: GameEvent = Field(description="等待中的事件")
    scope: dict[str, Any] = Field(default_factory=dict, description="变量作用域快照")
    parsed_title: str = Field(default="", description="已解析的标题")
    parsed_text: str = Field(default="", description="已解析的正文")
    is_continuation: bool = Field(
        default=False, description="是否为 '继续' 指令产生的暂停（无选项，确认后自动结算）"
    )


class GameState(BaseModel):
    """全局游戏状态。编排器的每一步都返回新的快照。"""

    phase: GamePhase = Field(default="setup", description="游戏阶段")
    current_turn: int = Field(default=0, description="当前回合，0 为开局前")
    max_turns: int = Field(default=72, description="最大回合数")
    characters: list[Character] = Field(default_factory=list, description="角色群体")
    logs: list[LogEntry] = Field(default_factory=list, description="日志")
    pending: list[PendingChoice] = Field(default_factory=list, description="待选事件队列，队首优先")

    def find_character(self, instance_id: str) -> Character | None:
        for character in self.characters:
            if character.instance_id == instance_id:
                return character
        return None
