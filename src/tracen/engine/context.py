"""解释器运行上下文。

条件判别、数值解析、指令执行与文本解析都显式接收一个 WorldContext，
其中持有本次编排调用链内可变的角色群体、当前回合、随机源与配置。
"""

from __future__ import annotations

import random
from typing import Any

from tracen.config.settings import EngineConfig
from tracen.models.character import Character

# 变量作用域：变量名 -> 数字 / 字符串 / CharacterRef / list[CharacterRef]
Scope = dict[str, Any]


class WorldContext:
    """一次编排调用链的可变世界视图。"""

    def __init__(
        self,
        characters: list[Character],
        turn: int = 0,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.characters = characters
        self.turn = turn
        self.config = config or EngineConfig()
        self.rng = rng or random.Random(self.config.seed)

    @property
    def player_id(self) -> str:
        return self.config.player_id

    def find(self, instance_id: str | None) -> Character | None:
        if not instance_id:
            return None
        for character in self.characters:
            if character.instance_id == instance_id:
                return character
        return None

    def player(self) -> Character | None:
        return self.find(self.config.player_id)

    def trainer(self) -> Character | None:
        """训练员：模板为训练员的角色，或玩家本人。"""
        for character in self.characters:
            if (
                character.template_id == self.config.trainer_template_id
                or character.instance_id == self.config.player_id
            ):
                return character
        return None

    def team_size(self) -> int:
        return sum(1 for c in self.characters if c.in_team)

    def randint(self, low: int, high: int) -> int:
        """闭区间均匀整数，下界大于上界时交换。"""
        if low > high:
            low, high = high, low
        return self.rng.randint(low, high)
