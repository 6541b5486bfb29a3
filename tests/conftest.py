"""测试共用的角色群体与随机源。"""

from __future__ import annotations

import random

import pytest

from tracen.config.settings import EngineConfig
from tracen.engine.context import WorldContext
from tracen.models.character import CallingRule, Character, RuntimeTag
from tracen.models.state import GameState


class ScriptedRandom(random.Random):
    """random() 依次返回预设值，用完后退回种子随机；choice / randint 仍走种子随机。"""

    def __init__(self, values=(), seed: int = 0):
        self._values = list(values)
        super().__init__(seed)

    def random(self) -> float:
        if self._values:
            return self._values.pop(0)
        return super().random()

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


def make_character(
    instance_id: str,
    name: str,
    template_id: str | None = None,
    gender: str = "女",
    in_team: bool = False,
    tags: tuple[str, ...] = (),
    calling_rules: list[CallingRule] | None = None,
    **general: int,
) -> Character:
    return Character(
        instance_id=instance_id,
        template_id=template_id or name,
        name=name,
        gender=gender,
        general=general,
        tags=[RuntimeTag(template_id=t) for t in tags],
        calling_rules=calling_rules or [],
        in_team=in_team,
    )


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def population() -> list[Character]:
    """训练员 + 两名队员 + 一名非队员。"""
    return [
        make_character("p1", "小林", template_id="训练员", gender="男"),
        make_character("c1", "特别周", in_team=True),
        make_character("c2", "无声铃鹿", in_team=True),
        make_character("npc1", "东海帝王"),
    ]


@pytest.fixture
def ctx(population, config) -> WorldContext:
    return WorldContext(population, turn=1, config=config, rng=random.Random(0))


@pytest.fixture
def state(population) -> GameState:
    return GameState(phase="playing", current_turn=1, characters=population)
