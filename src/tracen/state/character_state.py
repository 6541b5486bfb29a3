"""运行时角色创建与回合推进。

编排器只处理单个角色的一次回合行动；开局、推进回合这些
由外部驱动方（CLI）调用的步骤放在这里。
"""

from __future__ import annotations

import logging
import random
from typing import Iterable

from tracen.config.settings import EngineConfig
from tracen.engine.calendar import format_turn_date
from tracen.models.character import (
    Character,
    CharacterTemplate,
    Gender,
    RuntimeTag,
    TagTemplate,
    clamp,
)
from tracen.models.state import GameState, LogEntry

logger = logging.getLogger(__name__)

SYSTEM_NAME = "系统"

# 开局标签对属性的一次性修正：标签 ID -> (属性, 增量)
_START_TAG_BONUSES: dict[str, tuple[str, int]] = {
    "贫穷": ("财富", -5),
    "富豪": ("财富", 5),
    "魅力十足": ("魅力", 5),
    "路人脸": ("魅力", -5),
}


def create_runtime_character(
    template: CharacterTemplate,
    instance_id: str,
    in_team: bool = False,
    name: str | None = None,
    gender: Gender | None = None,
    extra_tags: Iterable[str] = (),
) -> Character:
    """由模板创建运行时角色，并应用开局标签的属性修正。"""
    tag_ids = list(template.initial_tags)
    for tag_id in extra_tags:
        if tag_id not in tag_ids:
            tag_ids.append(tag_id)

    character = Character(
        instance_id=instance_id,
        template_id=template.id,
        name=name or template.name,
        gender=gender or template.gender,
        general=dict(template.general),
        race=dict(template.race),
        aptitudes=dict(template.aptitudes) if template.aptitudes else None,
        tags=[RuntimeTag(template_id=t, added_turn=0, layers=1) for t in tag_ids],
        calling_rules=[rule.model_copy() for rule in template.calling_rules],
        in_team=in_team,
    )

    for tag_id, (attribute, delta) in _START_TAG_BONUSES.items():
        if character.has_tag(tag_id):
            character.general[attribute] = clamp(character.general.get(attribute, 0) + delta)

    return character


def available_start_tags(tags: Iterable[TagTemplate]) -> list[TagTemplate]:
    """玩家开局可选的标签：人类可用且开局可选。"""
    return [t for t in tags if t.human_allowed and t.selectable_at_start]


def new_game(
    templates: dict[str, CharacterTemplate],
    player_name: str,
    gender: Gender = "男",
    start_tags: Iterable[str] = (),
    companion_id: str | None = None,
    roster: Iterable[str] = (),
    config: EngineConfig | None = None,
    rng: random.Random | None = None,
) -> GameState:
    """开局：创建训练员（玩家）与一名担当马娘。

    Args:
        templates: 角色模板（模板 ID -> 模板），必须包含训练员模板。
        player_name: 玩家名称。
        gender: 玩家性别。
        start_tags: 玩家选择的开局标签。
        companion_id: 担当马娘的模板 ID；为空时从非训练员模板中随机选择。
        roster: 其他登场角色的模板 ID，以 npc1、npc2… 创建为非队员。
    """
    config = config or EngineConfig()
    rng = rng or random.Random(config.seed)

    trainer_template = templates.get(config.trainer_template_id)
    if trainer_template is None:
        raise KeyError(f"缺少训练员模板: {config.trainer_template_id}")

    characters = [
        create_runtime_character(
            trainer_template,
            config.player_id,
            name=player_name,
            gender=gender,
            extra_tags=start_tags,
        )
    ]

    candidates = [t for t in templates.values() if t.id != trainer_template.id and not t.is_trainer]
    companion = templates.get(companion_id) if companion_id else None
    if companion is None and candidates:
        companion = rng.choice(candidates)
    if companion is not None:
        characters.append(create_runtime_character(companion, "c1", in_team=True))

    used = {c.template_id for c in characters}
    npc_count = 0
    for template_id in roster:
        template = templates.get(template_id)
        if template is None:
            logger.warning("未知的角色模板: %s", template_id)
            continue
        if template_id in used:
            continue
        used.add(template_id)
        npc_count += 1
        characters.append(create_runtime_character(template, f"npc{npc_count}"))

    logger.info("新游戏：%s，担当 %s", player_name, companion.name if companion else "无")
    return GameState(
        phase="playing",
        current_turn=0,
        max_turns=config.max_turns,
        characters=characters,
        logs=[
            LogEntry(
                turn=0,
                character_name=SYSTEM_NAME,
                text=f"欢迎来到特雷森学园，{player_name}！",
                type="system",
            )
        ],
    )


def obscured_date_for(state: GameState, config: EngineConfig | None = None) -> bool:
    """玩家处于监禁状态时日期不可见。"""
    config = config or EngineConfig()
    player = state.find_character(config.player_id)
    return player is not None and player.has_tag(config.confinement_tag)


def advance_turn(state: GameState, config: EngineConfig | None = None) -> GameState:
    """进入下一回合并写入日期标题；超过最大回合时游戏结束。

    游戏已结束或仍有待选事件时原样返回。
    """
    if state.phase == "gameover" or state.pending:
        return state

    next_turn = state.current_turn + 1
    if next_turn > state.max_turns:
        return state.model_copy(update={"phase": "gameover"}, deep=True)

    new_state = state.model_copy(deep=True)
    new_state.current_turn = next_turn
    label = format_turn_date(next_turn, state.max_turns, obscured=obscured_date_for(state, config))
    new_state.logs.append(
        LogEntry(turn=next_turn, character_name=SYSTEM_NAME, text=f"=== {label} ===", type="system")
    )
    return new_state
