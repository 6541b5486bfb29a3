"""开局与回合推进。"""

import random

import pytest

from tracen.config.settings import EngineConfig
from tracen.models.character import CharacterTemplate, RuntimeTag, TagTemplate
from tracen.models.event import EventOption, GameEvent
from tracen.models.state import PendingChoice
from tracen.state.character_state import (
    advance_turn,
    available_start_tags,
    create_runtime_character,
    new_game,
    obscured_date_for,
)


@pytest.fixture
def templates():
    return {
        "训练员": CharacterTemplate(id="训练员", name="训练员", gender="男", is_trainer=True),
        "特别周": CharacterTemplate(id="特别周", name="特别周", initial_tags=["大胃王"], general={"魅力": 30}),
        "无声铃鹿": CharacterTemplate(id="无声铃鹿", name="无声铃鹿"),
    }


def test_create_runtime_character(templates):
    character = create_runtime_character(templates["特别周"], "c1", in_team=True)
    assert character.instance_id == "c1"
    assert character.name == "特别周"
    assert character.in_team
    assert character.general["魅力"] == 30
    assert [t.template_id for t in character.tags] == ["大胃王"]
    assert character.tags[0].layers == 1


def test_template_not_shared(templates):
    character = create_runtime_character(templates["特别周"], "c1")
    character.general["体力"] = 0
    assert templates["特别周"].general["体力"] == 100


def test_start_tag_bonuses_clamped(templates):
    rich = create_runtime_character(templates["训练员"], "p1", extra_tags=["富豪"])
    assert rich.general["财富"] == 25
    templates["训练员"].general["魅力"] = 2
    plain = create_runtime_character(templates["训练员"], "p1", extra_tags=["路人脸"])
    assert plain.general["魅力"] == 0


def test_available_start_tags():
    tags = [
        TagTemplate(id="富豪", selectable_at_start=True),
        TagTemplate(id="马娘专属", selectable_at_start=True, human_allowed=False),
        TagTemplate(id="隐藏"),
    ]
    assert [t.id for t in available_start_tags(tags)] == ["富豪"]


def test_new_game(templates):
    state = new_game(templates, "小林", start_tags=["富豪"], companion_id="无声铃鹿")

    assert state.phase == "playing"
    assert state.current_turn == 0
    player, companion = state.characters
    assert (player.instance_id, player.name, player.gender) == ("p1", "小林", "男")
    assert player.has_tag("富豪")
    assert (companion.instance_id, companion.template_id, companion.in_team) == ("c1", "无声铃鹿", True)
    assert state.logs[0].text == "欢迎来到特雷森学园，小林！"
    assert state.logs[0].type == "system"


def test_new_game_random_companion(templates):
    state = new_game(templates, "小林", rng=random.Random(3))
    assert state.characters[1].template_id in {"特别周", "无声铃鹿"}


def test_new_game_requires_trainer(templates):
    del templates["训练员"]
    with pytest.raises(KeyError):
        new_game(templates, "小林")


def test_advance_turn(templates):
    state = new_game(templates, "小林", companion_id="特别周")
    first = advance_turn(state)
    assert first.current_turn == 1
    assert first.logs[-1].text == "=== 第1年 1月 上旬 ==="
    assert state.current_turn == 0


def test_advance_turn_past_max(templates):
    state = new_game(templates, "小林", config=EngineConfig(max_turns=1), companion_id="特别周")
    state = advance_turn(state)
    assert state.phase == "playing"
    final = advance_turn(state)
    assert final.phase == "gameover"
    assert advance_turn(final) is final


def test_advance_turn_blocked_by_pending(templates):
    state = new_game(templates, "小林", companion_id="特别周")
    event = GameEvent(id="邀请", options=[EventOption(text="好")])
    state.pending.append(PendingChoice(character_id="c1", event=event))
    assert advance_turn(state) is state


def test_confinement_obscures_date(templates):
    state = new_game(templates, "小林", companion_id="特别周")
    assert not obscured_date_for(state)
    state.characters[0].tags.append(RuntimeTag(template_id="监禁"))
    assert obscured_date_for(state)
    assert advance_turn(state).logs[-1].text == "=== ?年?月?日 ==="


def test_new_game_roster(templates):
    state = new_game(templates, "小林", companion_id="特别周", roster=["无声铃鹿", "特别周", "不存在"])
    assert [c.instance_id for c in state.characters] == ["p1", "c1", "npc1"]
    assert not state.characters[2].in_team
