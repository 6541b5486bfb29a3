"""指令执行器。"""

import random

import pytest
from conftest import ScriptedRandom, make_character

from tracen.engine.commands import (
    AttributeChange,
    GroupRelationChange,
    Jump,
    ListForEach,
    MutualRelationChange,
    RelationChange,
    SetVariable,
    SkipReason,
    UnknownCommand,
    apply_relationship_modifier,
    execute_command,
    parse_statement,
    split_statements,
)
from tracen.engine.context import WorldContext
from tracen.models.character import CharacterRef, RuntimeTag


@pytest.fixture
def subject(population):
    return population[1]


def run(command, subject, ctx, scope=None):
    return execute_command(command, subject, ctx, scope)


# ── 解析 ──


def test_parse_plain_statement():
    statement = parse_statement("属性变更 体力 -10")
    assert statement.target_key is None
    assert statement.guard is None
    assert statement.op == AttributeChange(attribute="体力", value="-10")


def test_parse_target_prefix_and_guard():
    statement = parse_statement("训练员.属性变更 财富 随机(1, 3) 若 属性.心情 > 30")
    assert statement.target_key == "训练员"
    assert statement.guard == "属性.心情 > 30"
    assert statement.op == AttributeChange(attribute="财富", value="随机(1, 3)")


def test_parse_variable_target_prefix():
    statement = parse_statement("变量.伙伴.获得标签 强运")
    assert statement.target_key == "变量.伙伴"


def test_parse_alias():
    assert parse_statement("训练员属性变更 财富 -1").target_key == "训练员"


def test_parse_function_forms():
    op = parse_statement("关系变更(友情, 摩耶重炮, 训练员, 随机(5, 15))").op
    assert op == RelationChange(relation="友情", subject_key="摩耶重炮", object_key="训练员", value="随机(5, 15)")
    assert isinstance(parse_statement("双向关系变更(爱情, A/B, 5)").op, MutualRelationChange)
    group = parse_statement("双向关系变更(友情, 变量.名单, 5)").op
    assert group == GroupRelationChange(relation="友情", list_key="名单", value="5")
    for_each = parse_statement("列表执行(名单, 属性变更 体力 -1; 属性变更 精力 -1)").op
    assert for_each == ListForEach(list_key="名单", command="属性变更 体力 -1; 属性变更 精力 -1")


def test_parse_set_variable():
    assert parse_statement("设置变量 角色 伙伴 = 获取随机队友()").op == SetVariable(
        var_type="角色", key="伙伴", expr="获取随机队友()"
    )
    assert parse_statement("设置变量 次数 = 3").op == SetVariable(key="次数", expr="3")


def test_parse_jumps():
    assert parse_statement("跳转 B").op == Jump(event_id="B")
    assert parse_statement("继续 B").op == Jump(event_id="B", pause=True)


def test_parse_unknown_and_malformed():
    assert parse_statement("跳舞 一整晚").op == UnknownCommand(verb="跳舞")
    assert parse_statement("属性变更 体力").op.reason == SkipReason.MALFORMED
    assert parse_statement("同房(A)").op.reason == SkipReason.MALFORMED


def test_parse_is_cached():
    assert parse_statement("获得标签 强运 1") is parse_statement("获得标签 强运 1")


def test_split_statements_respects_parentheses():
    parts = split_statements("属性变更 体力 1; 列表执行(L, 属性变更 体力 1; 属性变更 精力 1);; ")
    assert parts == ["属性变更 体力 1", "列表执行(L, 属性变更 体力 1; 属性变更 精力 1)"]


# ── 属性 ──


def test_general_attributes_clamped(subject, ctx):
    run("属性变更 体力 50", subject, ctx)
    assert subject.general["体力"] == 100
    run("属性变更 心情 -80", subject, ctx)
    assert subject.general["心情"] == 0
    run("属性变更 财富 200", subject, ctx)
    assert subject.general["财富"] == 100


def test_race_attributes_floor_only(subject, ctx):
    run("属性变更 速度 150", subject, ctx)
    assert subject.race["速度"] == 150
    run("属性变更 速度 -500", subject, ctx)
    assert subject.race["速度"] == 0


def test_all_race_attributes(subject, ctx):
    run("属性变更 全属性 3", subject, ctx)
    assert set(subject.race.values()) == {3}
    assert subject.general["体力"] == 100


def test_random_race_attribute(subject, ctx):
    run("属性变更 随机 4", subject, ctx)
    assert sum(subject.race.values()) == 4
    assert sorted(subject.race.values()) == [0, 0, 0, 0, 4]


def test_unknown_attribute_is_noop(subject, ctx):
    result = run("属性变更 运气 5", subject, ctx)
    assert result.outcomes[0].reason == SkipReason.NOT_APPLICABLE


def test_target_prefix(subject, ctx, population):
    run("训练员.属性变更 财富 -5; 无声铃鹿.属性变更 学识 5", subject, ctx)
    assert population[0].general["财富"] == 15
    assert population[2].general["学识"] == 25
    assert subject.general["财富"] == 20


def test_unresolved_target_is_noop(subject, ctx):
    result = run("不存在的人.属性变更 体力 -5", subject, ctx)
    assert result.outcomes[0].reason == SkipReason.TARGET_UNRESOLVED
    assert subject.general["体力"] == 100


def test_guard(subject, ctx):
    result = run("属性变更 心情 10 若 属性.体力 < 50; 属性变更 学识 5 若 属性.体力 >= 50", subject, ctx)
    assert [o.applied for o in result.outcomes] == [False, True]
    assert result.outcomes[0].reason == SkipReason.GUARD_FAILED
    assert subject.general["心情"] == 50
    assert subject.general["学识"] == 25


def test_unknown_verb_is_ignored(subject, ctx):
    result = run("跳舞 一整晚; 属性变更 学识 1", subject, ctx)
    assert result.outcomes[0].reason == SkipReason.UNKNOWN_VERB
    assert result.outcomes[1].applied
    assert subject.general["学识"] == 21


# ── 关系 ──


def test_relationship_modifier(population):
    target = make_character("x", "对象", 魅力=10)
    assert apply_relationship_modifier(20, target, "爱情") == 20
    target.tags.append(RuntimeTag(template_id="婚戒"))
    assert apply_relationship_modifier(20, target, "爱情") == 4
    assert apply_relationship_modifier(20, target, "友情") == 20
    assert apply_relationship_modifier(-20, target, "爱情") == -20
    target.general["魅力"] = 0
    assert apply_relationship_modifier(20, target, "友情") == 0
    target.general["魅力"] = 25
    assert apply_relationship_modifier(3, target, "友情") == 7


def test_relation_change_function_form(subject, ctx, population):
    trainer = population[0]
    trainer.general["魅力"] = 10
    run("关系变更(爱情, 特别周, 训练员, 20)", subject, ctx)
    assert subject.relation("p1").romance == 20
    assert trainer.relation("c1").romance == 0

    trainer.tags.append(RuntimeTag(template_id="婚戒"))
    run("关系变更(爱情, 特别周, 训练员, 20)", subject, ctx)
    assert subject.relation("p1").romance == 24


def test_relation_change_shorthand_targets_player(subject, ctx, population):
    population[0].general["魅力"] = 10
    run("关系变更 友情 15; 无声铃鹿.关系变更 友情 5", subject, ctx)
    assert subject.relation("p1").friendship == 15
    assert population[2].relation("p1").friendship == 5


def test_relation_clamped(subject, ctx, population):
    population[0].general["魅力"] = 10
    run("关系变更 友情 500", subject, ctx)
    assert subject.relation("p1").friendship == 100
    run("关系变更 友情 -500", subject, ctx)
    assert subject.relation("p1").friendship == 0


def test_mutual_relation_change(subject, ctx, population):
    first, second = population[1], population[2]
    first.general["魅力"] = 10
    second.general["魅力"] = 20
    run("双向关系变更(友情, 特别周/无声铃鹿, 10)", subject, ctx)
    assert first.relation("c2").friendship == 20
    assert second.relation("c1").friendship == 10


def test_group_relation_change(subject, ctx, population):
    for c in population:
        c.general["魅力"] = 10
    run("设置变量 列表 队员 = 获取角色(全员); 双向关系变更(友情, 变量.队员, 5)", subject, ctx)
    for a in population:
        for b in population:
            if a is not b:
                assert a.relation(b.instance_id).friendship == 5


# ── 标签 ──


def test_grant_tag(subject, ctx):
    ctx.turn = 7
    run("获得标签 强运", subject, ctx)
    tag = subject.get_tag("强运")
    assert tag.layers == 1 and tag.added_turn == 7
    run("获得标签 强运 3", subject, ctx)
    assert subject.tag_layers("强运") == 3
    assert len(subject.tags) == 1


def test_grant_tag_with_zero_layers_removes(subject, ctx):
    run("获得标签 强运 2; 获得标签 强运 0", subject, ctx)
    assert not subject.has_tag("强运")
    result = run("获得标签 懒惰 0", subject, ctx)
    assert not subject.has_tag("懒惰")
    assert result.outcomes[0].reason == SkipReason.NOT_APPLICABLE


def test_adjust_tag(subject, ctx):
    run("标签变更 疲劳 2", subject, ctx)
    assert subject.tag_layers("疲劳") == 2
    run("标签变更 疲劳 3", subject, ctx)
    assert subject.tag_layers("疲劳") == 5
    run("标签变更 疲劳 -5", subject, ctx)
    assert not subject.has_tag("疲劳")

    result = run("标签变更 疲劳 -1", subject, ctx)
    assert not subject.has_tag("疲劳")
    assert result.outcomes[0].reason == SkipReason.NOT_APPLICABLE


def test_tag_layers_never_below_one(subject, ctx):
    run("标签变更 疲劳 1; 标签变更 疲劳 -3", subject, ctx)
    assert all(t.layers >= 1 for t in subject.tags)
    assert not subject.has_tag("疲劳")


def test_remove_tag(subject, ctx):
    subject.tags.append(RuntimeTag(template_id="懒惰", layers=4))
    run("移除标签 懒惰", subject, ctx)
    assert not subject.has_tag("懒惰")


# ── 变量 ──


def test_scope_is_copied(subject, ctx):
    scope = {"次数": 1}
    result = run("变量计算 次数 + 2", subject, ctx, scope)
    assert scope == {"次数": 1}
    assert result.scope["次数"] == 3


def test_set_variable_literals(subject, ctx):
    result = run(
        "设置变量 次数 = 3; 设置变量 数字 奖励 = 属性.学识; 设置变量 地点 = \"河边\"; 设置变量 骰子 = 随机(6, 6)",
        subject,
        ctx,
    )
    assert result.scope == {"次数": 3, "奖励": 20, "地点": "河边", "骰子": 6}


def test_set_variable_character_reference(subject, ctx):
    result = run("设置变量 角色 对手 = 东海帝王; 设置变量 自己 = 当前角色", subject, ctx)
    assert result.scope["对手"] == CharacterRef(instance_id="npc1", name="东海帝王")
    assert result.scope["自己"].instance_id == "c1"


def test_random_teammate_excludes_self(subject, ctx):
    for _ in range(20):
        result = run("设置变量 伙伴 = 获取随机队友()", subject, ctx)
        assert result.scope["伙伴"].instance_id == "c2"


def test_random_anyone_excludes_player_and_self(subject, ctx):
    seen = {run("设置变量 路人 = 获取随机全员角色()", subject, ctx).scope["路人"].instance_id for _ in range(50)}
    assert seen == {"c2", "npc1"}


def test_character_lists(subject, ctx):
    result = run("设置变量 列表 外人 = 获取角色(非队友); 设置变量 列表 全员 = 获取角色(全员)", subject, ctx)
    assert [r.instance_id for r in result.scope["外人"]] == ["npc1"]
    assert [r.instance_id for r in result.scope["全员"]] == ["p1", "c1", "c2", "npc1"]


def test_pick_from_list(subject, ctx):
    result = run("设置变量 列表 外人 = 获取角色(非队友); 设置变量 角色 某人 = 列表随机取值(外人)", subject, ctx)
    assert result.scope["某人"].instance_id == "npc1"


def test_variable_arithmetic(subject, ctx):
    result = run("设置变量 次数 = 5; 变量计算 次数 - 2; 变量计算 次数 + 随机(1, 1)", subject, ctx)
    assert result.scope["次数"] == 4
    result = run("设置变量 名字 = 阿强; 变量计算 名字 + 1", subject, ctx)
    assert result.scope["名字"] == "阿强"
    assert result.outcomes[1].reason == SkipReason.NOT_APPLICABLE


def test_variable_target_prefix(subject, ctx, population):
    run("设置变量 伙伴 = 获取随机队友(); 变量.伙伴.获得标签 强运; 伙伴.属性变更 学识 1", subject, ctx)
    assert population[2].has_tag("强运")
    assert population[2].general["学识"] == 21


# ── 跳转 ──


def test_jump(subject, ctx):
    result = run("跳转 B", subject, ctx)
    assert result.next_event_id == "B"
    assert result.is_chain


def test_continue_pauses(subject, ctx):
    result = run("继续 B", subject, ctx)
    assert result.next_event_id == "B"
    assert result.pause
    assert not result.is_chain


def test_chance_jump(subject, population, config):
    ctx = WorldContext(population, config=config, rng=ScriptedRandom([0.3, 0.3, 0.3]))
    assert run("概率跳转 50 B", subject, ctx).next_event_id == "B"
    assert run("概率跳转 20 B", subject, ctx).next_event_id is None
    assert run("概率跳转 20 B C", subject, ctx).next_event_id == "C"


def test_no_jump(subject, ctx):
    result = run("属性变更 体力 -1", subject, ctx)
    assert result.next_event_id is None
    assert not result.is_chain


# ── 列表 ──


def test_list_operations(subject, ctx, population):
    result = run(
        "设置变量 列表 名单 = 获取角色(全员);"
        "列表筛选(名单, 在队伍 == true);"
        "列表排除(名单, 当前角色);"
        "列表添加(名单, 东海帝王);"
        "列表执行(名单, 属性变更 心情 10; 获得标签 合宿)",
        subject,
        ctx,
    )
    assert [r.instance_id for r in result.scope["名单"]] == ["c2", "npc1"]
    assert population[2].general["心情"] == 60
    assert population[3].has_tag("合宿")
    assert subject.general["心情"] == 50


def test_list_truncate(subject, ctx):
    result = run("设置变量 列表 名单 = 获取角色(全员); 列表截取(名单, 2)", subject, ctx)
    assert [r.instance_id for r in result.scope["名单"]] == ["p1", "c1"]


def test_list_ops_on_missing_list(subject, ctx):
    result = run("列表截取(不存在, 2); 列表执行(不存在, 属性变更 体力 1)", subject, ctx)
    assert all(o.reason == SkipReason.NOT_APPLICABLE for o in result.outcomes)


# ── 其他 ──


def test_join_team(subject, ctx, population):
    ctx.turn = 9
    run("让角色入队(东海帝王)", subject, ctx)
    assert population[3].in_team
    assert population[3].recruited_at == 9


def test_pairing(population, config):
    trainer, uma = population[0], population[1]
    ctx = WorldContext(population, turn=3, config=config, rng=ScriptedRandom([0.05]))
    run("同房(训练员, 当前角色)", uma, ctx)
    assert uma.tag_layers("怀孕") == 20
    assert not trainer.has_tag("怀孕")


def test_pairing_misses(population, config):
    uma = population[1]
    ctx = WorldContext(population, config=config, rng=ScriptedRandom([0.5]))
    result = run("同房(训练员, 当前角色)", uma, ctx)
    assert result.outcomes[0].applied
    assert not uma.has_tag("怀孕")


def test_pairing_same_gender(population, config):
    ctx = WorldContext(population, config=config, rng=random.Random(0))
    result = run("同房(特别周, 无声铃鹿)", population[1], ctx)
    assert result.outcomes[0].reason == SkipReason.NOT_APPLICABLE


def test_invariants_after_random_sequence(population, config):
    """任意属性/关系/标签指令序列之后，数值都保持在合法范围内。"""
    rng = random.Random(42)
    ctx = WorldContext(population, config=config, rng=rng)
    verbs = [
        "属性变更 {attr} {n}",
        "关系变更 友情 {n}",
        "双向关系变更(爱情, 特别周/无声铃鹿, {n})",
        "标签变更 疲劳 {n}",
        "属性变更 随机 {n}",
    ]
    attrs = ["体力", "精力", "心情", "爱欲", "体质", "学识", "魅力", "财富", "速度"]
    for _ in range(300):
        command = rng.choice(verbs).format(attr=rng.choice(attrs), n=rng.randint(-60, 60))
        execute_command(command, rng.choice(population), ctx)

    for c in population:
        assert all(0 <= v <= 100 for v in c.general.values())
        assert all(v >= 0 for v in c.race.values())
        assert all(t.layers >= 1 for t in c.tags)
        for rel in c.relations.values():
            assert 0 <= rel.friendship <= 100
            assert 0 <= rel.romance <= 100
