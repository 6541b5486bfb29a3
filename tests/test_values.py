"""数值解析器。"""

from conftest import make_character

from tracen.engine.values import resolve_value, split_random_args
from tracen.models.character import CharacterRef, RuntimeTag


def test_integer_literals(ctx, population):
    subject = population[1]
    assert resolve_value("12", subject, ctx) == 12
    assert resolve_value("-7", subject, ctx) == -7
    assert resolve_value("12abc", subject, ctx) == 12
    assert resolve_value("abc", subject, ctx) == 0
    assert resolve_value("", subject, ctx) == 0
    assert resolve_value(None, subject, ctx) == 0
    assert resolve_value(5, subject, ctx) == 5


def test_variables(ctx, population):
    subject = population[1]
    scope = {"次数": 3, "文本": "abc", "伙伴": CharacterRef.of(population[2]), "旧写法": "8"}
    assert resolve_value("变量.次数", subject, ctx, scope) == 3
    assert resolve_value("变量.文本", subject, ctx, scope) == 0
    assert resolve_value("变量.伙伴", subject, ctx, scope) == 0
    assert resolve_value("变量.不存在", subject, ctx, scope) == 0
    # 裸变量名（旧写法）
    assert resolve_value("次数", subject, ctx, scope) == 3
    assert resolve_value("旧写法", subject, ctx, scope) == 8


def test_team_size(ctx, population):
    assert resolve_value("队伍人数", population[0], ctx) == 2


def test_random_range(ctx, population):
    subject = population[1]
    assert resolve_value("随机(3, 3)", subject, ctx) == 3
    draws = {resolve_value("随机(1~3)", subject, ctx) for _ in range(200)}
    assert draws == {1, 2, 3}


def test_random_bounds_swapped(ctx, population):
    draws = [resolve_value("随机(5, 1)", population[1], ctx) for _ in range(100)]
    assert all(1 <= d <= 5 for d in draws)


def test_random_bounds_are_expressions(ctx, population):
    subject = population[1]
    subject.general["魅力"] = 40
    draws = [resolve_value("随机(属性.魅力, 属性.魅力)", subject, ctx) for _ in range(5)]
    assert draws == [40] * 5


def test_split_random_args():
    assert split_random_args("随机(1, 5)") == ("1", "5")
    assert split_random_args("随机(1~5)") == ("1", "5")
    assert split_random_args("随机(随机(1,2), 5)") == ("随机(1,2)", "5")
    assert split_random_args("随机(1)") is None
    assert split_random_args("概率(1, 2)") is None


def test_attribute_accessors(ctx, population):
    trainer, subject = population[0], population[1]
    subject.general["体力"] = 64
    subject.race["速度"] = 120
    trainer.general["魅力"] = 33
    assert resolve_value("属性.体力", subject, ctx) == 64
    assert resolve_value("属性.速度", subject, ctx) == 120
    assert resolve_value("属性.不存在", subject, ctx) == 0
    assert resolve_value("训练员.属性.魅力", subject, ctx) == 33
    assert resolve_value("无声铃鹿.属性.体力", subject, ctx) == 100


def test_tag_layer_accessor(ctx, population):
    subject = population[1]
    subject.tags.append(RuntimeTag(template_id="强运", layers=3))
    assert resolve_value("标签组(强运).层数", subject, ctx) == 3
    assert resolve_value("标签组(懒惰).层数", subject, ctx) == 0


def test_relation_accessor(ctx, population):
    subject = population[1]
    subject.adjust_relation("p1", "友情", 25)
    subject.adjust_relation("c2", "爱情", 12)
    assert resolve_value("关系.玩家.友情", subject, ctx) == 25
    assert resolve_value("关系.无声铃鹿.爱情", subject, ctx) == 12
    assert resolve_value("关系.东海帝王.友情", subject, ctx) == 0
    # 带主体前缀
    assert resolve_value("特别周.关系.玩家.友情", population[2], ctx) == 25


def test_unresolved_selector_is_zero(ctx, population):
    assert resolve_value("不存在的人.属性.体力", population[1], ctx) == 0


def test_character_ref_accessor_is_live(ctx, population):
    """变量中的角色引用按实例 ID 实时查找。"""
    partner = make_character("c9", "目白麦昆", 体力=10)
    population.append(partner)
    scope = {"伙伴": CharacterRef.of(partner)}
    partner.general["体力"] = 77
    assert resolve_value("伙伴.属性.体力", population[1], ctx, scope) == 77
