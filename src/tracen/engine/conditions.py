"""条件判别器：把布尔表达式解析为 True / False。

语法（由松到紧）：`||` 拆分 → `&&` 拆分 → 括号剥离 → 叶子谓词。
空表达式恒为真；无法识别的子句恒为假（失败即关闭）。
"""

from __future__ import annotations

import logging
import re

from tracen.engine.calendar import get_turn_info
from tracen.engine.context import Scope, WorldContext
from tracen.engine.syntax import (
    COMPARE_OP,
    compare,
    split_top_level,
    strip_wrapping_parens,
)
from tracen.engine.targets import resolve_target, split_selector, variable_key
from tracen.engine.values import (
    TEAM_SIZE,
    numeric,
    relation_object_id,
    resolve_value,
    split_random_args,
)
from tracen.models.character import Character, CharacterRef

logger = logging.getLogger(__name__)

OUTER_VARIABLE = "__outer"

_CHOICE_RE = re.compile(rf"^已选序号\s*{COMPARE_OP}\s*(\d+)$")
_MONTH_RE = re.compile(rf"^当前月\s*{COMPARE_OP}\s*(\d+)$")
_YEAR_RE = re.compile(rf"^当前年\s*{COMPARE_OP}\s*(\d+)$")
_PERIOD_RE = re.compile(r'^当前旬\s*(==|!=)\s*"([^"]+)"$')
_TEAM_SIZE_RE = re.compile(rf"^{TEAM_SIZE}\s*{COMPARE_OP}\s*(.+)$")
_VAR_EXISTS_RE = re.compile(r"^变量存在\s+(\S+)$")
_VAR_COMPARE_RE = re.compile(rf"^变量\.([\w]+)\s*{COMPARE_OP}\s*(.+)$")
_EXISTS_PREFIX = "存在角色满足"
_RANDOM_COMPARE_RE = re.compile(rf"^(随机\(.*\))\s*{COMPARE_OP}\s*(.+)$")

_TAG_LAYERS_RE = re.compile(rf"^标签组\(\s*(.+?)\s*\)\.层数\s*{COMPARE_OP}\s*(.+)$")
_TAG_EXISTS_RE = re.compile(r'^标签组\s*存在\s*"([^"]+)"$')
_TAG_ABSENT_RE = re.compile(r'^标签组\s*不存在\s*"([^"]+)"$')
_ATTRIBUTE_RE = re.compile(rf"^属性\.([\w]+)\s*{COMPARE_OP}\s*(.+)$")
_TRIGGERED_RE = re.compile(rf"^已触发事件\(\s*(.+?)\s*\)\s*{COMPARE_OP}\s*(.+)$")
_RELATION_RE = re.compile(rf"^关系\.([\w]+)\.(友情|爱情)\s*{COMPARE_OP}\s*(.+)$")
_IN_TEAM_RE = re.compile(r"^在队伍\s*(==|!=)\s*(true|false)$")
_TEMPLATE_RE = re.compile(r'^模板ID\s*(==|!=)\s*"([^"]+)"$')
_GENDER_RE = re.compile(r'^性别\s*(==|!=)\s*"([^"]+)"$')


def _equals(op: str, matched: bool) -> bool:
    return matched if op == "==" else not matched


def evaluate_condition(
    expr: str | None,
    subject: Character,
    ctx: WorldContext,
    scope: Scope | None = None,
    choice_index: int | None = None,
) -> bool:
    """判别条件表达式。

    Args:
        expr: 条件表达式，如 '属性.体力 > 50 && 标签组 存在 "懒惰"'。
        subject: 判别主体（当前角色）。
        ctx: 世界上下文（角色群体、回合、随机源）。
        scope: 变量作用域。
        choice_index: 已选序号（从 1 开始），仅在分支判别时提供。
    """
    text = (expr or "").strip()
    if not text:
        return True

    or_parts = split_top_level(text, "||")
    if len(or_parts) > 1:
        return any(
            evaluate_condition(part, subject, ctx, scope, choice_index) for part in or_parts
        )

    for clause in split_top_level(text, "&&"):
        clause = clause.strip()
        if not clause:
            continue
        if not _evaluate_clause(clause, subject, ctx, scope, choice_index):
            return False
    return True


def _evaluate_clause(
    clause: str,
    subject: Character,
    ctx: WorldContext,
    scope: Scope | None,
    choice_index: int | None,
) -> bool:
    if clause == "true":
        return True
    if clause == "false":
        return False

    inner = strip_wrapping_parens(clause)
    if inner is not None:
        return evaluate_condition(inner, subject, ctx, scope, choice_index)

    def value(expr: str) -> int:
        return resolve_value(expr, subject, ctx, scope)

    # ── 上下文谓词（与角色无关）──
    if match := _CHOICE_RE.match(clause):
        return choice_index is not None and compare(choice_index, match.group(1), int(match.group(2)))
    if match := _MONTH_RE.match(clause):
        return compare(get_turn_info(ctx.turn).month, match.group(1), int(match.group(2)))
    if match := _YEAR_RE.match(clause):
        return compare(get_turn_info(ctx.turn).year, match.group(1), int(match.group(2)))
    if match := _PERIOD_RE.match(clause):
        return _equals(match.group(1), get_turn_info(ctx.turn).period == match.group(2))
    if match := _TEAM_SIZE_RE.match(clause):
        return compare(ctx.team_size(), match.group(1), value(match.group(2)))
    if match := _VAR_EXISTS_RE.match(clause):
        return (scope or {}).get(variable_key(match.group(1))) is not None
    if match := _VAR_COMPARE_RE.match(clause):
        current = numeric((scope or {}).get(match.group(1)))
        return compare(current, match.group(2), value(match.group(3)))
    if clause.startswith(_EXISTS_PREFIX):
        return _evaluate_exists(clause, subject, ctx, scope, choice_index)
    if match := _RANDOM_COMPARE_RE.match(clause):
        bounds = split_random_args(match.group(1))
        if bounds is not None:
            roll = ctx.randint(value(bounds[0]), value(bounds[1]))
            return compare(roll, match.group(2), value(match.group(3)))
        return False

    # ── 角色谓词（可带目标前缀）──
    target = subject
    selector, path = split_selector(clause)
    if selector is not None:
        resolved = resolve_target(selector, subject, ctx, scope)
        if resolved is None:
            logger.debug("条件目标无法解析: %s", clause)
            return False
        target = resolved

    if match := _TAG_LAYERS_RE.match(path):
        return compare(target.tag_layers(match.group(1)), match.group(2), value(match.group(3)))
    if match := _TAG_EXISTS_RE.match(path):
        return target.has_tag(match.group(1))
    if match := _TAG_ABSENT_RE.match(path):
        return not target.has_tag(match.group(1))
    if match := _ATTRIBUTE_RE.match(path):
        current = target.attribute(match.group(1))
        return compare(current or 0, match.group(2), value(match.group(3)))
    if match := _TRIGGERED_RE.match(path):
        count = target.triggered_events.get(match.group(1), 0)
        return compare(count, match.group(2), value(match.group(3)))
    if match := _RELATION_RE.match(path):
        object_id = relation_object_id(match.group(1), subject, ctx, scope)
        if object_id is None:
            return False
        current = target.relation(object_id).get(match.group(2))
        return compare(current, match.group(3), value(match.group(4)))
    if match := _IN_TEAM_RE.match(path):
        return _equals(match.group(1), target.in_team == (match.group(2) == "true"))
    if match := _TEMPLATE_RE.match(path):
        return _equals(match.group(1), target.template_id == match.group(2))
    if match := _GENDER_RE.match(path):
        return _equals(match.group(1), target.gender == match.group(2))

    logger.debug("无法识别的条件子句: %s", clause)
    return False


def _evaluate_exists(
    clause: str,
    subject: Character,
    ctx: WorldContext,
    scope: Scope | None,
    choice_index: int | None,
) -> bool:
    """存在角色满足(子条件)：子条件中可通过 __outer 引用外层主体。

    嵌套使用时内层会覆盖 __outer（单层注入）。
    """
    inner = strip_wrapping_parens(clause[len(_EXISTS_PREFIX):])
    if inner is None:
        logger.debug("存在量词格式错误: %s", clause)
        return False
    inner_scope: Scope = dict(scope or {})
    inner_scope[OUTER_VARIABLE] = CharacterRef.of(subject)
    return any(
        evaluate_condition(inner, candidate, ctx, inner_scope, choice_index)
        for candidate in list(ctx.characters)
    )
