"""数值解析器：把脚本中的标量表达式解析为整数。

支持（按优先级）：
- 变量.NAME            作用域变量，非数字或不存在时为 0
- 队伍人数              在队伍中的角色数量
- 随机(A, B)/随机(A~B)  闭区间均匀随机，上下界本身可以是表达式；每次调用都重新抽取
- [目标.]属性.NAME      通用属性优先，其次竞赛属性
- [目标.]标签组(ID).层数 标签不存在为 0
- [主体.]关系.对象.类型  关系不存在为 0
- NAME                  裸变量名（旧写法）
- 整数字面量            解析失败为 0
"""

from __future__ import annotations

import logging
import re

from tracen.engine.context import Scope, WorldContext
from tracen.engine.syntax import parse_int, split_call, split_top_level
from tracen.engine.targets import PLAYER, resolve_target, split_selector, variable_key
from tracen.models.character import Character, CharacterRef

logger = logging.getLogger(__name__)

RANDOM_FUNC = "随机"
TEAM_SIZE = "队伍人数"

_ATTRIBUTE_RE = re.compile(r"^属性\.([\w一-龥]+)$")
_TAG_LAYERS_RE = re.compile(r"^标签组\(\s*([^)]+?)\s*\)\.层数$")
_RELATION_RE = re.compile(r"^关系\.([\w一-龥]+)\.(友情|爱情)$")


def numeric(value: object) -> int:
    """把作用域中的值转换为整数；角色引用、列表等非数值为 0。"""
    if isinstance(value, (CharacterRef, Character, list, dict)) or value is None:
        return 0
    return parse_int(value)  # type: ignore[arg-type]


def split_random_args(expr: str) -> tuple[str, str] | None:
    """解析 `随机(A, B)` 或 `随机(A~B)`，返回两个边界表达式。"""
    args = split_call(expr, RANDOM_FUNC)
    if args is None:
        return None
    if len(args) == 1:
        args = [a.strip() for a in split_top_level(args[0], "~")]
    if len(args) != 2 or not args[0] or not args[1]:
        return None
    return args[0], args[1]


def relation_object_id(
    key: str, subject: Character, ctx: WorldContext, scope: Scope | None
) -> str | None:
    """关系访问器中的对象：'玩家' 固定为玩家实例 ID，其余按目标解析。"""
    if key == PLAYER:
        return ctx.player_id
    target = resolve_target(key, subject, ctx, scope)
    return target.instance_id if target else None


def resolve_accessor(
    path: str, subject: Character, ctx: WorldContext, scope: Scope | None
) -> int | None:
    """解析属性/标签层数/关系访问器；不是访问器返回 None，目标缺失返回 0。"""
    selector, rest = split_selector(path)
    if selector is not None:
        if not (
            _ATTRIBUTE_RE.match(rest) or _TAG_LAYERS_RE.match(rest) or _RELATION_RE.match(rest)
        ):
            return None
        resolved = resolve_target(selector, subject, ctx, scope)
        if resolved is None:
            logger.debug("数值访问器目标无法解析: %s", path)
            return 0
        subject = resolved

    if match := _ATTRIBUTE_RE.match(rest):
        value = subject.attribute(match.group(1))
        return value if value is not None else 0
    if match := _TAG_LAYERS_RE.match(rest):
        return subject.tag_layers(match.group(1))
    if match := _RELATION_RE.match(rest):
        object_id = relation_object_id(match.group(1), subject, ctx, scope)
        if object_id is None:
            return 0
        return subject.relation(object_id).get(match.group(2))
    return None


def resolve_value(
    expr: str | int | None,
    subject: Character,
    ctx: WorldContext,
    scope: Scope | None = None,
) -> int:
    """解析标量表达式为整数。无法识别时返回 0，不抛异常。"""
    if isinstance(expr, int):
        return expr
    text = str(expr or "").strip()
    if not text:
        return 0

    if text.startswith("变量."):
        return numeric((scope or {}).get(variable_key(text)))

    if text == TEAM_SIZE:
        return ctx.team_size()

    if text.startswith(RANDOM_FUNC + "("):
        bounds = split_random_args(text)
        if bounds is not None:
            low = resolve_value(bounds[0], subject, ctx, scope)
            high = resolve_value(bounds[1], subject, ctx, scope)
            return ctx.randint(low, high)

    accessor = resolve_accessor(text, subject, ctx, scope)
    if accessor is not None:
        return accessor

    if scope and text in scope:
        value = scope[text]
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(value)
        if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
            return int(value)

    return parse_int(text)
