"""目标角色解析（条件、指令、文本共用）。"""

from __future__ import annotations

import re

from tracen.engine.context import Scope, WorldContext
from tracen.models.character import Character, CharacterRef

CURRENT_CHARACTER = "当前角色"
TRAINER = "训练员"
PLAYER = "玩家"
VARIABLE_PREFIX = "变量."

# 这些开头的路径本身就是访问器，不带目标前缀
_ACCESSOR_HEADS = frozenset({"属性", "关系", "变量", "标签组"})
_SELECTOR_RE = re.compile(r"^([^\s.()\"'<>=!{}]+)\.(.+)$", re.DOTALL)


def variable_key(key: str) -> str:
    """'变量.X' 与 'X' 都指向作用域中的 X。"""
    key = key.strip()
    return key[len(VARIABLE_PREFIX):] if key.startswith(VARIABLE_PREFIX) else key


def split_selector(path: str) -> tuple[str | None, str]:
    """拆出路径开头的目标前缀：'训练员.属性.魅力' -> ('训练员', '属性.魅力')。"""
    match = _SELECTOR_RE.match(path.strip())
    if not match or match.group(1) in _ACCESSOR_HEADS:
        return None, path.strip()
    return match.group(1), match.group(2).strip()


def character_from_value(value: object, ctx: WorldContext) -> Character | None:
    """把变量中的值解析为当前群体中的角色。

    CharacterRef 总是按实例 ID 在当前群体中重新查找，从不信任缓存的对象。
    """
    if isinstance(value, CharacterRef):
        return ctx.find(value.instance_id)
    if isinstance(value, Character):
        return ctx.find(value.instance_id)
    if isinstance(value, dict) and value.get("instance_id"):
        return ctx.find(value["instance_id"])
    if isinstance(value, str) and value:
        if value.startswith(ctx.config.instance_id_prefixes):
            found = ctx.find(value)
            if found:
                return found
        for character in ctx.characters:
            if character.name == value or character.template_id == value:
                return character
    return None


def resolve_target(
    key: str,
    subject: Character,
    ctx: WorldContext,
    scope: Scope | None = None,
) -> Character | None:
    """按优先级解析目标键。

    1. '当前角色' -> subject；'训练员' / '玩家' -> 玩家角色
    2. 模板 ID 或名称完全匹配
    3. 变量：字符串（实例 ID / 名称 / 模板 ID）或角色引用（实时查找）
    4. 兜底：把键本身当作实例 ID
    """
    key = (key or "").strip()
    if not key:
        return None
    if key == CURRENT_CHARACTER:
        return subject
    if key == TRAINER:
        return ctx.trainer()
    if key == PLAYER:
        return ctx.player()

    for character in ctx.characters:
        if character.template_id == key or character.name == key:
            return character

    if scope:
        var_key = variable_key(key)
        if scope.get(var_key):
            found = character_from_value(scope[var_key], ctx)
            if found:
                return found

    return ctx.find(key)
