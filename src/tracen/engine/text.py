"""文本模板解析：替换正文/标题/选项文本中的 `{...}` 占位符。

占位符依次尝试：
- 三元：{条件 ? 文本A : 文本B}，选中的文本再递归解析
- 随机文字：{随机文字("A", "B", C)}
- 变量：{变量.KEY}，角色引用显示其当前名称
- 属性路径：{[目标.]名称|称呼|性别}
无法解析的占位符替换为空字符串；未闭合的 `{` 原样保留。
"""

from __future__ import annotations

import logging

from tracen.engine.conditions import evaluate_condition
from tracen.engine.context import Scope, WorldContext
from tracen.engine.syntax import QUOTES, split_top_level, strip_quotes
from tracen.engine.targets import VARIABLE_PREFIX, character_from_value, resolve_target, split_selector
from tracen.models.character import Character, CharacterRef

logger = logging.getLogger(__name__)

RANDOM_TEXT_FUNC = "随机文字"


def _find_block_end(text: str, start: int) -> int:
    """从 start 处的 '{' 开始找匹配的 '}'（引号内的括号不计），找不到返回 -1。"""
    depth = 0
    quote = ""
    for j in range(start, len(text)):
        ch = text[j]
        if quote:
            if ch == quote and text[j - 1] != "\\":
                quote = ""
            continue
        if ch in QUOTES:
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return j
    return -1


def _split_ternary(content: str) -> tuple[str, str, str] | None:
    """在顶层找第一个 '?' 及其后第一个 ':'。"""
    q_parts = split_top_level(content, "?")
    if len(q_parts) < 2:
        return None
    condition = q_parts[0]
    rest = "?".join(q_parts[1:])
    c_parts = split_top_level(rest, ":")
    if len(c_parts) < 2:
        return None
    return condition, c_parts[0], ":".join(c_parts[1:])


def _variable_text(value: object, ctx: WorldContext) -> str:
    if value is None:
        return ""
    if isinstance(value, (CharacterRef, Character)):
        live = character_from_value(value, ctx)
        return live.name if live else value.name
    if isinstance(value, list):
        names = [_variable_text(item, ctx) for item in value]
        return "、".join(n for n in names if n)
    return str(value)


def _calling(subject: Character, ctx: WorldContext, scope: Scope | None) -> str:
    """第一条成立的称呼规则；都不成立时用默认称呼。"""
    for rule in subject.calling_rules:
        if not rule.condition or evaluate_condition(rule.condition, subject, ctx, scope):
            return rule.calling
    return ctx.config.default_calling


def _render_block(content: str, subject: Character, ctx: WorldContext, scope: Scope | None) -> str:
    ternary = _split_ternary(content)
    if ternary is not None:
        condition, when_true, when_false = ternary
        chosen = when_true if evaluate_condition(condition.strip(), subject, ctx, scope) else when_false
        return render_text(strip_quotes(chosen), subject, ctx, scope)

    stripped = content.strip()
    if stripped.startswith(RANDOM_TEXT_FUNC + "(") and stripped.endswith(")"):
        args = stripped[len(RANDOM_TEXT_FUNC) + 1 : -1]
        options = [strip_quotes(a) for a in split_top_level(args, ",") if a.strip()]
        if not options:
            return ""
        return render_text(ctx.rng.choice(options), subject, ctx, scope)

    if stripped.startswith(VARIABLE_PREFIX):
        return _variable_text((scope or {}).get(stripped[len(VARIABLE_PREFIX):]), ctx)

    target = subject
    selector, prop = split_selector(stripped)
    if selector is not None:
        resolved = resolve_target(selector, subject, ctx, scope)
        if resolved is None:
            logger.debug("文本占位符目标无法解析: %s", stripped)
            return ""
        target = resolved

    match prop:
        case "名称":
            return target.name
        case "称呼":
            return _calling(target, ctx, scope)
        case "性别":
            return target.gender
        case _:
            logger.debug("无法识别的文本占位符: {%s}", stripped)
            return ""


def render_text(
    text: str | None,
    subject: Character,
    ctx: WorldContext,
    scope: Scope | None = None,
) -> str:
    """解析文本模板中的所有占位符。占位符之外的文本原样保留。"""
    if not text:
        return ""

    out: list[str] = []
    i = 0
    while i < len(text):
        if text[i] == "{":
            end = _find_block_end(text, i)
            if end != -1:
                out.append(_render_block(text[i + 1 : end], subject, ctx, scope))
                i = end + 1
                continue
        out.append(text[i])
        i += 1
    return "".join(out)
