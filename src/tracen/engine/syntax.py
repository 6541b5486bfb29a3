"""脚本文本的词法辅助函数：按括号深度/引号切分、剥离括号与引号。"""

from __future__ import annotations

import re

QUOTES = ('"', "'")

# 比较运算符（长的在前，避免 '>=' 被拆成 '>'）
COMPARE_OP = r"(>=|<=|==|!=|>|<)"

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def _scan(text: str):
    """逐字符扫描，产出 (index, char, depth, in_quote)；depth 同时计入圆括号与花括号。"""
    depth = 0
    quote = ""
    for i, ch in enumerate(text):
        if quote:
            if ch == quote and (i == 0 or text[i - 1] != "\\"):
                quote = ""
                yield i, ch, depth, True
                continue
            yield i, ch, depth, True
            continue
        if ch in QUOTES:
            quote = ch
            yield i, ch, depth, True
            continue
        if ch in "({":
            yield i, ch, depth, False
            depth += 1
            continue
        if ch in ")}":
            depth -= 1
            yield i, ch, depth, False
            continue
        yield i, ch, depth, False


def split_top_level(text: str, sep: str) -> list[str]:
    """在括号深度 0 且不在引号内的位置按分隔符切分。"""
    parts: list[str] = []
    start = 0
    skip_until = -1
    for i, _ch, depth, in_quote in _scan(text):
        if i < skip_until:
            continue
        if depth == 0 and not in_quote and text.startswith(sep, i):
            parts.append(text[start:i])
            start = i + len(sep)
            skip_until = start
    parts.append(text[start:])
    return parts


def find_last_top_level(text: str, token: str) -> int:
    """返回 token 在括号深度 0、引号外最后一次出现的位置，找不到返回 -1。"""
    found = -1
    for i, _ch, depth, in_quote in _scan(text):
        if depth == 0 and not in_quote and text.startswith(token, i):
            found = i
    return found


def find_top_level(text: str, token: str, start: int = 0) -> int:
    for i, _ch, depth, in_quote in _scan(text):
        if i >= start and depth == 0 and not in_quote and text.startswith(token, i):
            return i
    return -1


def strip_wrapping_parens(text: str) -> str | None:
    """若整段文本被一对匹配的圆括号包裹，返回内部文本；否则返回 None。"""
    text = text.strip()
    if not (text.startswith("(") and text.endswith(")")):
        return None
    for i, ch, depth, in_quote in _scan(text):
        if not in_quote and ch == ")" and depth == 0 and i < len(text) - 1:
            # 首个括号在末尾之前就已闭合，如 "(a) && (b)"
            return None
    return text[1:-1]


def split_call(text: str, name: str) -> list[str] | None:
    """解析 `name(arg1, arg2, ...)`，按顶层逗号切分参数；格式不符返回 None。"""
    text = text.strip()
    if not text.startswith(name):
        return None
    rest = text[len(name):].lstrip()
    inner = strip_wrapping_parens(rest)
    if inner is None:
        return None
    return [arg.strip() for arg in split_top_level(inner, ",")]


def strip_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] in QUOTES and text[-1] == text[0]:
        return text[1:-1]
    return text


def parse_int(text: str | int | None, default: int = 0) -> int:
    """解析以十进制整数开头的字符串（'12abc' -> 12），失败返回默认值。"""
    if isinstance(text, bool):
        return int(text)
    if isinstance(text, int):
        return text
    if isinstance(text, float):
        return int(text)
    if not text:
        return default
    match = _INT_PREFIX.match(str(text))
    return int(match.group(1)) if match else default


def compare(left: int, op: str, right: int) -> bool:
    match op:
        case ">":
            return left > right
        case ">=":
            return left >= right
        case "<":
            return left < right
        case "<=":
            return left <= right
        case "==":
            return left == right
        case "!=":
            return left != right
        case _:
            return False
