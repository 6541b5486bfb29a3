"""指令执行器：解析并执行以分号分隔的操作指令。

每条语句只解析一次（带缓存），得到一个封闭的操作变体集合，
执行时用 match 分派。任何语句都不会把异常抛给调用方：
无法执行的语句记录为带原因的 StatementOutcome，状态保持不变。

语句形如：
    [目标.]动词 参数... [若 条件]
例如：
    训练员.属性变更 财富 -1
    关系变更(友情, 摩耶重炮, 训练员, 随机(5, 15)) 若 属性.心情 > 30
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from tracen.engine.conditions import evaluate_condition
from tracen.engine.context import Scope, WorldContext
from tracen.engine.syntax import (
    find_last_top_level,
    parse_int,
    split_top_level,
    strip_quotes,
    strip_wrapping_parens,
)
from tracen.engine.targets import character_from_value, resolve_target, variable_key
from tracen.engine.values import RANDOM_FUNC, resolve_value
from tracen.models.character import (
    GENERAL_ATTRIBUTES,
    RACE_ATTRIBUTES,
    RELATION_KINDS,
    Character,
    CharacterRef,
    RuntimeTag,
    clamp,
)

logger = logging.getLogger(__name__)

GUARD_TOKEN = " 若 "
RANDOM_ATTRIBUTE = "随机"
ALL_ATTRIBUTES = "全属性"


class SkipReason(str, Enum):
    """语句未生效的原因。"""
    GUARD_FAILED = "guard_failed"  # 若 条件不成立
    UNKNOWN_VERB = "unknown_verb"  # 未知动词
    TARGET_UNRESOLVED = "target_unresolved"  # 目标角色无法解析
    MALFORMED = "malformed"  # 参数格式错误
    NOT_APPLICABLE = "not_applicable"  # 语法正确但当前状态下无事可做


# ──────────────────────────────────────────────
# 操作变体
# ──────────────────────────────────────────────


class _Op(BaseModel):
    model_config = ConfigDict(frozen=True)


class AttributeChange(_Op):
    """属性变更 ATTR VALUE。ATTR 可为 随机 / 全属性（竞赛属性）。"""
    kind: Literal["attribute_change"] = "attribute_change"
    attribute: str
    value: str


class RelationChange(_Op):
    """关系变更(类型, 主动方, 被动方, 数值)：关系存储在主动方。"""
    kind: Literal["relation_change"] = "relation_change"
    relation: str
    subject_key: str
    object_key: str
    value: str


class PlayerRelationChange(_Op):
    """关系变更 类型 数值：当前目标对玩家。"""
    kind: Literal["player_relation_change"] = "player_relation_change"
    relation: str
    value: str


class MutualRelationChange(_Op):
    kind: Literal["mutual_relation_change"] = "mutual_relation_change"
    relation: str
    first_key: str
    second_key: str
    value: str


class GroupRelationChange(_Op):
    """双向关系变更(类型, 变量.列表, 数值)：列表内两两之间，每对单独解析数值。"""
    kind: Literal["group_relation_change"] = "group_relation_change"
    relation: str
    list_key: str
    value: str


class GrantTag(_Op):
    kind: Literal["grant_tag"] = "grant_tag"
    tag_id: str
    layers: str = "1"


class AdjustTag(_Op):
    kind: Literal["adjust_tag"] = "adjust_tag"
    tag_id: str
    delta: str


class RemoveTag(_Op):
    kind: Literal["remove_tag"] = "remove_tag"
    tag_id: str


class SetVariable(_Op):
    kind: Literal["set_variable"] = "set_variable"
    var_type: str | None = None
    key: str
    expr: str


class VariableArithmetic(_Op):
    kind: Literal["variable_arithmetic"] = "variable_arithmetic"
    key: str
    operator: Literal["+", "-"]
    value: str


class Jump(_Op):
    """跳转（不暂停）或 继续（暂停，先呈现给玩家）。"""
    kind: Literal["jump"] = "jump"
    event_id: str
    pause: bool = False


class ChanceJump(_Op):
    kind: Literal["chance_jump"] = "chance_jump"
    chance: str
    event_id: str
    fail_event_id: str | None = None


class ListFilter(_Op):
    kind: Literal["list_filter"] = "list_filter"
    list_key: str
    condition: str


class ListExclude(_Op):
    kind: Literal["list_exclude"] = "list_exclude"
    list_key: str
    target_key: str


class ListTruncate(_Op):
    kind: Literal["list_truncate"] = "list_truncate"
    list_key: str
    count: str


class ListAppend(_Op):
    kind: Literal["list_append"] = "list_append"
    list_key: str
    target_key: str


class ListForEach(_Op):
    kind: Literal["list_for_each"] = "list_for_each"
    list_key: str
    command: str


class JoinTeam(_Op):
    kind: Literal["join_team"] = "join_team"
    target_key: str


class Pairing(_Op):
    kind: Literal["pairing"] = "pairing"
    first_key: str
    second_key: str


class UnknownCommand(_Op):
    kind: Literal["unknown"] = "unknown"
    verb: str
    reason: SkipReason = SkipReason.UNKNOWN_VERB


Operation = Annotated[
    Union[
        AttributeChange,
        RelationChange,
        PlayerRelationChange,
        MutualRelationChange,
        GroupRelationChange,
        GrantTag,
        AdjustTag,
        RemoveTag,
        SetVariable,
        VariableArithmetic,
        Jump,
        ChanceJump,
        ListFilter,
        ListExclude,
        ListTruncate,
        ListAppend,
        ListForEach,
        JoinTeam,
        Pairing,
        UnknownCommand,
    ],
    Field(discriminator="kind"),
]


class Statement(BaseModel):
    """解析后的单条语句。"""

    model_config = ConfigDict(frozen=True)

    raw: str = Field(description="原始语句文本")
    target_key: str | None = Field(default=None, description="目标前缀，None 表示当前主体")
    guard: str | None = Field(default=None, description="若 后的条件")
    op: Operation = Field(description="操作")


# ──────────────────────────────────────────────
# 解析
# ──────────────────────────────────────────────

_TARGET_PREFIX_RE = re.compile(r"^((?:变量\.)?[^\s.()]+)\.([^\s.(]+)(.*)$", re.DOTALL)
_VERB_RE = re.compile(r"^([^\s(]+)(.*)$", re.DOTALL)
_SET_VARIABLE_RE = re.compile(r"^(?:(角色|列表|数字)\s+)?([^=]+?)\s*=\s*(.+)$", re.DOTALL)
_ARITHMETIC_RE = re.compile(r"^([^\s+\-]+)\s*([+-])\s*(.+)$", re.DOTALL)
_INT_LITERAL_RE = re.compile(r"^[+-]?\d+$")

# 常见别名写法
_ALIASES = (("训练员属性变更", "训练员.属性变更"),)


def split_statements(command: str | None) -> list[str]:
    """按顶层分号切分指令串，丢弃空语句。"""
    if not command:
        return []
    return [s.strip() for s in split_top_level(command, ";") if s.strip()]


def _call_args(rest: str) -> list[str] | None:
    inner = strip_wrapping_parens(rest)
    if inner is None:
        return None
    return [arg.strip() for arg in split_top_level(inner, ",")]


def _head_and_tail(args: list[str]) -> tuple[str, str]:
    """第一个参数与其余参数（重新用逗号拼接）。"""
    return args[0], ", ".join(args[1:]).strip()


def _parse_op(verb: str, rest: str) -> _Op:
    rest = rest.strip()
    malformed = UnknownCommand(verb=verb, reason=SkipReason.MALFORMED)
    words = rest.split()

    match verb:
        case "属性变更":
            attribute, _, value = rest.partition(" ")
            if not attribute or not value.strip():
                return malformed
            return AttributeChange(attribute=attribute, value=value.strip())

        case "关系变更":
            if rest.startswith("("):
                args = _call_args(rest)
                if not args or len(args) < 4:
                    return malformed
                return RelationChange(
                    relation=args[0],
                    subject_key=args[1],
                    object_key=args[2],
                    value=", ".join(args[3:]),
                )
            relation, _, value = rest.partition(" ")
            if not relation or not value.strip():
                return malformed
            return PlayerRelationChange(relation=relation, value=value.strip())

        case "双向关系变更":
            args = _call_args(rest)
            if not args or len(args) < 3:
                return malformed
            relation, pair, value = args[0], args[1], ", ".join(args[2:])
            first, slash, second = pair.partition("/")
            if slash:
                return MutualRelationChange(
                    relation=relation, first_key=first.strip(), second_key=second.strip(), value=value
                )
            return GroupRelationChange(relation=relation, list_key=variable_key(pair), value=value)

        case "获得标签":
            if not words:
                return malformed
            return GrantTag(tag_id=words[0], layers=" ".join(words[1:]) or "1")

        case "标签变更":
            if len(words) < 2:
                return malformed
            return AdjustTag(tag_id=words[0], delta=" ".join(words[1:]))

        case "移除标签":
            if not words:
                return malformed
            return RemoveTag(tag_id=words[0])

        case "设置变量":
            match_ = _SET_VARIABLE_RE.match(rest)
            if not match_:
                return malformed
            return SetVariable(
                var_type=match_.group(1),
                key=variable_key(match_.group(2)),
                expr=match_.group(3).strip(),
            )

        case "变量计算":
            match_ = _ARITHMETIC_RE.match(rest)
            if not match_:
                return malformed
            return VariableArithmetic(
                key=variable_key(match_.group(1)),
                operator=match_.group(2),
                value=match_.group(3).strip(),
            )

        case "跳转" | "继续":
            if not words:
                return malformed
            return Jump(event_id=words[0], pause=verb == "继续")

        case "概率跳转":
            if len(words) < 2:
                return malformed
            return ChanceJump(
                chance=words[0],
                event_id=words[1],
                fail_event_id=words[2] if len(words) > 2 else None,
            )

        case "列表筛选" | "列表排除" | "列表截取" | "列表添加" | "列表执行":
            args = _call_args(rest)
            if not args or len(args) < 2:
                return malformed
            list_key, tail = _head_and_tail(args)
            list_key = variable_key(list_key)
            if not tail:
                return malformed
            match verb:
                case "列表筛选":
                    return ListFilter(list_key=list_key, condition=tail)
                case "列表排除":
                    return ListExclude(list_key=list_key, target_key=tail)
                case "列表截取":
                    return ListTruncate(list_key=list_key, count=tail)
                case "列表添加":
                    return ListAppend(list_key=list_key, target_key=tail)
                case _:
                    return ListForEach(list_key=list_key, command=tail)

        case "让角色入队":
            args = _call_args(rest)
            if not args or not args[0]:
                return malformed
            return JoinTeam(target_key=", ".join(args))

        case "同房":
            args = _call_args(rest)
            if not args or len(args) != 2:
                return malformed
            return Pairing(first_key=args[0], second_key=args[1])

        case _:
            return UnknownCommand(verb=verb)


@functools.lru_cache(maxsize=2048)
def parse_statement(raw: str) -> Statement:
    """把单条语句解析为 Statement（结果缓存，对象不可变）。"""
    text = raw.strip()
    for alias, canonical in _ALIASES:
        if text.startswith(alias):
            text = canonical + text[len(alias):]

    guard = None
    guard_at = find_last_top_level(text, GUARD_TOKEN)
    if guard_at != -1:
        guard = text[guard_at + len(GUARD_TOKEN):].strip() or None
        text = text[:guard_at].strip()

    target_key = None
    if match := _TARGET_PREFIX_RE.match(text):
        target_key, verb, rest = match.group(1), match.group(2), match.group(3)
    elif match := _VERB_RE.match(text):
        verb, rest = match.group(1), match.group(2)
    else:
        return Statement(raw=raw, op=UnknownCommand(verb="", reason=SkipReason.MALFORMED))

    return Statement(raw=raw, target_key=target_key, guard=guard, op=_parse_op(verb, rest))


# ──────────────────────────────────────────────
# 执行
# ──────────────────────────────────────────────


@dataclass
class StatementOutcome:
    """单条语句的执行结果。"""
    statement: Statement
    applied: bool
    reason: SkipReason | None = None


@dataclass
class ExecutionResult:
    """一次指令串执行的结果。"""
    scope: Scope = field(default_factory=dict)
    next_event_id: str | None = None
    pause: bool = False
    outcomes: list[StatementOutcome] = field(default_factory=list)

    @property
    def is_chain(self) -> bool:
        """需要立即（不暂停）继续执行下一个事件。"""
        return self.next_event_id is not None and not self.pause

    def skipped(self) -> list[StatementOutcome]:
        return [o for o in self.outcomes if not o.applied]


def apply_relationship_modifier(
    value: int, obj: Character | None, relation: str, wedding_ring_tag: str = "婚戒"
) -> int:
    """魅力修正：正值乘以 被动方魅力/10，爱情且被动方持有婚戒时再乘 0.2，向下取整。

    非正值原样返回。用整数运算避免浮点误差。
    """
    if value <= 0 or obj is None:
        return value
    charm = max(0, obj.general.get("魅力", 0))
    if relation == "爱情" and obj.has_tag(wedding_ring_tag):
        return value * charm * 2 // 100
    return value * charm // 10


def _set_tag_layers(target: Character, tag_id: str, layers: int, turn: int) -> None:
    """设置标签层数；层数 < 1 时移除。"""
    if layers < 1:
        target.remove_tag(tag_id)
        return
    existing = target.get_tag(tag_id)
    if existing:
        existing.layers = layers
    else:
        target.tags.append(RuntimeTag(template_id=tag_id, added_turn=turn, layers=layers))


def _refs(value: object, ctx: WorldContext) -> list[CharacterRef] | None:
    """把列表变量规整为 CharacterRef 列表；不是列表返回 None。"""
    if not isinstance(value, list):
        return None
    refs: list[CharacterRef] = []
    for item in value:
        character = character_from_value(item, ctx)
        if character:
            refs.append(CharacterRef.of(character))
    return refs


class _Executor:
    """执行单个指令串；作用域在副本上修改，最后随结果返回。"""

    def __init__(
        self,
        subject: Character,
        ctx: WorldContext,
        scope: Scope,
        quiet: bool,
        event_tags: tuple[str, ...],
    ):
        self.subject = subject
        self.ctx = ctx
        self.scope = scope
        self.quiet = quiet
        self.event_tags = event_tags
        self.result = ExecutionResult(scope=scope)

    def value(self, expr: str) -> int:
        return resolve_value(expr, self.subject, self.ctx, self.scope)

    def target(self, key: str) -> Character | None:
        return resolve_target(key, self.subject, self.ctx, self.scope)

    def run(self, command: str | None) -> ExecutionResult:
        for raw in split_statements(command):
            statement = parse_statement(raw)
            reason = self.run_statement(statement)
            self.result.outcomes.append(
                StatementOutcome(statement=statement, applied=reason is None, reason=reason)
            )
            if reason is None:
                logger.log(logging.DEBUG if self.quiet else logging.INFO, "执行: %s", raw)
            else:
                logger.debug("跳过: %s (%s)", raw, reason.value)
        return self.result

    def run_statement(self, statement: Statement) -> SkipReason | None:
        if statement.guard and not evaluate_condition(
            statement.guard, self.subject, self.ctx, self.scope
        ):
            return SkipReason.GUARD_FAILED

        actor = self.subject
        if statement.target_key is not None:
            resolved = self.target(statement.target_key)
            if resolved is None:
                return SkipReason.TARGET_UNRESOLVED
            actor = resolved

        return self.apply(statement.op, actor)

    # ── 分派 ──

    def apply(self, op: _Op, actor: Character) -> SkipReason | None:
        match op:
            case AttributeChange(attribute=attribute, value=value):
                return self.change_attribute(actor, attribute, self.value(value))

            case RelationChange(relation=relation, subject_key=s_key, object_key=o_key, value=value):
                holder, obj = self.target(s_key), self.target(o_key)
                if holder is None or obj is None:
                    return SkipReason.TARGET_UNRESOLVED
                return self.change_relation(holder, obj, relation, self.value(value))

            case PlayerRelationChange(relation=relation, value=value):
                player = self.ctx.player()
                if player is None:
                    return SkipReason.TARGET_UNRESOLVED
                return self.change_relation(actor, player, relation, self.value(value))

            case MutualRelationChange(relation=relation, first_key=a_key, second_key=b_key, value=value):
                first, second = self.target(a_key), self.target(b_key)
                if first is None or second is None:
                    return SkipReason.TARGET_UNRESOLVED
                return self.change_mutual(first, second, relation, self.value(value))

            case GroupRelationChange(relation=relation, list_key=list_key, value=value):
                refs = _refs(self.scope.get(list_key), self.ctx)
                if refs is None:
                    return SkipReason.NOT_APPLICABLE
                members = [c for c in (self.ctx.find(r.instance_id) for r in refs) if c]
                if relation not in RELATION_KINDS:
                    return SkipReason.MALFORMED
                for i, first in enumerate(members):
                    for second in members[i + 1:]:
                        self.change_mutual(first, second, relation, self.value(value))
                return None

            case GrantTag(tag_id=tag_id, layers=layers):
                count = self.value(layers)
                if count < 1 and not actor.has_tag(tag_id):
                    return SkipReason.NOT_APPLICABLE
                _set_tag_layers(actor, tag_id, count, self.ctx.turn)
                return None

            case AdjustTag(tag_id=tag_id, delta=delta):
                amount = self.value(delta)
                existing = actor.get_tag(tag_id)
                if existing is None:
                    if amount <= 0:
                        return SkipReason.NOT_APPLICABLE
                    _set_tag_layers(actor, tag_id, amount, self.ctx.turn)
                    return None
                _set_tag_layers(actor, tag_id, existing.layers + amount, self.ctx.turn)
                return None

            case RemoveTag(tag_id=tag_id):
                return None if actor.remove_tag(tag_id) else SkipReason.NOT_APPLICABLE

            case SetVariable(var_type=var_type, key=key, expr=expr):
                return self.set_variable(actor, var_type, key, expr)

            case VariableArithmetic(key=key, operator=operator, value=value):
                current = self.scope.get(key)
                if not isinstance(current, int) or isinstance(current, bool):
                    return SkipReason.NOT_APPLICABLE
                amount = self.value(value)
                self.scope[key] = current + amount if operator == "+" else current - amount
                return None

            case Jump(event_id=event_id, pause=pause):
                self.result.next_event_id = event_id
                self.result.pause = pause
                return None

            case ChanceJump(chance=chance, event_id=event_id, fail_event_id=fail_event_id):
                if self.ctx.rng.random() * 100 < self.value(chance):
                    self.result.next_event_id = event_id
                elif fail_event_id:
                    self.result.next_event_id = fail_event_id
                else:
                    return SkipReason.NOT_APPLICABLE
                self.result.pause = False
                return None

            case ListFilter(list_key=list_key, condition=condition):
                refs = _refs(self.scope.get(list_key), self.ctx)
                if refs is None:
                    return SkipReason.NOT_APPLICABLE
                self.scope[list_key] = [
                    ref
                    for ref in refs
                    if evaluate_condition(condition, self.ctx.find(ref.instance_id), self.ctx, self.scope)
                ]
                return None

            case ListExclude(list_key=list_key, target_key=target_key):
                refs = _refs(self.scope.get(list_key), self.ctx)
                excluded = self.target(target_key)
                if refs is None:
                    return SkipReason.NOT_APPLICABLE
                if excluded is None:
                    return SkipReason.TARGET_UNRESOLVED
                self.scope[list_key] = [r for r in refs if r.instance_id != excluded.instance_id]
                return None

            case ListTruncate(list_key=list_key, count=count):
                refs = _refs(self.scope.get(list_key), self.ctx)
                if refs is None:
                    return SkipReason.NOT_APPLICABLE
                self.scope[list_key] = refs[: max(0, self.value(count))]
                return None

            case ListAppend(list_key=list_key, target_key=target_key):
                refs = _refs(self.scope.get(list_key), self.ctx)
                appended = self.target(target_key)
                if refs is None:
                    return SkipReason.NOT_APPLICABLE
                if appended is None:
                    return SkipReason.TARGET_UNRESOLVED
                self.scope[list_key] = refs + [CharacterRef.of(appended)]
                return None

            case ListForEach(list_key=list_key, command=command):
                refs = _refs(self.scope.get(list_key), self.ctx)
                if refs is None:
                    return SkipReason.NOT_APPLICABLE
                for ref in refs:
                    member = self.ctx.find(ref.instance_id)
                    if member is None:
                        continue
                    nested = _Executor(member, self.ctx, self.scope, self.quiet, self.event_tags)
                    self.result.outcomes.extend(nested.run(command).outcomes)
                return None

            case JoinTeam(target_key=target_key):
                recruit = self.target(target_key)
                if recruit is None:
                    return SkipReason.TARGET_UNRESOLVED
                recruit.in_team = True
                recruit.recruited_at = self.ctx.turn
                return None

            case Pairing(first_key=a_key, second_key=b_key):
                return self.pair(self.target(a_key), self.target(b_key))

            case UnknownCommand(reason=reason):
                return reason

        return SkipReason.UNKNOWN_VERB

    # ── 具体操作 ──

    def change_attribute(self, actor: Character, attribute: str, amount: int) -> SkipReason | None:
        if attribute == RANDOM_ATTRIBUTE:
            attribute = self.ctx.rng.choice(RACE_ATTRIBUTES)
        if attribute == ALL_ATTRIBUTES:
            for name in RACE_ATTRIBUTES:
                actor.race[name] = max(0, actor.race.get(name, 0) + amount)
            return None
        if attribute in GENERAL_ATTRIBUTES:
            actor.general[attribute] = clamp(actor.general.get(attribute, 0) + amount)
            return None
        if attribute in RACE_ATTRIBUTES:
            actor.race[attribute] = max(0, actor.race.get(attribute, 0) + amount)
            return None
        return SkipReason.NOT_APPLICABLE

    def change_relation(
        self, holder: Character, obj: Character, relation: str, amount: int
    ) -> SkipReason | None:
        if relation not in RELATION_KINDS:
            return SkipReason.MALFORMED
        final = apply_relationship_modifier(amount, obj, relation, self.ctx.config.wedding_ring_tag)
        holder.adjust_relation(obj.instance_id, relation, final)
        return None

    def change_mutual(
        self, first: Character, second: Character, relation: str, amount: int
    ) -> SkipReason | None:
        reason = self.change_relation(first, second, relation, amount)
        if reason is not None:
            return reason
        return self.change_relation(second, first, relation, amount)

    def set_variable(
        self, actor: Character, var_type: str | None, key: str, expr: str
    ) -> SkipReason | None:
        ctx, subject = self.ctx, self.subject

        if expr.startswith("获取随机队友()"):
            pool = [c for c in ctx.characters if c.in_team and c.instance_id != subject.instance_id]
            if not pool:
                return SkipReason.NOT_APPLICABLE
            self.scope[key] = CharacterRef.of(ctx.rng.choice(pool))
        elif expr.startswith("获取随机全员角色()"):
            pool = [
                c
                for c in ctx.characters
                if c.instance_id not in (ctx.player_id, subject.instance_id)
            ]
            if not pool:
                return SkipReason.NOT_APPLICABLE
            self.scope[key] = CharacterRef.of(ctx.rng.choice(pool))
        elif expr.startswith("获取角色(非队友)"):
            self.scope[key] = [
                CharacterRef.of(c)
                for c in ctx.characters
                if not c.in_team and c.instance_id != ctx.player_id
            ]
        elif expr.startswith("获取角色(全员)"):
            self.scope[key] = [CharacterRef.of(c) for c in ctx.characters]
        elif expr.startswith("列表随机取值"):
            args = _call_args(expr[len("列表随机取值"):])
            refs = _refs(self.scope.get(variable_key(args[0])), ctx) if args else None
            if not refs:
                return SkipReason.NOT_APPLICABLE
            self.scope[key] = ctx.rng.choice(refs)
        elif expr.startswith(RANDOM_FUNC + "(") or var_type == "数字":
            self.scope[key] = self.value(expr)
        elif _INT_LITERAL_RE.match(expr):
            self.scope[key] = parse_int(expr)
        elif var_type == "列表" and isinstance(self.scope.get(variable_key(expr)), list):
            self.scope[key] = list(_refs(self.scope[variable_key(expr)], ctx) or [])
        else:
            character = self.target(expr)
            if character is not None:
                self.scope[key] = CharacterRef.of(character)
            else:
                self.scope[key] = strip_quotes(expr)
        return None

    def pair(self, first: Character | None, second: Character | None) -> SkipReason | None:
        if first is None or second is None:
            return SkipReason.TARGET_UNRESOLVED
        if first.gender == second.gender:
            return SkipReason.NOT_APPLICABLE
        config = self.ctx.config
        if self.ctx.rng.random() < config.pairing_chance:
            female = first if first.gender == "女" else second
            _set_tag_layers(female, config.pregnancy_tag, config.pregnancy_layers, self.ctx.turn)
        return None


def execute_command(
    command: str | None,
    subject: Character,
    ctx: WorldContext,
    scope: Scope | None = None,
    quiet: bool = True,
    event_tags: tuple[str, ...] | list[str] = (),
) -> ExecutionResult:
    """执行指令串。

    Args:
        command: 以分号分隔的语句串。
        subject: 当前角色（未指定目标前缀时的操作对象）。
        ctx: 世界上下文；角色群体在原地被修改。
        scope: 变量作用域；不会被修改，更新后的副本在结果中返回。
        quiet: 为 False 时以 INFO 级别记录每条生效的语句（开发者控制台）。
        event_tags: 触发事件的标签组，传递给嵌套执行。

    Returns:
        ExecutionResult：更新后的作用域、下一事件 ID、是否暂停及逐条结果。
    """
    executor = _Executor(subject, ctx, dict(scope or {}), quiet, tuple(event_tags))
    return executor.run(command)
