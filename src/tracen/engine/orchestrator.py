"""事件编排器：角色回合行动的状态机。

空闲 → 选择事件 → （交互待选 | 自动结算）→ 空闲

每个公开方法都接收一个 GameState 并返回新的深拷贝快照，
调用方持有的状态对象不会被修改。单次调用链内部则直接修改副本中的角色群体。
"""

from __future__ import annotations

import logging
import random
from typing import Iterable

from tracen.config.settings import EngineConfig
from tracen.engine.commands import ExecutionResult, execute_command
from tracen.engine.conditions import evaluate_condition
from tracen.engine.context import Scope, WorldContext
from tracen.engine.diff import generate_state_diff_log
from tracen.engine.errors import ChainDepthExceeded
from tracen.engine.text import render_text
from tracen.models.character import Character
from tracen.models.event import EventCatalog, GameEvent
from tracen.models.state import GameState, LogEntry, LogType, PendingChoice

logger = logging.getLogger(__name__)

SYSTEM_NAME = "系统"


class EventOrchestrator:
    """按权重选择并结算事件，管理待选队列与事件链。"""

    def __init__(
        self,
        catalog: EventCatalog | Iterable[GameEvent],
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.catalog = catalog if isinstance(catalog, EventCatalog) else EventCatalog(list(catalog))
        self.config = config or EngineConfig()
        self.rng = rng or random.Random(self.config.seed)

    # ──────────────────────────────────────────────
    # 公开接口
    # ──────────────────────────────────────────────

    def trigger_character_event(
        self,
        state: GameState,
        character_id: str,
        forced_event: GameEvent | None = None,
    ) -> GameState:
        """为角色选择并执行一次回合行动。没有可触发的事件时原样返回。"""
        character = state.find_character(character_id)
        if character is None:
            logger.debug("角色不存在: %s", character_id)
            return state

        event = forced_event or self.select_event(state, character)
        if event is None:
            logger.debug("%s 没有可触发的事件", character.name)
            return state

        logger.info("%s 触发事件 %s", character.name, event.id)
        return self.process_event(state, event, character_id)

    def select_event(self, state: GameState, character: Character) -> GameEvent | None:
        """按权重随机选择一个可触发事件。

        候选：未用尽触发次数且触发条件成立的事件（保持目录顺序）。
        抽取 [0, 总权重) 的均匀值，第一个累计权重超过该值的事件胜出。
        """
        ctx = self._context(state)
        candidates = [
            event
            for event in self.catalog
            if not event.exhausted_for(character.triggered_events.get(event.id, 0))
            and evaluate_condition(event.trigger, character, ctx)
        ]
        if not candidates:
            return None

        total = sum(max(0.0, event.weight) for event in candidates)
        draw = self.rng.random() * total
        running = 0.0
        for event in candidates:
            running += max(0.0, event.weight)
            if draw < running:
                return event
        return candidates[-1]

    def process_event(
        self,
        state: GameState,
        event: GameEvent,
        character_id: str,
        scope: Scope | None = None,
    ) -> GameState:
        """执行指定事件（含后续事件链），返回新状态。"""
        working = state.model_copy(deep=True)
        self._process(working, event, character_id, dict(scope or {}), depth=0)
        return working

    def current_pending_choice(self, state: GameState) -> PendingChoice | None:
        return state.pending[0] if state.pending else None

    def resolve_pending_choice(self, state: GameState, option_index: int) -> GameState:
        """用选项序号（从 0 开始）结算队首的待选事件。

        序号无效时状态保持不变（待选事件仍在队首）。
        """
        item = self.current_pending_choice(state)
        if item is None:
            logger.warning("没有待选事件")
            return state

        if not item.is_continuation and not 0 <= option_index < len(item.event.options):
            logger.warning(
                "无效的选项序号 %s（事件 %s 共 %d 个选项）",
                option_index,
                item.event.id,
                len(item.event.options),
            )
            return state

        working = state.model_copy(deep=True)
        item = working.pending.pop(0)
        character = working.find_character(item.character_id)
        if character is None:
            logger.debug("待选事件的角色已不存在: %s", item.character_id)
            return working

        if item.is_continuation:
            self._process(working, item.event, item.character_id, dict(item.scope), depth=0)
            return working

        self._log(
            working,
            character.name,
            item.parsed_text,
            is_important=bool(item.event.title),
        )
        self._apply_option(working, item.event, item.character_id, option_index, dict(item.scope), depth=0)
        return working

    def run_console_command(
        self,
        state: GameState,
        command: str,
        character_id: str | None = None,
    ) -> GameState:
        """开发者控制台：对角色（默认训练员）执行指令串，并把变化记入系统日志。"""
        working = state.model_copy(deep=True)
        ctx = self._context(working)
        character = (
            working.find_character(character_id) if character_id else ctx.trainer()
        )
        if character is None:
            logger.warning("控制台目标角色不存在: %s", character_id)
            return state

        snapshot = [c.model_copy(deep=True) for c in working.characters]
        result = execute_command(command, character, ctx, quiet=False)
        effects = generate_state_diff_log(
            snapshot, working.characters, character.instance_id, self.config.player_id
        )
        self._log(working, SYSTEM_NAME, f"执行指令：{command}", log_type="system", effects=effects)
        self._follow(working, character.instance_id, result, depth=0)
        return working

    # ──────────────────────────────────────────────
    # 内部流程（直接修改 working 状态）
    # ──────────────────────────────────────────────

    def _context(self, state: GameState) -> WorldContext:
        return WorldContext(state.characters, state.current_turn, self.config, self.rng)

    def _process(
        self,
        state: GameState,
        event: GameEvent,
        character_id: str,
        scope: Scope,
        depth: int,
    ) -> None:
        character = state.find_character(character_id)
        if character is None:
            return
        ctx = self._context(state)
        split = character.has_tag(self.config.split_personality_tag)

        if event.is_interactive:
            if split and self.rng.random() < self.config.split_auto_choice_chance:
                scope = self._run(event.pre_action, character, ctx, scope, event).scope
                self._log(state, character.name, self._memory_lost(character), is_important=bool(event.title))
                index = self._random_visible_option(event, character, ctx, scope)
                self._count(character, event)
                self._apply_option(
                    state,
                    event,
                    character_id,
                    index,
                    scope,
                    depth,
                    choice_text=self.config.unknown_choice_text,
                    compensate=True,
                )
                return

            scope = self._run(event.pre_action, character, ctx, scope, event).scope
            state.pending.insert(0, self._pending(event, character, ctx, scope))
            self._count(character, event)
            return

        # 非交互：快照取在预操作之前
        snapshot = [c.model_copy(deep=True) for c in state.characters]
        scope = self._run(event.pre_action, character, ctx, scope, event).scope
        result = self._run(event.action, character, ctx, scope, event)
        result = self._run_branches(event, character, ctx, result, choice_index=None)
        self._post_effects(event, character)

        effects = generate_state_diff_log(
            snapshot, state.characters, character_id, self.config.player_id
        )
        text = render_text(event.body, character, ctx, result.scope)
        if split and self.rng.random() < self.config.split_forget_chance:
            text = self._memory_lost(character)
        self._log(state, character.name, text, effects=effects)

        self._count(character, event)
        self._check_ending(state, event)
        self._follow(state, character_id, result, depth)

    def _apply_option(
        self,
        state: GameState,
        event: GameEvent,
        character_id: str,
        index: int,
        scope: Scope,
        depth: int,
        choice_text: str | None = None,
        compensate: bool = False,
    ) -> None:
        character = state.find_character(character_id)
        if character is None or not 0 <= index < len(event.options):
            return
        ctx = self._context(state)
        option = event.options[index]

        snapshot = [c.model_copy(deep=True) for c in state.characters]
        action = option.action
        if compensate:
            action = f"{self.config.split_compensation_command}; {action}"
        result = self._run(action, character, ctx, scope, event)
        result = self._run_branches(event, character, ctx, result, choice_index=index + 1)
        self._post_effects(event, character)

        effects = generate_state_diff_log(
            snapshot, state.characters, character_id, self.config.player_id
        )
        shown = choice_text or render_text(option.text, character, ctx, result.scope)
        self._log(state, character.name, f"选择了【{shown}】", log_type="choice", effects=effects)

        self._check_ending(state, event)
        self._follow(state, character_id, result, depth)

    def _run(
        self,
        command: str,
        character: Character,
        ctx: WorldContext,
        scope: Scope,
        event: GameEvent,
    ) -> ExecutionResult:
        return execute_command(command, character, ctx, scope, quiet=True, event_tags=event.tags)

    def _run_branches(
        self,
        event: GameEvent,
        character: Character,
        ctx: WorldContext,
        result: ExecutionResult,
        choice_index: int | None,
    ) -> ExecutionResult:
        """执行第一个成立的分支；分支的跳转事件 ID 覆盖之前的任何跳转。"""
        for branch in event.branches:
            if not evaluate_condition(branch.condition, character, ctx, result.scope, choice_index):
                continue
            branch_result = self._run(branch.action, character, ctx, result.scope, event)
            branch_result.outcomes = result.outcomes + branch_result.outcomes
            if branch_result.next_event_id is None:
                branch_result.next_event_id = result.next_event_id
                branch_result.pause = result.pause
            if branch.next_event_id:
                branch_result.next_event_id = branch.next_event_id
                branch_result.pause = False
            return branch_result
        return result

    def _post_effects(self, event: GameEvent, character: Character) -> None:
        """社畜：工作事件额外消耗体力与心情，换取精力。"""
        if self.config.work_event_tag not in event.tags:
            return
        if not character.has_tag(self.config.overworked_tag):
            return
        general = character.general
        if general.get("体力", 0) >= 5 and general.get("心情", 0) >= 5:
            general["体力"] -= 5
            general["心情"] -= 5
            general["精力"] = min(100, general.get("精力", 0) + 10)

    def _follow(self, state: GameState, character_id: str, result: ExecutionResult, depth: int) -> None:
        """跟随事件链：'跳转' 立即执行，'继续' 排入待选队列。"""
        if not result.next_event_id:
            return
        next_event = self.catalog.get(result.next_event_id)
        if next_event is None:
            logger.debug("后续事件不存在，事件链结束: %s", result.next_event_id)
            return
        if depth + 1 > self.config.max_chain_depth:
            if self.config.debug:
                raise ChainDepthExceeded(next_event.id, depth + 1)
            logger.warning("事件链深度超过 %d，在 %s 处截断", self.config.max_chain_depth, next_event.id)
            return

        character = state.find_character(character_id)
        if character is None:
            return

        if result.pause and not next_event.is_interactive:
            ctx = self._context(state)
            state.pending.insert(
                0, self._pending(next_event, character, ctx, result.scope, is_continuation=True)
            )
            return
        self._process(state, next_event, character_id, result.scope, depth + 1)

    # ── 小工具 ──

    def _pending(
        self,
        event: GameEvent,
        character: Character,
        ctx: WorldContext,
        scope: Scope,
        is_continuation: bool = False,
    ) -> PendingChoice:
        return PendingChoice(
            character_id=character.instance_id,
            event=event,
            scope=scope,
            parsed_title=render_text(event.title, character, ctx, scope),
            parsed_text=render_text(event.body, character, ctx, scope),
            is_continuation=is_continuation,
        )

    def _random_visible_option(
        self, event: GameEvent, character: Character, ctx: WorldContext, scope: Scope
    ) -> int:
        visible = [
            i
            for i, option in enumerate(event.options)
            if not option.visible_if or evaluate_condition(option.visible_if, character, ctx, scope)
        ]
        return self.rng.choice(visible) if visible else 0

    def _memory_lost(self, character: Character) -> str:
        return self.config.memory_lost_text.format(name=character.name)

    def _count(self, character: Character, event: GameEvent) -> None:
        character.triggered_events[event.id] = character.triggered_events.get(event.id, 0) + 1

    def _check_ending(self, state: GameState, event: GameEvent) -> None:
        if self.config.ending_event_tag in event.tags:
            logger.info("结局事件 %s，游戏结束", event.id)
            state.phase = "gameover"

    def _log(
        self,
        state: GameState,
        name: str,
        text: str,
        log_type: LogType = "event",
        is_important: bool = False,
        effects: list[str] | None = None,
    ) -> None:
        """追加日志；正文与变化摘要都为空时不记录。"""
        effects = effects or []
        full = "\n".join(part for part in [text, *effects] if part)
        if not full:
            return
        state.logs.append(
            LogEntry(
                turn=state.current_turn,
                character_name=name,
                text=full,
                type=log_type,
                is_important=is_important,
                effects=effects,
            )
        )
