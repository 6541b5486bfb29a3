"""tracen CLI 入口：在终端里运行事件脚本。"""

from __future__ import annotations

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tracen.config.settings import EngineConfig, load_config
from tracen.content.loader import ContentBundle, load_content
from tracen.engine.calendar import format_turn_date
from tracen.engine.conditions import evaluate_condition
from tracen.engine.context import WorldContext
from tracen.engine.errors import TracenError
from tracen.engine.orchestrator import EventOrchestrator
from tracen.engine.text import render_text
from tracen.models.state import GameState, LogEntry, PendingChoice
from tracen.state.character_state import advance_turn, new_game, obscured_date_for

console = Console()
logger = logging.getLogger("tracen")

_LOG_STYLES = {"system": "bold blue", "choice": "green", "event": "white"}


def _load(args: argparse.Namespace) -> tuple[EngineConfig, ContentBundle]:
    """加载配置与内容，失败时退出。"""
    try:
        config = load_config(args.config)
        if getattr(args, "seed", None) is not None:
            config = config.model_copy(update={"seed": args.seed})
        content = load_content(args.content)
    except (TracenError, OSError, ValueError) as e:
        console.print(f"[red]加载失败: {e}[/red]")
        sys.exit(1)
    return config, content


def _start(
    args: argparse.Namespace,
    config: EngineConfig,
    content: ContentBundle,
    orchestrator: EventOrchestrator,
) -> GameState:
    try:
        return new_game(
            content.characters,
            args.name,
            gender=args.gender,
            start_tags=args.tags or [],
            companion_id=args.companion,
            roster=args.roster or [],
            config=config,
            rng=orchestrator.rng,
        )
    except KeyError as e:
        console.print(f"[red]无法开局: {e}[/red]")
        sys.exit(1)


def _print_logs(logs: list[LogEntry]) -> None:
    for entry in logs:
        style = _LOG_STYLES.get(entry.type, "white")
        if entry.type == "system":
            console.print(f"[{style}]{escape(entry.text)}[/{style}]")
            continue
        prefix = "★ " if entry.is_important else ""
        console.print(f"[cyan]{prefix}{escape(entry.character_name)}[/cyan]  [{style}]{escape(entry.text)}[/{style}]")


def _print_characters(state: GameState) -> None:
    """打印角色状态表。"""
    table = Table(title="角色状态", show_lines=True)
    table.add_column("角色", style="cyan")
    table.add_column("通用属性", style="yellow")
    table.add_column("竞赛属性", style="magenta")
    table.add_column("标签", style="green")
    table.add_column("队伍", style="red")

    for c in state.characters:
        general = ", ".join(f"{k}:{v}" for k, v in c.general.items())
        race = ", ".join(f"{k}:{v}" for k, v in c.race.items())
        tags = ", ".join(
            f"{t.template_id}×{t.layers}" if t.layers > 1 else t.template_id for t in c.tags
        )
        table.add_row(f"{c.name}\n[dim]{c.instance_id}[/dim]", general, race, tags or "-", "是" if c.in_team else "否")

    console.print(table)


def _choose(item: PendingChoice, orchestrator: EventOrchestrator, state: GameState, auto: bool) -> int:
    """选择选项：自动模式随机选一个可见选项，否则询问玩家。"""
    if item.is_continuation:
        if not auto:
            console.input("[dim]按回车继续...[/dim]")
        return 0

    character = state.find_character(item.character_id)
    ctx = WorldContext(state.characters, state.current_turn, orchestrator.config, orchestrator.rng)
    visible = [
        i
        for i, option in enumerate(item.event.options)
        if character is None
        or not option.visible_if
        or evaluate_condition(option.visible_if, character, ctx, item.scope)
    ]
    if auto:
        return orchestrator.rng.choice(visible) if visible else 0

    lines = []
    for i in visible:
        text = item.event.options[i].text
        if character is not None:
            text = render_text(text, character, ctx, item.scope)
        lines.append(f"  [{i + 1}] {escape(text)}")
    while True:
        raw = console.input("\n".join(lines) + "\n请选择: ").strip()
        if raw.isdigit() and int(raw) - 1 in visible:
            return int(raw) - 1
        console.print("[yellow]无效选项[/yellow]")


def cmd_play(args: argparse.Namespace) -> None:
    config, content = _load(args)
    orchestrator = EventOrchestrator(content.catalog, config)
    state = _start(args, config, content, orchestrator)
    seen = 0

    def flush() -> None:
        nonlocal seen
        _print_logs(state.logs[seen:])
        seen = len(state.logs)

    flush()
    turns = args.turns or state.max_turns
    while state.phase != "gameover" and state.current_turn < turns:
        state = advance_turn(state, config)
        if state.phase == "gameover":
            break
        for character_id in [c.instance_id for c in state.characters]:
            state = orchestrator.trigger_character_event(state, character_id)
            while (item := orchestrator.current_pending_choice(state)) is not None:
                if item.parsed_title:
                    console.print(Panel(escape(item.parsed_text or "-"), title=escape(item.parsed_title)))
                elif not item.is_continuation:
                    console.print(escape(item.parsed_text))
                index = _choose(item, orchestrator, state, args.auto)
                state = orchestrator.resolve_pending_choice(state, index)
            flush()
            if state.phase == "gameover":
                break

    flush()
    date = format_turn_date(state.current_turn, state.max_turns, obscured_date_for(state, config))
    console.print(f"\n[bold]游戏结束[/bold]（{date}）")
    _print_characters(state)


def cmd_exec(args: argparse.Namespace) -> None:
    config, content = _load(args)
    orchestrator = EventOrchestrator(content.catalog, config)
    state = _start(args, config, content, orchestrator)
    seen = len(state.logs)
    state = orchestrator.run_console_command(state, args.command_text, args.character)
    _print_logs(state.logs[seen:])
    _print_characters(state)


def cmd_check(args: argparse.Namespace) -> None:
    config, content = _load(args)
    orchestrator = EventOrchestrator(content.catalog, config)
    state = _start(args, config, content, orchestrator)
    character_id = args.character or config.player_id
    character = state.find_character(character_id)
    if character is None:
        console.print(f"[red]角色不存在: {character_id}[/red]")
        sys.exit(1)
    ctx = WorldContext(state.characters, state.current_turn, config, orchestrator.rng)
    result = evaluate_condition(args.condition, character, ctx)
    colour = "green" if result else "red"
    console.print(f"[{colour}]{args.condition} → {result}[/{colour}]")


def _add_common(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("content", help="内容文件或目录（YAML）")
    sub.add_argument("--config", "-c", default=None, help="引擎配置文件（YAML）")
    sub.add_argument("--name", default="训练员", help="玩家名称")
    sub.add_argument("--gender", choices=["男", "女"], default="男", help="玩家性别")
    sub.add_argument("--tags", nargs="*", default=[], help="玩家开局标签")
    sub.add_argument("--companion", default=None, help="担当马娘的模板 ID（默认随机）")
    sub.add_argument("--roster", nargs="*", default=[], help="其他登场角色的模板 ID（非队员）")
    sub.add_argument("--seed", type=int, default=None, help="随机数种子")
    sub.add_argument("--verbose", "-v", action="store_true", help="详细日志输出")


def main() -> None:
    """CLI 主入口。"""
    from dotenv import load_dotenv
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="tracen",
        description="tracen - 特雷森学园生活模拟事件脚本引擎",
    )
    subparsers = parser.add_subparsers(dest="command", help="可用命令")

    play_parser = subparsers.add_parser("play", help="逐回合运行游戏")
    _add_common(play_parser)
    play_parser.add_argument("--turns", type=int, default=0, help="运行到第几回合（默认最大回合）")
    play_parser.add_argument("--auto", action="store_true", help="自动随机选择选项")

    exec_parser = subparsers.add_parser("exec", help="开发者控制台：执行一条指令串")
    _add_common(exec_parser)
    exec_parser.add_argument("command_text", metavar="COMMAND", help="指令串，如 '属性变更 体力 -10'")
    exec_parser.add_argument("--character", default=None, help="目标角色实例 ID（默认训练员）")

    check_parser = subparsers.add_parser("check", help="判别一个条件表达式")
    _add_common(check_parser)
    check_parser.add_argument("condition", help="条件表达式")
    check_parser.add_argument("--character", default=None, help="判别主体实例 ID（默认玩家）")

    args = parser.parse_args()

    # 配置日志
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )

    if args.command == "play":
        cmd_play(args)
    elif args.command == "exec":
        cmd_exec(args)
    elif args.command == "check":
        cmd_check(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
