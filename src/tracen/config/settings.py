"""全局配置。"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """事件脚本引擎配置。"""

    # ── 角色关键字 ──
    player_id: str = Field(default="p1", description="玩家（训练员）角色的实例 ID")
    trainer_template_id: str = Field(default="训练员", description="训练员角色模板 ID")
    instance_id_prefixes: tuple[str, ...] = Field(
        default=("c", "p", "npc"),
        description="变量中的字符串值以这些前缀开头时，按实例 ID 解析角色",
    )
    default_calling: str = Field(default="训练员", description="称呼列表无匹配时的默认称呼")

    # ── 特殊标签 ──
    split_personality_tag: str = Field(default="多重人格", description="多重人格标签 ID")
    wedding_ring_tag: str = Field(default="婚戒", description="婚戒标签 ID（爱情增长 ×0.2）")
    pregnancy_tag: str = Field(default="怀孕", description="同房指令附加的标签 ID")
    pregnancy_layers: int = Field(default=20, description="怀孕标签的层数")
    overworked_tag: str = Field(default="社畜", description="社畜标签 ID")
    confinement_tag: str = Field(default="监禁", description="玩家持有时日期显示被遮蔽的标签 ID")

    # ── 事件标签 ──
    ending_event_tag: str = Field(default="结局", description="带此标签的事件结算后游戏结束")
    work_event_tag: str = Field(default="工作", description="工作类事件标签")

    # ── 概率 ──
    pairing_chance: float = Field(default=0.1, ge=0.0, le=1.0, description="同房指令的怀孕概率")
    split_auto_choice_chance: float = Field(
        default=0.5, ge=0.0, le=1.0, description="多重人格在交互事件中自动选择的概率"
    )
    split_forget_chance: float = Field(
        default=0.2, ge=0.0, le=1.0, description="多重人格在非交互事件中遗忘正文的概率"
    )

    # ── 文案 ──
    memory_lost_text: str = Field(
        default="{name}没有这段记忆。", description="多重人格遗忘时的日志文本"
    )
    unknown_choice_text: str = Field(
        default="你不知道做出了什么选择", description="多重人格自动选择时显示的选项文本"
    )
    split_compensation_command: str = Field(
        default="属性变更 体力 5; 属性变更 精力 5",
        description="多重人格自动选择时附加在选项指令前的补偿指令",
    )

    # ── 流程 ──
    max_turns: int = Field(default=72, description="最大回合数，超出后日期显示为结局")
    max_chain_depth: int = Field(
        default=32, ge=1, description="事件链式跳转的最大深度（防止内容错误导致无限递归）"
    )
    debug: bool = Field(default=False, description="调试模式：链深度超限时抛出异常而非截断")
    seed: int | None = Field(default=None, description="随机数种子（None 表示不固定）")


def load_config(path: str | Path | None = None) -> EngineConfig:
    """加载引擎配置。

    优先级：环境变量（含 .env）> YAML 文件 > 默认值。
    支持的环境变量：TRACEN_SEED、TRACEN_DEBUG、TRACEN_MAX_CHAIN_DEPTH。
    """
    load_dotenv()

    data: dict = {}
    if path is not None:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.debug("已加载配置文件: %s", path)

    if seed := os.getenv("TRACEN_SEED"):
        data["seed"] = int(seed)
    if debug := os.getenv("TRACEN_DEBUG"):
        data["debug"] = debug.strip().lower() in {"1", "true", "yes", "on"}
    if depth := os.getenv("TRACEN_MAX_CHAIN_DEPTH"):
        data["max_chain_depth"] = int(depth)

    return EngineConfig.model_validate(data)
