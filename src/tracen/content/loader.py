"""从 YAML 加载作者编写的内容（角色模板、标签模板、事件）。

只做结构校验（pydantic），不校验脚本语法：脚本错误在运行时降级为空操作。

文件格式::

    角色:
      - id: 训练员
        名称: 训练员
        isTrainer: true
    标签:
      - id: 多重人格
        显示名: 多重人格
    事件:
      - id: 晨练
        触发条件: 属性.体力 > 30
        正文: "{当前角色.名称}去晨练了。"
        操作指令: 属性变更 体力 -10; 属性变更 速度 3

也接受英文键 characters / tags / events。传入目录时按文件名顺序合并其中所有 .yaml / .yml 文件。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from tracen.engine.errors import ContentLoadError
from tracen.models.character import CharacterTemplate, TagTemplate
from tracen.models.event import EventCatalog, GameEvent

logger = logging.getLogger(__name__)

_SECTION_KEYS: dict[str, tuple[str, ...]] = {
    "characters": ("角色", "characters"),
    "tags": ("标签", "tags"),
    "events": ("事件", "events"),
}


class ContentBundle(BaseModel):
    """一份完整的游戏内容。"""

    characters: dict[str, CharacterTemplate] = Field(default_factory=dict, description="模板 ID -> 角色模板")
    tags: dict[str, TagTemplate] = Field(default_factory=dict, description="标签 ID -> 标签模板")
    events: list[GameEvent] = Field(default_factory=list, description="事件（保持声明顺序）")

    @property
    def catalog(self) -> EventCatalog:
        return EventCatalog(self.events)

    def merge(self, other: ContentBundle) -> ContentBundle:
        return ContentBundle(
            characters={**self.characters, **other.characters},
            tags={**self.tags, **other.tags},
            events=[*self.events, *other.events],
        )


def _section(data: dict[str, Any], name: str) -> list[dict[str, Any]]:
    for key in _SECTION_KEYS[name]:
        if key in data:
            return data[key] or []
    return []


def parse_content(data: dict[str, Any] | None, source: str = "<memory>") -> ContentBundle:
    """把已解析的 YAML 字典转换为 ContentBundle。"""
    if data is None:
        return ContentBundle()
    if not isinstance(data, dict):
        raise ContentLoadError(f"内容文件顶层必须是映射: {source}")
    try:
        characters = [CharacterTemplate.model_validate(c) for c in _section(data, "characters")]
        tags = [TagTemplate.model_validate(t) for t in _section(data, "tags")]
        events = [GameEvent.model_validate(e) for e in _section(data, "events")]
    except ValidationError as e:
        raise ContentLoadError(f"内容结构无效 ({source}): {e}") from e

    return ContentBundle(
        characters={c.id: c for c in characters},
        tags={t.id: t for t in tags},
        events=events,
    )


def _load_file(path: Path) -> ContentBundle:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ContentLoadError(f"无法读取内容文件 {path}: {e}") from e
    bundle = parse_content(data, str(path))
    logger.debug(
        "已加载 %s: %d 个角色, %d 个标签, %d 个事件",
        path,
        len(bundle.characters),
        len(bundle.tags),
        len(bundle.events),
    )
    return bundle


def load_content(path: str | Path) -> ContentBundle:
    """加载内容文件或目录。

    Raises:
        ContentLoadError: 文件不存在、无法解析或结构无效时。
    """
    path = Path(path)
    if path.is_dir():
        bundle = ContentBundle()
        for file in sorted([*path.glob("*.yaml"), *path.glob("*.yml")]):
            bundle = bundle.merge(_load_file(file))
        return bundle
    if not path.exists():
        raise ContentLoadError(f"内容文件不存在: {path}")
    return _load_file(path)
