"""角色相关数据模型。"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 通用属性：生存状态（频繁变化）+ 基础素质（稳定）
SURVIVAL_ATTRIBUTES: tuple[str, ...] = ("体力", "精力", "心情", "爱欲")
STABLE_ATTRIBUTES: tuple[str, ...] = ("体质", "学识", "魅力", "财富")
GENERAL_ATTRIBUTES: tuple[str, ...] = SURVIVAL_ATTRIBUTES + STABLE_ATTRIBUTES

# 竞赛属性
RACE_ATTRIBUTES: tuple[str, ...] = ("速度", "耐力", "力量", "毅力", "智慧")

RELATION_KINDS: tuple[str, ...] = ("友情", "爱情")

ATTRIBUTE_MIN = 0
ATTRIBUTE_MAX = 100

_DEFAULT_GENERAL: dict[str, int] = {
    "体力": 100,
    "精力": 100,
    "心情": 50,
    "爱欲": 0,
    "体质": 20,
    "学识": 20,
    "魅力": 20,
    "财富": 20,
}

Gender = Literal["男", "女"]


def clamp(value: int, low: int = ATTRIBUTE_MIN, high: int = ATTRIBUTE_MAX) -> int:
    return max(low, min(high, value))


def _fill_general(value: dict[str, int] | None) -> dict[str, int]:
    return {**_DEFAULT_GENERAL, **(value or {})}


def _fill_race(value: dict[str, int] | None) -> dict[str, int]:
    return {**{k: 0 for k in RACE_ATTRIBUTES}, **(value or {})}


class RuntimeTag(BaseModel):
    """角色身上的运行时标签。层数 < 1 时标签被移除。"""

    model_config = ConfigDict(populate_by_name=True)

    template_id: str = Field(alias="templateId", description="标签模板 ID")
    added_turn: int = Field(default=0, alias="添加日期", description="获得标签时的回合")
    layers: int = Field(default=1, alias="层数", description="叠加层数")
    targets: list[str] = Field(
        default_factory=list, alias="目标", description="关系类标签指向的角色实例 ID"
    )


class Relationship(BaseModel):
    """单向关系分数（0-100）。"""

    model_config = ConfigDict(populate_by_name=True)

    friendship: int = Field(default=0, alias="友情", description="友情")
    romance: int = Field(default=0, alias="爱情", description="爱情")

    def get(self, kind: str) -> int:
        match kind:
            case "友情":
                return self.friendship
            case "爱情":
                return self.romance
            case _:
                return 0

    def adjust(self, kind: str, delta: int) -> None:
        """按类型累加并裁剪到 [0, 100]。未知类型忽略。"""
        match kind:
            case "友情":
                self.friendship = clamp(self.friendship + delta)
            case "爱情":
                self.romance = clamp(self.romance + delta)


class CallingRule(BaseModel):
    """称呼规则：判别式为空或成立时使用该称呼，首条匹配生效。"""

    model_config = ConfigDict(populate_by_name=True)

    condition: str = Field(default="", alias="判别式", description="判别式，为空则默认匹配")
    calling: str = Field(alias="称呼", description="对训练员的称呼")


class TagTemplate(BaseModel):
    """标签模板（静态内容）。"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="标签 ID")
    display_name: str = Field(default="", alias="显示名", description="显示名称")
    description: str = Field(default="", alias="描述", description="描述")
    rarity: int = Field(default=1, alias="稀有度", description="稀有度")
    exclusive_with: list[str] = Field(default_factory=list, alias="互斥标签", description="互斥标签")
    human_allowed: bool = Field(default=True, alias="人类可用", description="人类可用")
    uma_allowed: bool = Field(default=True, alias="马娘可用", description="马娘可用")
    selectable_at_start: bool = Field(default=False, alias="开局可选", description="开局可选")
    show_layers: bool = Field(default=False, alias="显示层数", description="是否显示层数")


class CharacterTemplate(BaseModel):
    """角色模板（静态内容）。"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="模板 ID")
    name: str = Field(alias="名称", description="默认名称")
    gender: Gender = Field(default="女", alias="性别", description="性别")
    initial_tags: list[str] = Field(default_factory=list, alias="初始标签", description="初始标签")
    general: dict[str, int] = Field(
        default_factory=lambda: dict(_DEFAULT_GENERAL), alias="通用属性", description="通用属性"
    )
    race: dict[str, int] = Field(
        default_factory=lambda: _fill_race(None), alias="竞赛属性", description="竞赛属性"
    )
    aptitudes: dict[str, str] | None = Field(default=None, alias="适性", description="适性（仅展示）")
    is_trainer: bool = Field(default=False, alias="isTrainer", description="是否为训练员模板")
    calling_rules: list[CallingRule] = Field(
        default_factory=list, alias="称呼列表", description="对训练员的称呼规则"
    )

    @field_validator("general", mode="before")
    @classmethod
    def complete_general(cls, value: dict[str, int] | None) -> dict[str, int]:
        return _fill_general(value)

    @field_validator("race", mode="before")
    @classmethod
    def complete_race(cls, value: dict[str, int] | None) -> dict[str, int]:
        return _fill_race(value)


class Character(BaseModel):
    """运行时角色。整局游戏中原地修改，实例 ID 创建后不变。"""

    model_config = ConfigDict(populate_by_name=True)

    instance_id: str = Field(alias="instanceId", description="实例 ID（唯一且不可变）")
    template_id: str = Field(alias="templateId", description="模板 ID")
    name: str = Field(alias="名称", description="显示名称")
    gender: Gender = Field(default="女", alias="性别", description="性别")
    general: dict[str, int] = Field(
        default_factory=lambda: dict(_DEFAULT_GENERAL), alias="通用属性", description="通用属性"
    )
    race: dict[str, int] = Field(
        default_factory=lambda: _fill_race(None), alias="竞赛属性", description="竞赛属性"
    )
    aptitudes: dict[str, str] | None = Field(default=None, alias="适性", description="适性（仅展示）")
    tags: list[RuntimeTag] = Field(default_factory=list, alias="标签组", description="标签组")
    triggered_events: dict[str, int] = Field(
        default_factory=dict, alias="已触发事件", description="事件 ID -> 已触发次数"
    )
    relations: dict[str, Relationship] = Field(
        default_factory=dict, alias="关系列表", description="对方实例 ID -> 关系"
    )
    calling_rules: list[CallingRule] = Field(
        default_factory=list, alias="称呼列表", description="对训练员的称呼规则"
    )
    in_team: bool = Field(default=False, alias="inTeam", description="是否在队伍中")
    recruited_at: int | None = Field(default=None, alias="recruitedAt", description="入队回合")

    @field_validator("general", mode="before")
    @classmethod
    def complete_general(cls, value: dict[str, int] | None) -> dict[str, int]:
        return _fill_general(value)

    @field_validator("race", mode="before")
    @classmethod
    def complete_race(cls, value: dict[str, int] | None) -> dict[str, int]:
        return _fill_race(value)

    # ── 标签 ──

    def get_tag(self, tag_id: str) -> RuntimeTag | None:
        for tag in self.tags:
            if tag.template_id == tag_id:
                return tag
        return None

    def has_tag(self, tag_id: str) -> bool:
        return self.get_tag(tag_id) is not None

    def tag_layers(self, tag_id: str) -> int:
        tag = self.get_tag(tag_id)
        return tag.layers if tag else 0

    def remove_tag(self, tag_id: str) -> bool:
        before = len(self.tags)
        self.tags = [t for t in self.tags if t.template_id != tag_id]
        return len(self.tags) != before

    # ── 属性 ──

    def attribute(self, name: str) -> int | None:
        """按名称读取属性：先通用属性，再竞赛属性。"""
        if name in self.general:
            return self.general[name]
        if name in self.race:
            return self.race[name]
        return None

    # ── 关系 ──

    def relation(self, target_id: str) -> Relationship:
        """读取对某角色的关系；不存在时返回 {0, 0} 且不写入。"""
        return self.relations.get(target_id) or Relationship()

    def adjust_relation(self, target_id: str, kind: str, delta: int) -> None:
        entry = self.relations.setdefault(target_id, Relationship())
        entry.adjust(kind, delta)


class CharacterRef(BaseModel):
    """变量作用域中保存的角色引用。使用时总是按实例 ID 重新查找当前角色。"""

    instance_id: str = Field(description="角色实例 ID")
    name: str = Field(default="", description="引用创建时的角色名称")

    @classmethod
    def of(cls, character: Character) -> CharacterRef:
        return cls(instance_id=character.instance_id, name=character.name)
