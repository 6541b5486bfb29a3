"""事件相关数据模型（作者编写的静态内容，引擎只读）。"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

UNLIMITED_TRIGGERS = -1


class EventOption(BaseModel):
    """交互事件的一个选项。"""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(default="", alias="显示文本", description="选项显示文本（文本模板）")
    action: str = Field(default="", alias="操作指令", description="选择后执行的指令串")
    visible_if: str = Field(default="", alias="可见条件", description="可见条件，为空则总是可见")


class EventBranch(BaseModel):
    """逻辑分支：选项/操作执行后按声明顺序判别，首个成立的分支生效。"""

    model_config = ConfigDict(populate_by_name=True)

    note: str = Field(default="", alias="注释", description="作者注释")
    condition: str = Field(default="", alias="判别式", description="判别式，如 '已选序号 == 1 && 随机(1,100) > 50'")
    action: str = Field(default="", alias="操作指令", description="成立后执行的指令串")
    next_event_id: str | None = Field(
        default=None, alias="跳转事件ID", description="可选的强制后续事件，覆盖指令中的跳转"
    )


class GameEvent(BaseModel):
    """事件配置。"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="事件 ID")
    note: str = Field(default="", alias="注释", description="作者注释")
    weight: float = Field(default=1, alias="权重", description="随机选择权重")
    max_triggers: int = Field(
        default=UNLIMITED_TRIGGERS, alias="可触发次数", description="每个角色可触发次数，-1 为不限"
    )
    tags: list[str] = Field(default_factory=list, alias="标签组", description="事件标签，如 '工作'、'结局'")
    trigger: str = Field(default="", alias="触发条件", description="触发条件表达式")
    pre_action: str = Field(default="", alias="预操作指令", description="决定交互性之前静默执行的指令")
    title: str = Field(default="", alias="标题", description="标题（文本模板）")
    body: str = Field(default="", alias="正文", description="正文（文本模板）")
    action: str = Field(default="", alias="操作指令", description="直接执行的指令串")
    options: list[EventOption] = Field(default_factory=list, alias="选项组", description="选项组")
    branches: list[EventBranch] = Field(default_factory=list, alias="分支组", description="分支组")

    @property
    def is_interactive(self) -> bool:
        """有且仅有非空选项组的事件需要玩家选择。"""
        return len(self.options) > 0

    def exhausted_for(self, triggered_count: int) -> bool:
        return self.max_triggers != UNLIMITED_TRIGGERS and triggered_count >= self.max_triggers


class EventCatalog:
    """事件目录：保持作者声明顺序，并支持按 ID 查找。"""

    def __init__(self, events: list[GameEvent] | None = None):
        self._events: list[GameEvent] = list(events or [])
        self._by_id: dict[str, GameEvent] = {}
        for event in self._events:
            # 重复 ID 时保留第一个
            self._by_id.setdefault(event.id, event)

    def __iter__(self):
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._by_id

    def get(self, event_id: str | None) -> GameEvent | None:
        if not event_id:
            return None
        return self._by_id.get(event_id)
