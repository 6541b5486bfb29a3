"""回合与日历换算。

每年 24 个回合，每月上旬/下旬两个回合；回合 0 为开局前。
"""

from __future__ import annotations

from pydantic import BaseModel, Field

TURNS_PER_YEAR = 24
ENDING_LABEL = "结局"
OBSCURED_LABEL = "?年?月?日"


class TurnInfo(BaseModel):
    """回合对应的日期信息。"""

    year: int = Field(description="第几年，从 1 开始")
    month: int = Field(description="月份 1-12")
    is_late: bool = Field(description="是否为下旬")
    period: str = Field(description="'上旬' 或 '下旬'")
    label: str = Field(description="如 '第1年 4月 上旬'")


def get_turn_info(turn: int) -> TurnInfo:
    adjusted = max(0, turn - 1)
    year = adjusted // TURNS_PER_YEAR + 1
    month = (adjusted % TURNS_PER_YEAR) // 2 + 1
    is_late = adjusted % 2 == 1
    period = "下旬" if is_late else "上旬"
    return TurnInfo(
        year=year,
        month=month,
        is_late=is_late,
        period=period,
        label=f"第{year}年 {month}月 {period}",
    )


def format_turn_date(turn: int, max_turns: int = 72, obscured: bool = False) -> str:
    """格式化回合日期。

    Args:
        turn: 回合数。
        max_turns: 超过该回合显示为结局。
        obscured: 为 True 时日期被遮蔽（例如玩家处于监禁状态），由调用方根据当前状态决定。
    """
    if obscured:
        return OBSCURED_LABEL
    if turn > max_turns:
        return ENDING_LABEL
    return get_turn_info(turn).label
