"""角色群体快照之间的差异摘要（写入事件日志）。"""

from __future__ import annotations

from tracen.models.character import GENERAL_ATTRIBUTES, RACE_ATTRIBUTES, RELATION_KINDS, Character, Relationship


def _signed(delta: int) -> str:
    return f"+{delta}" if delta > 0 else str(delta)


def character_diffs(
    old: Character, new: Character, population: list[Character], player_id: str
) -> list[str]:
    """单个角色的变化：属性增减、标签得失、关系走向（只显示箭头）。"""
    diffs: list[str] = []

    for name in GENERAL_ATTRIBUTES:
        delta = new.general.get(name, 0) - old.general.get(name, 0)
        if delta:
            diffs.append(f"{name}{_signed(delta)}")
    for name in RACE_ATTRIBUTES:
        delta = new.race.get(name, 0) - old.race.get(name, 0)
        if delta:
            diffs.append(f"{name}{_signed(delta)}")

    old_tags = [t.template_id for t in old.tags]
    new_tags = [t.template_id for t in new.tags]
    diffs.extend(f"获得[{t}]" for t in new_tags if t not in old_tags)
    diffs.extend(f"移除[{t}]" for t in old_tags if t not in new_tags)

    names = {c.instance_id: c.name for c in population}
    target_ids = list(dict.fromkeys([*old.relations, *new.relations]))
    for target_id in target_ids:
        before = old.relations.get(target_id) or Relationship()
        after = new.relations.get(target_id) or Relationship()
        label = ""
        if target_id != player_id and target_id in names:
            label = f"({names[target_id]})"
        for kind in RELATION_KINDS:
            if before.get(kind) != after.get(kind):
                arrow = "↑" if after.get(kind) > before.get(kind) else "↓"
                diffs.append(f"{kind}{label}{arrow}")

    return diffs


def generate_state_diff_log(
    old: list[Character],
    new: list[Character],
    subject_id: str,
    player_id: str = "p1",
) -> list[str]:
    """生成差异摘要行。

    当前角色排在最前且不带名称前缀，其他角色为 '名称：...'；
    只在新旧快照中都存在的角色参与比较。
    """
    before = {c.instance_id: c for c in old}
    lines: list[str] = []

    subject_new = next((c for c in new if c.instance_id == subject_id), None)
    if subject_new is not None and subject_id in before:
        diffs = character_diffs(before[subject_id], subject_new, new, player_id)
        if diffs:
            lines.append(", ".join(diffs))

    for character in new:
        if character.instance_id == subject_id or character.instance_id not in before:
            continue
        diffs = character_diffs(before[character.instance_id], character, new, player_id)
        if diffs:
            lines.append(f"{character.name}：{', '.join(diffs)}")

    return lines
