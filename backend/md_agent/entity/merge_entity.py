from dataclasses import dataclass, field
from typing import List, Sequence

from md_agent.schema.rule_schemas import Rule


@dataclass(frozen=True)
class MergePlan:
    """
    同类型规则的合并计划

    target: 合并结果写入的规则（最早创建的那条）
    delete_ids: 合并后需要删除的其余同类型规则ID
    """
    rule_type: str
    target: Rule
    delete_ids: List[str] = field(default_factory=list)

    @property
    def merged_count(self) -> int:
        return 1 + len(self.delete_ids)


def order_by_creation(rules: Sequence[Rule]) -> List[Rule]:
    """按创建时间从早到晚排序，时间相同时保持原有顺序"""
    return sorted(rules, key=lambda rule: rule.created_at)


def plan_merge(rule_type: str, existing: Sequence[Rule]) -> MergePlan:
    """
    决定同类型规则折叠到哪一条：目标为最早创建的规则，其余全部删除。

    只依赖规则本身，不调用模型，可以单独测试。
    """
    same_type = [rule for rule in existing if rule.type == rule_type]
    if not same_type:
        raise ValueError(f"没有类型为 {rule_type} 的已有规则")
    ordered = order_by_creation(same_type)
    return MergePlan(
        rule_type=rule_type,
        target=ordered[0],
        delete_ids=[rule.id for rule in ordered[1:]],
    )
