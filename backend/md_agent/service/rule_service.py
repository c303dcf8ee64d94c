from typing import List

from md_agent.response.exception.exceptions import (
    MergeUnavailableException,
    ResourceNotFoundException,
    ValidationException,
)
from md_agent.schema.rule_schemas import CreateRuleResponse, Rule, RuleDraft, RuleUpdateRequest
from md_agent.service.merge_service import RuleMergeService
from md_agent.storage.storage_service import StorageService
from md_agent.utils.helper.helper import generate_id, now_iso
from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)


class RuleService:
    """
    规则管理。

    新规则与已有规则类型相同时不会作为新记录保存，而是合并进最早创建的同类型规则，
    其余同类型规则删除，保证每种类型最多一条规则。合并失败时退回为直接新增。
    """

    def __init__(self, storage: StorageService, merge_service: RuleMergeService):
        self.storage = storage
        self.merge_service = merge_service

    def list_rules(self) -> List[Rule]:
        return self.storage.list_rules()

    async def create_rule(self, draft: RuleDraft) -> CreateRuleResponse:
        rule_type = (draft.type or "").strip()
        if not rule_type or not draft.pattern.strip() or not draft.description.strip():
            raise ValidationException(message="请提供完整的规则信息（type, pattern, description不能为空）")
        if draft.name is not None and not draft.name.strip():
            raise ValidationException(message="规则名称不能为空字符串")

        timestamp = now_iso()
        proposed = Rule(
            id=generate_id("temp"),
            type=rule_type,
            name=draft.name or f"{rule_type}规则",
            pattern=draft.pattern,
            description=draft.description,
            examples=list(draft.examples),
            created_at=timestamp,
            updated_at=timestamp,
        )
        return await self.merge_or_insert(proposed)

    async def merge_or_insert(self, proposed: Rule) -> CreateRuleResponse:
        """已有同类型规则时尝试智能合并，否则（或合并失败时）作为新规则保存"""
        same_type = [rule for rule in self.storage.list_rules() if rule.type == proposed.type]

        if same_type:
            logger.info(f"发现 {len(same_type)} 个相同类型({proposed.type})的规则，开始智能合并...")
            try:
                result = await self.merge_service.merge(proposed, same_type)
            except MergeUnavailableException as exc:
                logger.warning(f"智能合并失败，将直接添加新规则: {exc.message}")
            else:
                updates = result.merged_rule.model_dump()
                updates["type"] = proposed.type
                updated = self.storage.update_rule(result.target_rule_id, updates)
                if updated is not None:
                    for rule_id in result.delete_rule_ids:
                        self.storage.delete_rule(rule_id)
                    logger.info(f"智能合并完成，合并了 {result.merged_count} 个规则")
                    return CreateRuleResponse(
                        rule=updated,
                        merged=True,
                        merged_count=result.merged_count,
                        message=f"规则智能合并成功，合并了 {result.merged_count} 个相同类型的规则",
                    )
                logger.warning(f"合并目标规则 {result.target_rule_id} 已不存在，将直接添加新规则")

        rule = proposed.model_copy(update={"id": generate_id("rule", proposed.type)})
        self.storage.add_rules([rule])
        return CreateRuleResponse(rule=rule, merged=False, merged_count=0, message="规则添加成功")

    async def save_extracted_rules(self, rules: List[Rule], merge: bool = True) -> List[Rule]:
        """
        保存提取出的规则

        merge 为 True 时逐条走同类型合并流程，返回实际保存（或合并后）的规则
        """
        if not merge:
            return self.storage.add_rules(rules)
        saved: List[Rule] = []
        for rule in rules:
            response = await self.merge_or_insert(rule)
            saved = [item for item in saved if item.id != response.rule.id]
            saved.append(response.rule)
        return saved

    def update_rule(self, rule_id: str, request: RuleUpdateRequest) -> Rule:
        if request.type is not None and not request.type.strip():
            raise ValidationException(message="规则类型不能为空字符串")
        if request.name is not None and not request.name.strip():
            raise ValidationException(message="规则名称不能为空字符串")
        updated = self.storage.update_rule(rule_id, request.model_dump(exclude_none=True))
        if updated is None:
            raise ResourceNotFoundException(message="规则不存在", details={"rule_id": rule_id})
        return updated

    def delete_rule(self, rule_id: str) -> None:
        if not self.storage.delete_rule(rule_id):
            raise ResourceNotFoundException(message="规则不存在", details={"rule_id": rule_id})

    def get_rules_for_conversion(self, rule_ids: List[str]) -> List[Rule]:
        """按请求顺序返回存在的规则，一条都找不到时抛出 404"""
        found = {rule.id: rule for rule in self.storage.get_rules_by_ids(rule_ids)}
        rules = [found[rule_id] for rule_id in dict.fromkeys(rule_ids) if rule_id in found]
        if not rules:
            raise ResourceNotFoundException(message="未找到指定的规则", details={"rule_ids": rule_ids})
        return rules
