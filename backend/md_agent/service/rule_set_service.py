from typing import List

from md_agent.response.exception.exceptions import ResourceNotFoundException, ValidationException
from md_agent.schema.rule_schemas import RuleSet, RuleSetCreateRequest, RuleSetUpdateRequest
from md_agent.storage.storage_service import StorageService
from md_agent.utils.helper.helper import generate_id, now_iso


class RuleSetService:
    """规则集只保存规则ID的引用，删除规则集不影响规则本身"""

    def __init__(self, storage: StorageService):
        self.storage = storage

    def list_rule_sets(self) -> List[RuleSet]:
        return self.storage.list_rule_sets()

    def get_rule_set(self, rule_set_id: str) -> RuleSet:
        rule_set = self.storage.get_rule_set_by_id(rule_set_id)
        if rule_set is None:
            raise ResourceNotFoundException(message="规则集不存在", details={"rule_set_id": rule_set_id})
        return rule_set

    def create_rule_set(self, request: RuleSetCreateRequest) -> RuleSet:
        if not request.name.strip():
            raise ValidationException(message="规则集名称不能为空")
        rule_set = RuleSet(
            id=generate_id("ruleset"),
            name=request.name.strip(),
            description=request.description,
            rule_ids=list(dict.fromkeys(request.rule_ids)),
            created_at=now_iso(),
        )
        return self.storage.add_rule_set(rule_set)

    def update_rule_set(self, rule_set_id: str, request: RuleSetUpdateRequest) -> RuleSet:
        if request.name is not None and not request.name.strip():
            raise ValidationException(message="规则集名称不能为空")
        updates = request.model_dump(exclude_none=True)
        if "rule_ids" in updates:
            updates["rule_ids"] = list(dict.fromkeys(updates["rule_ids"]))
        updated = self.storage.update_rule_set(rule_set_id, updates)
        if updated is None:
            raise ResourceNotFoundException(message="规则集不存在", details={"rule_set_id": rule_set_id})
        return updated

    def delete_rule_set(self, rule_set_id: str) -> None:
        if not self.storage.delete_rule_set(rule_set_id):
            raise ResourceNotFoundException(message="规则集不存在", details={"rule_set_id": rule_set_id})
