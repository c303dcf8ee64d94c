import asyncio
import json

import pytest

from md_agent.response.exception.exceptions import ResourceNotFoundException, ValidationException
from md_agent.schema.rule_schemas import RuleDraft, RuleUpdateRequest
from md_agent.service.merge_service import RuleMergeService
from md_agent.service.rule_service import RuleService

from conftest import StubProvider, make_rule

ORIGINAL_CREATED_AT = "2024-01-01T00:00:00.000Z"


def build_service(storage, responses=None):
    provider = StubProvider(responses)
    return RuleService(storage, RuleMergeService(provider)), provider


def heading_draft(**kwargs) -> RuleDraft:
    data = {"type": "heading", "pattern": "## {text}", "description": "二级标题", "examples": ["## Sub"]}
    data.update(kwargs)
    return RuleDraft(**data)


def test_create_rule_without_same_type_inserts_new_record(storage):
    service, provider = build_service(storage)

    response = asyncio.run(service.create_rule(heading_draft()))

    assert response.merged is False
    assert response.merged_count == 0
    assert response.rule.id.startswith("rule_heading_")
    assert response.rule.name == "heading规则"
    assert [rule.id for rule in storage.list_rules()] == [response.rule.id]
    assert provider.calls == []


def test_same_type_rule_is_merged_into_existing_one(storage):
    storage.add_rules([make_rule("rule_old", created_at=ORIGINAL_CREATED_AT)])
    merged = {"name": "标题规则", "pattern": "#{1,2} {text}", "description": "一二级标题", "examples": ["# Title", "## Sub"]}
    service, provider = build_service(storage, [json.dumps({"mergedRule": merged}, ensure_ascii=False)])

    response = asyncio.run(service.create_rule(heading_draft()))

    rules = [rule for rule in storage.list_rules() if rule.type == "heading"]
    assert len(rules) == 1
    stored = rules[0]
    assert stored.id == "rule_old"
    assert stored.created_at == ORIGINAL_CREATED_AT
    assert stored.updated_at != ORIGINAL_CREATED_AT
    assert stored.pattern == "#{1,2} {text}"
    assert response.merged is True
    assert response.merged_count == 1
    assert response.rule == stored


def test_merge_deletes_every_other_same_type_rule(storage):
    storage.add_rules([
        make_rule("rule_b", created_at="2024-02-01T00:00:00.000Z"),
        make_rule("rule_a", created_at=ORIGINAL_CREATED_AT),
        make_rule("rule_bold", rule_type="bold", pattern="**{text}**"),
    ])
    service, _ = build_service(storage, [json.dumps({"mergedRule": {"pattern": "#+ {text}"}})])

    response = asyncio.run(service.create_rule(heading_draft()))

    assert response.merged_count == 2
    assert response.message == "规则智能合并成功，合并了 2 个相同类型的规则"
    assert sorted(rule.id for rule in storage.list_rules()) == ["rule_a", "rule_bold"]


def test_failed_merge_falls_back_to_insert(storage):
    storage.add_rules([make_rule("rule_old", created_at=ORIGINAL_CREATED_AT)])
    service, _ = build_service(storage, ["this is not json"])

    response = asyncio.run(service.create_rule(heading_draft()))

    assert response.merged is False
    assert response.rule.id != "rule_old"
    assert len(storage.list_rules()) == 2
    assert storage.get_rule_by_id("rule_old").updated_at == ORIGINAL_CREATED_AT


@pytest.mark.parametrize("draft", [
    RuleDraft(type="", pattern="x", description="y"),
    RuleDraft(type="heading", pattern="  ", description="y"),
    RuleDraft(type="heading", pattern="x", description=""),
    RuleDraft(type="heading", name="  ", pattern="x", description="y"),
])
def test_incomplete_draft_is_rejected(storage, draft):
    service, _ = build_service(storage)

    with pytest.raises(ValidationException):
        asyncio.run(service.create_rule(draft))
    assert storage.list_rules() == []


def test_extracted_rules_are_folded_by_type(storage):
    storage.add_rules([make_rule("rule_old", created_at=ORIGINAL_CREATED_AT)])
    service, _ = build_service(storage, [json.dumps({"mergedRule": {"pattern": "#+ {text}"}})])
    extracted = [
        make_rule("rule_heading_new", pattern="## {text}", created_at="2024-06-01T00:00:00.000Z"),
        make_rule("rule_bold_new", rule_type="bold", pattern="**{text}**", created_at="2024-06-01T00:00:00.000Z"),
    ]

    saved = asyncio.run(service.save_extracted_rules(extracted))

    assert [rule.type for rule in saved] == ["heading", "bold"]
    assert saved[0].id == "rule_old"
    assert sorted(rule.type for rule in storage.list_rules()) == ["bold", "heading"]


def test_extracted_rules_are_appended_when_merge_disabled(storage):
    storage.add_rules([make_rule("rule_old")])
    service, provider = build_service(storage)

    asyncio.run(service.save_extracted_rules([make_rule("rule_new", pattern="## {text}")], merge=False))

    assert len(storage.list_rules()) == 2
    assert provider.calls == []


def test_update_and_delete_rule(storage):
    storage.add_rules([make_rule("rule_1", created_at=ORIGINAL_CREATED_AT)])
    service, _ = build_service(storage)

    updated = service.update_rule("rule_1", RuleUpdateRequest(description="新的描述"))

    assert updated.description == "新的描述"
    assert updated.created_at == ORIGINAL_CREATED_AT
    service.delete_rule("rule_1")
    assert storage.list_rules() == []
    with pytest.raises(ResourceNotFoundException):
        service.delete_rule("rule_1")
    with pytest.raises(ResourceNotFoundException):
        service.update_rule("rule_1", RuleUpdateRequest(name="x"))


def test_rules_for_conversion_keep_request_order(storage):
    storage.add_rules([make_rule("a"), make_rule("b", rule_type="bold")])
    service, _ = build_service(storage)

    assert [rule.id for rule in service.get_rules_for_conversion(["b", "missing", "a"])] == ["b", "a"]
    with pytest.raises(ResourceNotFoundException):
        service.get_rules_for_conversion(["missing"])
