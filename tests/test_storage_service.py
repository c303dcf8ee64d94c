import json

from md_agent.schema.rule_schemas import ConversionHistoryRecord, RuleSet
from md_agent.storage.storage_service import StorageService

from conftest import make_rule


def history(record_id: str) -> ConversionHistoryRecord:
    return ConversionHistoryRecord(
        id=record_id,
        original_content="a",
        converted_content="b",
        applied_rule_ids=["rule_1"],
        created_at="2024-01-01T00:00:00.000Z",
    )


def test_initialize_creates_empty_collections(tmp_path):
    storage = StorageService(tmp_path / "data")
    storage.initialize()

    assert json.loads((tmp_path / "data" / "rules.json").read_text(encoding="utf-8")) == {"rules": []}
    assert json.loads((tmp_path / "data" / "rule-sets.json").read_text(encoding="utf-8")) == {"ruleSets": []}
    assert json.loads((tmp_path / "data" / "conversion-history.json").read_text(encoding="utf-8")) == {"history": []}


def test_rules_are_written_with_camel_case_keys(storage):
    storage.add_rules([make_rule("rule_1", name="标题")])

    data = json.loads(storage.rules_file.read_text(encoding="utf-8"))

    assert data["rules"][0]["createdAt"] == "2024-01-01T00:00:00.000Z"
    assert data["rules"][0]["name"] == "标题"
    assert storage.get_rule_by_id("rule_1").name == "标题"


def test_update_rule_keeps_identity_and_refreshes_updated_at(storage):
    storage.add_rules([make_rule("rule_1")])

    updated = storage.update_rule("rule_1", {
        "id": "hijack", "createdAt": "2030", "pattern": "## {text}", "examples": None,
    })

    assert updated.id == "rule_1"
    assert updated.created_at == "2024-01-01T00:00:00.000Z"
    assert updated.updated_at != "2024-01-01T00:00:00.000Z"
    assert updated.pattern == "## {text}"
    assert updated.examples == ["# Title"]
    assert storage.update_rule("missing", {"pattern": "x"}) is None


def test_delete_rule_reports_existence(storage):
    storage.add_rules([make_rule("rule_1"), make_rule("rule_2")])

    assert storage.delete_rule("rule_1") is True
    assert storage.delete_rule("rule_1") is False
    assert [rule.id for rule in storage.get_rules_by_ids(["rule_1", "rule_2"])] == ["rule_2"]


def test_unreadable_file_is_treated_as_empty(storage):
    storage.rules_file.write_text("{broken", encoding="utf-8")

    assert storage.list_rules() == []


def test_rule_set_crud(storage):
    rule_set = RuleSet(id="rs_1", name="博客", rule_ids=["rule_1"], created_at="2024-01-01T00:00:00.000Z")
    storage.add_rule_set(rule_set)

    updated = storage.update_rule_set("rs_1", {"name": "文档", "created_at": "2030"})

    assert updated.name == "文档"
    assert updated.created_at == "2024-01-01T00:00:00.000Z"
    assert storage.get_rule_set_by_id("rs_1").rule_ids == ["rule_1"]
    assert storage.delete_rule_set("rs_1") is True
    assert storage.list_rule_sets() == []


def test_history_is_newest_first_and_capped(storage):
    for index in range(7):
        storage.add_history_record(history(f"h{index}"))

    records = storage.list_history()

    assert [record.id for record in records] == ["h6", "h5", "h4", "h3", "h2"]
    assert storage.delete_history_record("h4") is True
    assert storage.delete_history_record("h4") is False
    assert storage.clear_history() == 4
    assert storage.list_history() == []
