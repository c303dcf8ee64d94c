"""
基于本地JSON文件的存储：规则、规则集与转换历史

每次操作都是完整的读-改-写，不加锁；并发写入时以最后一次写入为准。
"""
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from md_agent.schema.rule_schemas import ConversionHistoryRecord, Rule, RuleSet
from md_agent.utils.helper.helper import now_iso
from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)

RULES_FILE = "rules.json"
RULE_SETS_FILE = "rule-sets.json"
HISTORY_FILE = "conversion-history.json"

# 规则中不允许通过更新修改的字段
_IMMUTABLE_RULE_FIELDS = {"id", "created_at", "createdAt", "updated_at", "updatedAt"}
_IMMUTABLE_RULE_SET_FIELDS = {"id", "created_at", "createdAt"}


class StorageService:

    def __init__(self, data_dir: Union[str, Path], history_limit: int = 100):
        self.data_dir = Path(data_dir)
        self.history_limit = history_limit
        self.rules_file = self.data_dir / RULES_FILE
        self.rule_sets_file = self.data_dir / RULE_SETS_FILE
        self.history_file = self.data_dir / HISTORY_FILE

    def initialize(self) -> None:
        """创建数据目录，并为缺失的文件写入空集合"""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if not self.rules_file.exists():
            self._save_rules([])
        if not self.rule_sets_file.exists():
            self._save_rule_sets([])
        if not self.history_file.exists():
            self._save_history([])
        logger.info(f"存储初始化完成: {self.data_dir}")

    # ---------- 通用读写 ----------

    def _read_collection(self, path: Path, key: str) -> List[Dict[str, Any]]:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, json.JSONDecodeError) as exc:
            logger.error(f"读取{path.name}失败，按空集合处理: {exc}")
            return []
        items = data.get(key) if isinstance(data, dict) else None
        return [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []

    def _write_collection(self, path: Path, key: str, items: Iterable[Dict[str, Any]]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump({key: list(items)}, f, ensure_ascii=False, indent=2)

    @staticmethod
    def _load_models(model_cls, items: List[Dict[str, Any]]) -> list:
        models = []
        for item in items:
            try:
                models.append(model_cls.model_validate(item))
            except ValidationError as exc:
                logger.warning(f"跳过无法识别的{model_cls.__name__}记录: {exc.errors()[:1]}")
        return models

    # ---------- 规则 ----------

    def list_rules(self) -> List[Rule]:
        return self._load_models(Rule, self._read_collection(self.rules_file, "rules"))

    def _save_rules(self, rules: List[Rule]) -> None:
        self._write_collection(self.rules_file, "rules", (rule.to_json_dict() for rule in rules))

    def add_rules(self, new_rules: List[Rule]) -> List[Rule]:
        rules = self.list_rules()
        rules.extend(new_rules)
        self._save_rules(rules)
        return new_rules

    def get_rule_by_id(self, rule_id: str) -> Optional[Rule]:
        return next((rule for rule in self.list_rules() if rule.id == rule_id), None)

    def get_rules_by_ids(self, rule_ids: List[str]) -> List[Rule]:
        wanted = set(rule_ids)
        return [rule for rule in self.list_rules() if rule.id in wanted]

    def update_rule(self, rule_id: str, updates: Dict[str, Any]) -> Optional[Rule]:
        """
        部分更新规则，id 与 createdAt 保持不变，updatedAt 刷新为当前时间

        Returns:
            更新后的规则；规则不存在时返回 None
        """
        rules = self.list_rules()
        for index, rule in enumerate(rules):
            if rule.id != rule_id:
                continue
            changes = {k: v for k, v in updates.items() if k not in _IMMUTABLE_RULE_FIELDS and v is not None}
            rules[index] = Rule.model_validate({**rule.model_dump(), **changes, "updated_at": now_iso()})
            self._save_rules(rules)
            return rules[index]
        return None

    def delete_rule(self, rule_id: str) -> bool:
        rules = self.list_rules()
        remaining = [rule for rule in rules if rule.id != rule_id]
        if len(remaining) == len(rules):
            return False
        self._save_rules(remaining)
        return True

    # ---------- 规则集 ----------

    def list_rule_sets(self) -> List[RuleSet]:
        return self._load_models(RuleSet, self._read_collection(self.rule_sets_file, "ruleSets"))

    def _save_rule_sets(self, rule_sets: List[RuleSet]) -> None:
        self._write_collection(self.rule_sets_file, "ruleSets", (rs.to_json_dict() for rs in rule_sets))

    def add_rule_set(self, rule_set: RuleSet) -> RuleSet:
        rule_sets = self.list_rule_sets()
        rule_sets.append(rule_set)
        self._save_rule_sets(rule_sets)
        return rule_set

    def get_rule_set_by_id(self, rule_set_id: str) -> Optional[RuleSet]:
        return next((rs for rs in self.list_rule_sets() if rs.id == rule_set_id), None)

    def update_rule_set(self, rule_set_id: str, updates: Dict[str, Any]) -> Optional[RuleSet]:
        rule_sets = self.list_rule_sets()
        for index, rule_set in enumerate(rule_sets):
            if rule_set.id != rule_set_id:
                continue
            changes = {k: v for k, v in updates.items() if k not in _IMMUTABLE_RULE_SET_FIELDS and v is not None}
            rule_sets[index] = RuleSet.model_validate({**rule_set.model_dump(), **changes})
            self._save_rule_sets(rule_sets)
            return rule_sets[index]
        return None

    def delete_rule_set(self, rule_set_id: str) -> bool:
        rule_sets = self.list_rule_sets()
        remaining = [rs for rs in rule_sets if rs.id != rule_set_id]
        if len(remaining) == len(rule_sets):
            return False
        self._save_rule_sets(remaining)
        return True

    # ---------- 转换历史 ----------

    def list_history(self) -> List[ConversionHistoryRecord]:
        """最新的记录在前"""
        return self._load_models(ConversionHistoryRecord, self._read_collection(self.history_file, "history"))

    def _save_history(self, history: List[ConversionHistoryRecord]) -> None:
        self._write_collection(self.history_file, "history", (record.to_json_dict() for record in history))

    def add_history_record(self, record: ConversionHistoryRecord) -> ConversionHistoryRecord:
        history = self.list_history()
        history.insert(0, record)
        self._save_history(history[:self.history_limit])
        return record

    def delete_history_record(self, record_id: str) -> bool:
        history = self.list_history()
        remaining = [record for record in history if record.id != record_id]
        if len(remaining) == len(history):
            return False
        self._save_history(remaining)
        return True

    def clear_history(self) -> int:
        """清空历史，返回删除的条数"""
        count = len(self.list_history())
        self._save_history([])
        return count
