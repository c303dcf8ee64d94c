from typing import List

from md_agent.response.exception.exceptions import ResourceNotFoundException
from md_agent.schema.rule_schemas import ConversionHistoryRecord
from md_agent.storage.storage_service import StorageService
from md_agent.utils.helper.helper import generate_id, now_iso
from md_agent.utils.paginator.models import PaginatedData, paginate


class HistoryService:

    def __init__(self, storage: StorageService):
        self.storage = storage

    def record_conversion(self, original_content: str, converted_content: str,
                          applied_rule_ids: List[str]) -> ConversionHistoryRecord:
        record = ConversionHistoryRecord(
            id=generate_id("history"),
            original_content=original_content,
            converted_content=converted_content,
            applied_rule_ids=list(applied_rule_ids),
            created_at=now_iso(),
        )
        return self.storage.add_history_record(record)

    def list_history(self, page: int = 1, page_size: int = 20) -> PaginatedData[ConversionHistoryRecord]:
        """分页查询，最新的记录在前"""
        return paginate(self.storage.list_history(), page, page_size)

    def delete_record(self, record_id: str) -> None:
        if not self.storage.delete_history_record(record_id):
            raise ResourceNotFoundException(message="历史记录不存在", details={"history_id": record_id})

    def clear(self) -> int:
        return self.storage.clear_history()
