import json
from typing import List, Optional, Union

import pytest

from md_agent.core.language_model.entities.model_entity import BaseCompletionProvider
from md_agent.schema.rule_schemas import Rule
from md_agent.storage.storage_service import StorageService


class StubProvider(BaseCompletionProvider):
    """按顺序返回预设的补全结果；结果为异常时直接抛出"""

    provider_name = "stub"

    def __init__(self, responses: Optional[List[Union[str, Exception]]] = None):
        super().__init__("stub-model")
        self.responses = list(responses or [])
        self.calls = []
        self.closed = False

    async def complete(self, system_prompt, user_prompt, max_tokens, temperature, model=None):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if not self.responses:
            raise AssertionError("unexpected completion call")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self):
        self.closed = True


def make_rule(rule_id, rule_type="heading", created_at="2024-01-01T00:00:00.000Z", **kwargs) -> Rule:
    return Rule(
        id=rule_id,
        type=rule_type,
        name=kwargs.get("name", f"{rule_type}规则"),
        pattern=kwargs.get("pattern", "# {text}"),
        description=kwargs.get("description", "一级标题"),
        examples=kwargs.get("examples", ["# Title"]),
        created_at=created_at,
        updated_at=kwargs.get("updated_at", created_at),
    )


def extraction_payload(*rules, summary="提取完成", confidence=0.9) -> str:
    return json.dumps({"rules": list(rules), "summary": summary, "confidence": confidence}, ensure_ascii=False)


@pytest.fixture
def storage(tmp_path) -> StorageService:
    service = StorageService(tmp_path / "data", history_limit=5)
    service.initialize()
    return service
