import asyncio
import json

import pytest

from md_agent.response.exception.exceptions import (
    CompletionFailedException,
    EmptyExtractionException,
    MalformedResponseException,
    NoProviderException,
)
from md_agent.service.extraction_service import ExtractionService

from conftest import StubProvider, extraction_payload

HEADING = {"type": "heading", "name": "一级标题", "pattern": "# {text}", "description": "井号标题", "examples": ["# Title"]}
BOLD = {"type": "bold", "pattern": "**{text}**", "description": "双星号加粗", "examples": ["**bold**"]}


def test_extract_heading_and_bold_from_markdown():
    provider = StubProvider(["```json\n" + extraction_payload(HEADING, BOLD) + "\n```"])
    service = ExtractionService(provider, retry_delay=0)

    response = asyncio.run(service.extract_styles_with_retry("# Title\n**bold**"))

    types = {rule.type for rule in response.rules}
    assert {"heading", "bold"} <= types
    assert response.success is True
    assert response.summary == "提取完成"
    assert response.confidence == 0.9
    assert "# Title\n**bold**" in provider.calls[0]["user_prompt"]
    assert provider.calls[0]["max_tokens"] == 2000
    assert provider.calls[0]["temperature"] == 0.3


def test_rules_get_fresh_ids_default_names_and_timestamps():
    provider = StubProvider([extraction_payload(dict(BOLD, id="model_id", createdAt="1999"))])
    service = ExtractionService(provider)

    rule = asyncio.run(service.extract_styles("**bold**")).rules[0]

    assert rule.id.startswith("rule_bold_")
    assert rule.id != "model_id"
    assert rule.name == "bold规则"
    assert rule.created_at == rule.updated_at
    assert rule.created_at != "1999"


def test_entries_without_type_are_dropped():
    provider = StubProvider([extraction_payload({"name": "无类型"}, HEADING)])
    service = ExtractionService(provider)

    rules = asyncio.run(service.extract_styles("# Title")).rules

    assert [rule.type for rule in rules] == ["heading"]


def test_style_filter_is_applied_after_parsing():
    provider = StubProvider([extraction_payload(HEADING, BOLD)])
    service = ExtractionService(provider)

    response = asyncio.run(service.extract_styles("# Title\n**bold**", style_types=["bold"]))

    assert [rule.type for rule in response.rules] == ["bold"]
    assert "bold" in provider.calls[0]["user_prompt"]


def test_style_filter_matching_nothing_says_so():
    service = ExtractionService(StubProvider([extraction_payload(HEADING)]))

    response = asyncio.run(service.extract_styles("# Title", style_types=["table", "link"]))

    assert response.success is True
    assert response.rules == []
    assert response.message == "未提取到指定类型（table, link）的样式规则"


def test_zero_rules_is_empty_extraction():
    provider = StubProvider([json.dumps({"rules": [], "summary": "无"})])
    service = ExtractionService(provider)

    with pytest.raises(EmptyExtractionException) as exc_info:
        asyncio.run(service.extract_styles("plain text"))
    assert exc_info.value.retryable is True


def test_malformed_completion_raises():
    service = ExtractionService(StubProvider(["I cannot help with that."]))

    with pytest.raises(MalformedResponseException):
        asyncio.run(service.extract_styles("# Title"))


def test_retry_recovers_after_retryable_failures():
    provider = StubProvider([
        "not json",
        json.dumps({"rules": []}),
        CompletionFailedException(),
        extraction_payload(HEADING),
    ])
    service = ExtractionService(provider, max_retries=3, retry_delay=0)

    response = asyncio.run(service.extract_styles_with_retry("# Title"))

    assert [rule.type for rule in response.rules] == ["heading"]
    assert len(provider.calls) == 4
    assert "重试3次后成功" in response.message


def test_retry_surfaces_last_error_when_exhausted():
    provider = StubProvider(["nope", "still nope", json.dumps({"rules": []})])
    service = ExtractionService(provider, max_retries=2, retry_delay=0)

    with pytest.raises(EmptyExtractionException):
        asyncio.run(service.extract_styles_with_retry("# Title"))
    assert len(provider.calls) == 3


def test_retry_uses_linear_backoff(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("md_agent.service.extraction_service.asyncio.sleep", fake_sleep)
    provider = StubProvider(["bad", "bad", "bad", "bad"])
    service = ExtractionService(provider, max_retries=3, retry_delay=1.5)

    with pytest.raises(MalformedResponseException):
        asyncio.run(service.extract_styles_with_retry("# Title"))
    assert delays == [1.5, 3.0, 4.5]


def test_no_provider_fails_without_retry():
    service = ExtractionService(None, max_retries=3, retry_delay=0)

    with pytest.raises(NoProviderException):
        asyncio.run(service.extract_styles_with_retry("# Title"))


def test_unauthorized_provider_is_not_retried():
    provider = StubProvider([NoProviderException(), extraction_payload(HEADING)])
    service = ExtractionService(provider, max_retries=3, retry_delay=0)

    with pytest.raises(NoProviderException):
        asyncio.run(service.extract_styles_with_retry("# Title"))
    assert len(provider.calls) == 1
