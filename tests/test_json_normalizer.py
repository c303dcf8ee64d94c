import json

import pytest

from md_agent.response.exception.exceptions import MalformedResponseException
from md_agent.utils.helper.json_normalizer import (
    JsonScanner,
    ScanState,
    close_truncated_json,
    find_balanced_object,
    iter_object_spans,
    normalize_json_response,
    parse_json_response,
    remove_trailing_commas,
    strip_code_fence,
)

PAYLOAD = {"rules": [{"type": "heading", "pattern": "# {text}", "examples": ["# Title"]}], "confidence": 0.9}


@pytest.mark.parametrize("raw", [
    json.dumps(PAYLOAD),
    "```json\n" + json.dumps(PAYLOAD) + "\n```",
    "```\n" + json.dumps(PAYLOAD) + "\n```",
    "好的，以下是分析结果：\n" + json.dumps(PAYLOAD, ensure_ascii=False) + "\n希望对你有帮助。",
])
def test_wrapped_json_is_extracted(raw):
    assert parse_json_response(raw) == PAYLOAD


def test_braces_inside_strings_are_not_counted():
    raw = 'prefix {"pattern": "{{text}} and }", "note": "say \\"}\\""} suffix {"other": 1}'
    result = parse_json_response(raw)
    assert result == {"pattern": "{{text}} and }", "note": 'say "}"'}


def test_later_object_used_when_first_span_is_not_json():
    raw = "模板为 {text}，结果：{\"rules\": []}"
    assert parse_json_response(raw) == {"rules": []}


def test_unmatched_brace_in_prose_does_not_hide_object():
    raw = 'Note: the { character opens objects. {"rules": [{"type": "bold"}]}'
    assert parse_json_response(raw) == {"rules": [{"type": "bold"}]}


def test_truncated_object_after_placeholder_prose():
    raw = ('模板中的 {text} 表示可变文本，结果：'
           '{"rules": [{"type": "heading", "name": "标题规则", "description": "Level one hea')
    rule = parse_json_response(raw)["rules"][0]
    assert rule["type"] == "heading"
    assert rule["name"] == "标题规则"
    assert rule["description"] == "Level one hea"


def test_trailing_commas_after_placeholder_prose():
    raw = '模板中的 {text} 表示可变文本，结果：{"rules": [{"type": "bold",},]}'
    assert parse_json_response(raw) == {"rules": [{"type": "bold"}]}


def test_truncated_payload_keeps_outer_object():
    raw = '{"rules": [{"type": "bold"}, {"type": "italic", "name": "斜'
    assert parse_json_response(raw) == {"rules": [{"type": "bold"}, {"type": "italic", "name": "斜"}]}


def test_truncated_string_is_closed_and_prior_fields_kept():
    raw = '{"rules": [{"type": "heading", "name": "标题规则", "description": "Level one hea'
    result = parse_json_response(raw)
    rule = result["rules"][0]
    assert rule["type"] == "heading"
    assert rule["name"] == "标题规则"
    assert rule["description"] == "Level one hea"


def test_truncated_after_dangling_key_drops_the_key():
    raw = '{"summary": "ok", "confidence": 0.8, "rul'
    assert parse_json_response(raw) == {"summary": "ok", "confidence": 0.8}


def test_truncated_inside_array_of_strings():
    raw = '{"examples": ["# A", "# B'
    assert parse_json_response(raw) == {"examples": ["# A", "# B"]}


def test_trailing_commas_are_removed():
    raw = '{"rules": [{"type": "bold",},], "summary": "a, }",}'
    assert parse_json_response(raw) == {"rules": [{"type": "bold"}], "summary": "a, }"}


def test_control_characters_are_stripped():
    raw = '{"a": 1,\x00 "b": [1, 2,]}'
    assert parse_json_response(raw) == {"a": 1, "b": [1, 2]}


def test_normalized_string_is_parseable():
    normalized = normalize_json_response("```json\n{\"a\": [1, 2,]}\n```")
    assert json.loads(normalized) == {"a": [1, 2]}


@pytest.mark.parametrize("raw", ["", "   ", None, "no json here", "[1, 2, 3]"])
def test_unparseable_input_raises_with_raw_text(raw):
    with pytest.raises(MalformedResponseException) as exc_info:
        parse_json_response(raw)
    assert exc_info.value.raw_text == (raw or "")
    assert exc_info.value.retryable is True


def test_scanner_tracks_string_and_escape_states():
    scanner = JsonScanner()
    for char in '{"a\\':
        scanner.feed(char)
    assert scanner.state is ScanState.IN_ESCAPE
    scanner.feed('"')
    assert scanner.state is ScanState.IN_STRING
    scanner.feed('"')
    assert scanner.state is ScanState.OUTSIDE_STRING
    assert scanner.depth == 1


def test_helpers():
    assert strip_code_fence("```python\n{}\n```") == "{}"
    assert find_balanced_object('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'
    assert find_balanced_object('{"a": 1') is None
    assert find_balanced_object('a { b {"c": 1}') is None
    assert list(iter_object_spans('{x} {"a": 1')) == [("{x}", True), ('{"a": 1', False)]
    assert remove_trailing_commas('{"a": "x,]", }') == '{"a": "x,]" }'
    assert json.loads(close_truncated_json('{"a": "b\\')) == {"a": "b"}
