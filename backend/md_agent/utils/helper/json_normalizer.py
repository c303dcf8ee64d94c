"""
模型输出JSON归一化

大模型经常返回被说明文字包裹、带```代码块标记、夹杂控制字符或者被截断的JSON。
这里把原始输出清洗成可以解析的JSON对象字符串，失败时抛出 MalformedResponseException，
绝不凭空补造数据。

扫描逻辑统一由 JsonScanner 状态机完成（字符串外 / 字符串内 / 转义中），
平衡花括号查找、截断修复与尾逗号清理共用同一套状态。
"""
import json
import re
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from md_agent.response.exception.exceptions import MalformedResponseException
from md_agent.utils.logger.simple_logger import get_logger, truncate_for_log

logger = get_logger(__name__)

_CLOSERS = {"{": "}", "[": "]"}
_OPENER_OF = {"}": "{", "]": "["}

_FENCE_HEAD = re.compile(r"^```[\w.+-]*[ \t]*\r?\n?")
_FENCE_TAIL = re.compile(r"\r?\n?[ \t]*```$")
# 除换行、回车、制表符以外的控制字符
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
# 对象中末尾悬空的键："key" 或 "key": 或 "key": tru
_DANGLING_MEMBER = re.compile(r'(?P<lead>[{,])\s*"(?:[^"\\]|\\.)*"\s*(?::\s*(?P<partial>[A-Za-z]*))?$', re.S)
_JSON_LITERALS = ("true", "false", "null")


class ScanState(Enum):
    OUTSIDE_STRING = "outside_string"
    IN_STRING = "in_string"
    IN_ESCAPE = "in_escape"


class JsonScanner:
    """逐字符推进的JSON词法状态机，记录字符串状态与尚未闭合的容器"""

    def __init__(self) -> None:
        self.state = ScanState.OUTSIDE_STRING
        self.stack: List[str] = []

    @property
    def in_string(self) -> bool:
        return self.state is not ScanState.OUTSIDE_STRING

    @property
    def depth(self) -> int:
        return len(self.stack)

    def feed(self, char: str) -> bool:
        """推进一个字符，返回该字符是否位于字符串字面量之外"""
        if self.state is ScanState.IN_ESCAPE:
            self.state = ScanState.IN_STRING
            return False
        if self.state is ScanState.IN_STRING:
            if char == "\\":
                self.state = ScanState.IN_ESCAPE
            elif char == '"':
                self.state = ScanState.OUTSIDE_STRING
            return False

        if char == '"':
            self.state = ScanState.IN_STRING
            return False
        if char in _CLOSERS:
            self.stack.append(char)
        elif char in _OPENER_OF:
            # 不匹配的闭合符号直接忽略，由后续解析决定成败
            if self.stack and self.stack[-1] == _OPENER_OF[char]:
                self.stack.pop()
        return True


def strip_code_fence(text: str) -> str:
    """去掉首尾的```代码块标记（带或不带语言标签）"""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_HEAD.sub("", cleaned, count=1)
    if cleaned.endswith("```"):
        cleaned = _FENCE_TAIL.sub("", cleaned, count=1)
    return cleaned.strip()


def _scan_to_close(text: str, start: int) -> Optional[int]:
    """从 start 处的 { 开始扫描，返回与之配对的 } 下标，始终不平衡时返回 None"""
    scanner = JsonScanner()
    for index in range(start, len(text)):
        char = text[index]
        outside = scanner.feed(char)
        if outside and char == "}" and scanner.depth == 0:
            return index
    return None


def iter_object_spans(text: str) -> Iterator[Tuple[str, bool]]:
    """
    按出现顺序产出顶层的 {...} 片段及其是否平衡（字符串内的花括号不计数）

    某个 { 一直到结尾都不平衡时，产出从它开始到结尾的截断片段后结束，
    其后的内容都包含在这个片段中。
    """
    start = text.find("{")
    while start != -1:
        end = _scan_to_close(text, start)
        if end is None:
            yield text[start:], False
            return
        yield text[start:end + 1], True
        start = text.find("{", end + 1)


def find_balanced_object(text: str) -> Optional[str]:
    """返回第一个顶层平衡的 {...} 片段，没有时返回 None"""
    return next((span for span, balanced in iter_object_spans(text) if balanced), None)


def greedy_object_span(text: str) -> Optional[str]:
    """贪婪匹配：第一个 { 到最后一个 }"""
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None
    return text[first:last + 1]


def close_truncated_json(text: str) -> str:
    """
    修复被截断的JSON：闭合未结束的字符串，去掉悬空的键或分隔符，再补齐未闭合的容器。
    截断点之前的字段保持原样。
    """
    scanner = JsonScanner()
    for char in text:
        scanner.feed(char)

    repaired = text
    if scanner.state is ScanState.IN_ESCAPE:
        # 截断在转义符之后，丢掉孤立的反斜杠
        repaired = repaired[:-1]
    if scanner.in_string:
        repaired += '"'

    if not scanner.stack:
        return repaired

    repaired = _drop_dangling_tail(repaired, scanner.stack[-1])
    closers = "".join(_CLOSERS[opener] for opener in reversed(scanner.stack))
    return repaired + closers


def _drop_dangling_tail(text: str, innermost: str) -> str:
    """去掉截断处残留的逗号、冒号以及没有值的键"""
    while True:
        text = text.rstrip()
        if text.endswith(","):
            text = text[:-1]
            continue
        if innermost != "{":
            return text
        match = _DANGLING_MEMBER.search(text)
        if match is None:
            return text
        if match.group("partial") in _JSON_LITERALS:
            return text
        # 保留开头的 {，去掉前导逗号和悬空的键
        cut = match.start("lead") + (1 if match.group("lead") == "{" else 0)
        text = text[:cut]


def strip_control_chars(text: str) -> str:
    """去除换行、回车、制表符以外的控制字符"""
    return _CONTROL_CHARS.sub("", text)


def trim_to_object(text: str) -> str:
    """去掉第一个 { 之前和最后一个 } 之后的内容"""
    first = text.find("{")
    last = text.rfind("}")
    if first == -1:
        return text
    if last < first:
        return text[first:]
    return text[first:last + 1]


def remove_trailing_commas(text: str) -> str:
    """删除 } 或 ] 之前多余的逗号（字符串内的逗号不受影响）"""
    scanner = JsonScanner()
    output: List[str] = []
    length = len(text)
    for index, char in enumerate(text):
        outside = scanner.feed(char)
        if outside and char == ",":
            lookahead = index + 1
            while lookahead < length and text[lookahead] in " \t\r\n":
                lookahead += 1
            if lookahead < length and text[lookahead] in "}]":
                continue
        output.append(char)
    return "".join(output)


def _loads_object(candidate: Optional[str]) -> Optional[Dict[str, Any]]:
    if not candidate:
        return None
    try:
        parsed = json.loads(candidate, strict=False)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _repair(candidate: str) -> str:
    repaired = close_truncated_json(candidate)
    repaired = strip_control_chars(repaired)
    repaired = trim_to_object(repaired)
    return remove_trailing_commas(repaired)


def normalize_json_response(raw: Optional[str]) -> str:
    """
    将模型原始输出归一化为可解析的JSON对象字符串

    Args:
        raw: 模型返回的原始文本

    Returns:
        可以被 json.loads 解析为对象的字符串

    Raises:
        MalformedResponseException: 无法得到合法的JSON对象，原始文本保存在异常中
    """
    return _normalize(raw)[0]


def parse_json_response(raw: Optional[str]) -> Dict[str, Any]:
    """归一化并解析模型输出，返回JSON对象"""
    return _normalize(raw)[1]


def _normalize(raw: Optional[str]):
    if raw is None or not raw.strip():
        raise MalformedResponseException(message="AI服务返回空结果", raw_text=raw or "")

    text = strip_code_fence(raw)

    # 逐层查找：先直接解析顶层平衡片段，再依次修复这些片段与末尾的截断片段；
    # 截断片段开头的 { 可能只是说明文字中的花括号，此时跳过它在其后继续查找
    remaining = text
    while "{" in remaining:
        spans = list(iter_object_spans(remaining))
        for span, balanced in spans:
            if balanced:
                parsed = _loads_object(span)
                if parsed is not None:
                    return span, parsed
        for span, _ in spans:
            repaired = _repair(span)
            parsed = _loads_object(repaired)
            if parsed is not None:
                logger.info("模型输出经修复后解析成功")
                return repaired, parsed
        tail, balanced = spans[-1]
        if balanced:
            break
        remaining = tail[1:]

    greedy = greedy_object_span(text)
    if greedy:
        for candidate in (greedy, _repair(greedy)):
            parsed = _loads_object(candidate)
            if parsed is not None:
                return candidate, parsed

    logger.error(f"无法从模型输出中解析JSON对象，原始响应: {truncate_for_log(raw)}")
    raise MalformedResponseException(
        raw_text=raw,
        details={"raw_preview": truncate_for_log(raw)},
    )
