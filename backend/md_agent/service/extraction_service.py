import asyncio
from typing import Any, Dict, List, Optional

from md_agent.core.language_model.entities.model_entity import BaseCompletionProvider
from md_agent.response.exception.exceptions import (
    CompletionFailedException,
    EmptyExtractionException,
    LanguageModelException,
    MalformedResponseException,
    NoProviderException,
)
from md_agent.schema.markdown_schemas import ExtractResponse
from md_agent.schema.rule_schemas import Rule
from md_agent.service.prompt.markdown_prompt import JSON_ONLY_SYSTEM_PROMPT, MarkdownPrompt
from md_agent.utils.helper.helper import generate_id, now_iso
from md_agent.utils.helper.json_normalizer import parse_json_response
from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)

# 可以通过重试恢复的失败
RETRYABLE_EXCEPTIONS = (MalformedResponseException, EmptyExtractionException, CompletionFailedException)


class ExtractionService:
    """
    样式提取：构建提示词 -> 调用模型 -> 规整JSON -> 校验规则。

    模型偶尔会返回结构正确但 rules 为空的对象，这种情况视为 EmptyExtraction 并允许重试，
    不当作合法的空结果返回。
    """

    def __init__(self, provider: Optional[BaseCompletionProvider], max_retries: int = 3,
                 retry_delay: float = 1.0, prompt: Optional[MarkdownPrompt] = None):
        self.provider = provider
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.prompt = prompt or MarkdownPrompt()

    async def extract_styles(self, content: str, style_types: Optional[List[str]] = None) -> ExtractResponse:
        """单次提取，失败时抛出 LanguageModelException 子类"""
        if self.provider is None:
            raise NoProviderException()

        user_prompt = self.prompt.build_extract_prompt(content, style_types)
        raw = await self.provider.complete_task("extract", JSON_ONLY_SYSTEM_PROMPT, user_prompt)
        payload = parse_json_response(raw)

        rules = self._build_rules(payload)
        if not rules:
            raise EmptyExtractionException(details={"summary": payload.get("summary")})

        message = None
        if style_types:
            wanted = set(style_types)
            rules = [rule for rule in rules if rule.type in wanted]
            if not rules:
                message = f"未提取到指定类型（{', '.join(style_types)}）的样式规则"

        summary = payload.get("summary") if isinstance(payload.get("summary"), str) else None
        confidence = _as_confidence(payload.get("confidence"))
        logger.info(f"样式提取完成，共 {len(rules)} 条规则")
        return ExtractResponse(
            success=True,
            rules=rules,
            message=message or f"成功提取{len(rules)}个样式规则",
            summary=summary,
            confidence=confidence,
        )

    async def extract_styles_with_retry(self, content: str,
                                        style_types: Optional[List[str]] = None) -> ExtractResponse:
        """
        带重试的提取：首次调用失败后最多再重试 max_retries 次，
        第n次重试前等待 n * retry_delay 秒。NoProvider 直接抛出，不重试。
        """
        last_error: Optional[LanguageModelException] = None
        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.retry_delay * attempt
                logger.info(f"将在{delay}秒后进行第{attempt}次重试")
                await asyncio.sleep(delay)
            try:
                response = await self.extract_styles(content, style_types)
            except RETRYABLE_EXCEPTIONS as exc:
                last_error = exc
                logger.warning(f"提取样式失败 (尝试 {attempt + 1}/{self.max_retries + 1}): {exc.message}")
                continue
            if attempt > 0:
                response.message += f" (重试{attempt}次后成功)"
            return response

        logger.error(f"提取失败 (已重试{self.max_retries}次): {last_error.message}")
        raise last_error

    def _build_rules(self, payload: Dict[str, Any]) -> List[Rule]:
        """把模型返回的规则转换为带新ID与时间戳的 Rule，缺少 type 的条目丢弃"""
        raw_rules = payload.get("rules")
        if not isinstance(raw_rules, list):
            return []

        timestamp = now_iso()
        rules: List[Rule] = []
        for item in raw_rules:
            if not isinstance(item, dict):
                continue
            rule_type = str(item.get("type") or "").strip()
            if not rule_type:
                logger.warning(f"忽略缺少type的规则: {item}")
                continue
            examples = item.get("examples")
            rules.append(Rule(
                id=generate_id("rule", rule_type, len(rules)),
                type=rule_type,
                name=str(item.get("name") or f"{rule_type}规则"),
                pattern=str(item.get("pattern") or ""),
                description=str(item.get("description") or ""),
                examples=[str(example) for example in examples] if isinstance(examples, list) else [],
                created_at=timestamp,
                updated_at=timestamp,
            ))
        return rules


def _as_confidence(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None
