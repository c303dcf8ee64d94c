from typing import Any, List, Optional, Sequence

from md_agent.core.language_model.entities.model_entity import BaseCompletionProvider
from md_agent.response.exception.exceptions import LanguageModelException, NoProviderException
from md_agent.schema.markdown_schemas import AppliedRule, ConvertResponse
from md_agent.schema.rule_schemas import Rule
from md_agent.service.prompt.markdown_prompt import JSON_ONLY_SYSTEM_PROMPT, MarkdownPrompt
from md_agent.utils.helper.json_normalizer import parse_json_response
from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)


class ConversionService:
    """
    按规则转换文本。

    转换结果只是建议性的：除了没有可用的AI服务以外，模型调用或解析失败都返回
    success=True、内容为空的软失败结果，不抛异常，也不重试。
    """

    def __init__(self, provider: Optional[BaseCompletionProvider], prompt: Optional[MarkdownPrompt] = None):
        self.provider = provider
        self.prompt = prompt or MarkdownPrompt()

    async def convert_content(self, content: str, rules: Sequence[Rule],
                              target_style: Optional[str] = None) -> ConvertResponse:
        if self.provider is None:
            raise NoProviderException()

        user_prompt = self.prompt.build_convert_prompt(content, rules, target_style)
        try:
            raw = await self.provider.complete_task("convert", JSON_ONLY_SYSTEM_PROMPT, user_prompt)
            payload = parse_json_response(raw)
        except NoProviderException:
            raise
        except LanguageModelException as exc:
            logger.error(f"样式转换失败，返回空结果: {exc.message}")
            return ConvertResponse(
                success=True,
                converted_content="",
                applied_rules=[],
                message=f"转换失败: {exc.message}",
                summary="转换失败",
                confidence=0.0,
            )

        converted = payload.get("convertedContent")
        converted_content = converted if isinstance(converted, str) else ""
        applied_rules = _parse_applied_rules(payload.get("appliedRules"))
        summary = payload.get("summary") if isinstance(payload.get("summary"), str) else None
        confidence = payload.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = None

        logger.info(f"样式转换完成，应用规则 {len(applied_rules)} 条")
        return ConvertResponse(
            success=True,
            converted_content=converted_content,
            applied_rules=applied_rules,
            message="转换成功" if converted_content else "转换结果为空",
            summary=summary,
            confidence=confidence,
        )


def _parse_applied_rules(value: Any) -> List[AppliedRule]:
    if not isinstance(value, list):
        return []
    applied: List[AppliedRule] = []
    for item in value:
        if isinstance(item, dict):
            applied.append(AppliedRule(
                name=str(item.get("name") or ""),
                applied=bool(item.get("applied", True)),
                description=str(item.get("description") or ""),
            ))
        elif isinstance(item, str):
            applied.append(AppliedRule(name=item))
    return applied
