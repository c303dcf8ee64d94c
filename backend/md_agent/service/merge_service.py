from typing import Any, Dict, List, Optional, Sequence

from md_agent.core.language_model.entities.model_entity import BaseCompletionProvider
from md_agent.entity.merge_entity import MergePlan, order_by_creation, plan_merge
from md_agent.response.exception.exceptions import (
    LanguageModelException,
    MergeUnavailableException,
    NoProviderException,
)
from md_agent.schema.markdown_schemas import MergeResult
from md_agent.schema.rule_schemas import Rule, RuleBody
from md_agent.service.prompt.markdown_prompt import MERGE_SYSTEM_PROMPT, MarkdownPrompt
from md_agent.utils.helper.helper import dedupe_preserve_order
from md_agent.utils.helper.json_normalizer import parse_json_response
from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)


class RuleMergeService:
    """
    规则智能合并。

    合并由模型完成语义上的融合，本服务负责：决定目标规则与删除集合（plan_merge），
    以及对模型结果做兜底整理。合并服务本身不写存储，由调用方执行更新与删除。
    """

    def __init__(self, provider: Optional[BaseCompletionProvider], prompt: Optional[MarkdownPrompt] = None):
        self.provider = provider
        self.prompt = prompt or MarkdownPrompt()

    async def merge(self, proposed: Rule, existing: Sequence[Rule]) -> MergeResult:
        """
        把新规则合并进已有的同类型规则

        Args:
            proposed: 尚未保存的新规则（临时ID）
            existing: 已有的同类型规则

        Returns:
            MergeResult，其中 target_rule_id 为最早创建的规则，delete_rule_ids 为其余规则

        Raises:
            MergeUnavailableException: 模型不可用、调用失败或返回的结果无法使用
        """
        plan = plan_merge(proposed.type, existing)
        ordered = order_by_creation([rule for rule in existing if rule.type == proposed.type])
        proposed_body = proposed.body()

        # 只有一条已有规则且内容完全相同时无需调用模型
        if len(ordered) == 1 and ordered[0].body() == proposed_body:
            logger.info(f"新规则与已有规则 {plan.target.id} 内容一致，跳过智能合并")
            return self._result(plan, ordered[0].body(), summary="规则内容一致，无需合并", confidence=1.0)

        if self.provider is None:
            raise MergeUnavailableException(message="没有可用的AI服务，无法智能合并")

        user_prompt = self.prompt.build_merge_prompt(proposed.type, proposed_body, ordered)
        try:
            raw = await self.provider.complete_task("merge", MERGE_SYSTEM_PROMPT, user_prompt)
            payload = parse_json_response(raw)
        except NoProviderException as exc:
            raise MergeUnavailableException(message=exc.message) from exc
        except LanguageModelException as exc:
            raise MergeUnavailableException(message=f"规则智能合并失败: {exc.message}") from exc

        merged_body = self._finalize_body(payload, proposed_body, ordered)
        summary = payload.get("summary") if isinstance(payload.get("summary"), str) else None
        confidence = payload.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = None
        logger.info(f"规则智能合并完成，目标规则 {plan.target.id}，删除 {len(plan.delete_ids)} 条")
        return self._result(plan, merged_body, summary=summary, confidence=confidence)

    @staticmethod
    def _result(plan: MergePlan, body: RuleBody, summary: Optional[str],
                confidence: Optional[float]) -> MergeResult:
        return MergeResult(
            success=True,
            merged_rule=body,
            summary=summary,
            confidence=confidence,
            target_rule_id=plan.target.id,
            delete_rule_ids=list(plan.delete_ids),
            merged_count=plan.merged_count,
        )

    @staticmethod
    def _finalize_body(payload: Dict[str, Any], proposed: RuleBody, existing: List[Rule]) -> RuleBody:
        """整理模型给出的合并结果；pattern 为空或结构不对时视为不可用"""
        merged = payload.get("mergedRule", payload)
        if not isinstance(merged, dict):
            raise MergeUnavailableException(message="合并结果不是JSON对象")

        pattern = merged.get("pattern")
        if not isinstance(pattern, str) or not pattern.strip():
            raise MergeUnavailableException(message="合并结果缺少pattern")

        name = merged.get("name")
        description = merged.get("description")
        examples = merged.get("examples")
        if isinstance(examples, list) and examples:
            examples = dedupe_preserve_order(examples)
        else:
            examples = dedupe_preserve_order(
                list(proposed.examples) + [example for rule in existing for example in rule.examples]
            )

        return RuleBody(
            name=name.strip() if isinstance(name, str) and name.strip() else proposed.name,
            pattern=pattern,
            description=description if isinstance(description, str) and description.strip() else proposed.description,
            examples=examples,
        )
