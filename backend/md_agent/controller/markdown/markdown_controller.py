from fastapi import APIRouter, Request

from md_agent.config.config import settings
from md_agent.dependencies.dependency import (
    ConversionServiceDep,
    ExtractionServiceDep,
    HistoryServiceDep,
    LanguageModelManagerDep,
    RuleServiceDep,
)
from md_agent.response.exception.exceptions import (
    CompletionFailedException,
    NoProviderException,
    ValidationException,
)
from md_agent.response.response_middleware import get_request_meta
from md_agent.response.response_models import BaseResponse
from md_agent.response.utils import success_200
from md_agent.schema.markdown_schemas import (
    ConnectionTestResponse,
    ConvertRequest,
    ConvertResponse,
    ExtractRequest,
    ExtractResponse,
)
from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix=settings.API_PREFIX, tags=["样式提取与转换"])


@router.post(
    path="/extract",
    summary="提取样式规则",
    description="分析Markdown文本，提取样式规则并保存（同类型规则自动合并）",
    response_model=BaseResponse[ExtractResponse],
)
async def extract_styles(
        http_request: Request,
        extract_request: ExtractRequest,
        extraction_service: ExtractionServiceDep,
        rule_service: RuleServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    if not extract_request.content or not extract_request.content.strip():
        raise ValidationException(message="请提供有效的Markdown内容")

    response = await extraction_service.extract_styles_with_retry(
        extract_request.content,
        extract_request.style_types,
    )
    saved_rules = await rule_service.save_extracted_rules(
        response.rules,
        merge=settings.MERGE_EXTRACTED_RULES,
    )
    response = response.model_copy(update={"rules": saved_rules})
    return success_200(response.to_json_dict(), message=response.message, request_id=request_id, host_id=client_ip)


@router.post(
    path="/convert",
    summary="按规则转换文本",
    description="使用选中的规则转换文本，转换结果非空时记录历史",
    response_model=BaseResponse[ConvertResponse],
)
async def convert_content(
        http_request: Request,
        convert_request: ConvertRequest,
        conversion_service: ConversionServiceDep,
        rule_service: RuleServiceDep,
        history_service: HistoryServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    if not convert_request.content or not convert_request.content.strip():
        raise ValidationException(message="请提供有效的文本内容")
    if not convert_request.rule_ids:
        raise ValidationException(message="请选择要应用的规则")

    rules = rule_service.get_rules_for_conversion(convert_request.rule_ids)
    response = await conversion_service.convert_content(
        convert_request.content,
        rules,
        convert_request.target_style,
    )
    if response.converted_content:
        history_service.record_conversion(
            convert_request.content,
            response.converted_content,
            [rule.id for rule in rules],
        )
    return success_200(response.to_json_dict(), message=response.message, request_id=request_id, host_id=client_ip)


@router.get(
    path="/test",
    summary="测试AI服务连接",
    response_model=BaseResponse[ConnectionTestResponse],
)
async def test_connection(
        http_request: Request,
        manager: LanguageModelManagerDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    response = await manager.test_connection()
    if not response.success:
        details = {"provider": response.provider, "model": response.model}
        if response.provider is None:
            raise NoProviderException(message=response.message, details=details)
        raise CompletionFailedException(message=response.message, details=details)
    return success_200(response.to_json_dict(), message=response.message, request_id=request_id, host_id=client_ip)
