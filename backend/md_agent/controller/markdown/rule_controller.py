from typing import List

from fastapi import APIRouter, Request

from md_agent.config.config import settings
from md_agent.dependencies.dependency import RuleServiceDep
from md_agent.response.response_middleware import get_request_meta
from md_agent.response.response_models import BaseResponse
from md_agent.response.utils import success_200
from md_agent.schema.rule_schemas import CreateRuleResponse, Rule, RuleDraft, RuleUpdateRequest

router = APIRouter(prefix=settings.API_PREFIX, tags=["规则管理"])


@router.get(
    path="/rules",
    summary="获取所有规则",
    response_model=BaseResponse[List[Rule]],
)
async def list_rules(
        http_request: Request,
        rule_service: RuleServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    rules = rule_service.list_rules()
    return success_200([rule.to_json_dict() for rule in rules], message="获取规则成功",
                       request_id=request_id, host_id=client_ip)


@router.post(
    path="/rules",
    summary="添加规则",
    description="添加新规则；已有同类型规则时智能合并到最早创建的规则上",
    response_model=BaseResponse[CreateRuleResponse],
)
async def create_rule(
        http_request: Request,
        draft: RuleDraft,
        rule_service: RuleServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    response = await rule_service.create_rule(draft)
    return success_200(response.to_json_dict(), message=response.message,
                       request_id=request_id, host_id=client_ip)


@router.put(
    path="/rules/{rule_id}",
    summary="更新规则",
    response_model=BaseResponse[Rule],
)
async def update_rule(
        http_request: Request,
        rule_id: str,
        update_request: RuleUpdateRequest,
        rule_service: RuleServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    rule = rule_service.update_rule(rule_id, update_request)
    return success_200(rule.to_json_dict(), message="规则更新成功", request_id=request_id, host_id=client_ip)


@router.delete(
    path="/rules/{rule_id}",
    summary="删除规则",
)
async def delete_rule(
        http_request: Request,
        rule_id: str,
        rule_service: RuleServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    rule_service.delete_rule(rule_id)
    return success_200({"id": rule_id}, message="规则删除成功", request_id=request_id, host_id=client_ip)
