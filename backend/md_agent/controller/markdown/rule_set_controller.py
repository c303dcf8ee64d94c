from typing import List

from fastapi import APIRouter, Request

from md_agent.config.config import settings
from md_agent.dependencies.dependency import RuleSetServiceDep
from md_agent.response.response_middleware import get_request_meta
from md_agent.response.response_models import BaseResponse
from md_agent.response.utils import created_201, success_200
from md_agent.schema.rule_schemas import RuleSet, RuleSetCreateRequest, RuleSetUpdateRequest

router = APIRouter(prefix=settings.API_PREFIX, tags=["规则集管理"])


@router.get(
    path="/rule-sets",
    summary="获取所有规则集",
    response_model=BaseResponse[List[RuleSet]],
)
async def list_rule_sets(
        http_request: Request,
        rule_set_service: RuleSetServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    rule_sets = rule_set_service.list_rule_sets()
    return success_200([rule_set.to_json_dict() for rule_set in rule_sets], message="获取规则集成功",
                       request_id=request_id, host_id=client_ip)


@router.post(
    path="/rule-sets",
    summary="创建规则集",
    response_model=BaseResponse[RuleSet],
)
async def create_rule_set(
        http_request: Request,
        create_request: RuleSetCreateRequest,
        rule_set_service: RuleSetServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    rule_set = rule_set_service.create_rule_set(create_request)
    return created_201(rule_set.to_json_dict(), message="规则集创建成功", request_id=request_id, host_id=client_ip)


@router.get(
    path="/rule-sets/{rule_set_id}",
    summary="获取规则集详情",
    response_model=BaseResponse[RuleSet],
)
async def get_rule_set(
        http_request: Request,
        rule_set_id: str,
        rule_set_service: RuleSetServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    rule_set = rule_set_service.get_rule_set(rule_set_id)
    return success_200(rule_set.to_json_dict(), message="获取规则集成功", request_id=request_id, host_id=client_ip)


@router.put(
    path="/rule-sets/{rule_set_id}",
    summary="更新规则集",
    response_model=BaseResponse[RuleSet],
)
async def update_rule_set(
        http_request: Request,
        rule_set_id: str,
        update_request: RuleSetUpdateRequest,
        rule_set_service: RuleSetServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    rule_set = rule_set_service.update_rule_set(rule_set_id, update_request)
    return success_200(rule_set.to_json_dict(), message="规则集更新成功", request_id=request_id, host_id=client_ip)


@router.delete(
    path="/rule-sets/{rule_set_id}",
    summary="删除规则集",
)
async def delete_rule_set(
        http_request: Request,
        rule_set_id: str,
        rule_set_service: RuleSetServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    rule_set_service.delete_rule_set(rule_set_id)
    return success_200({"id": rule_set_id}, message="规则集删除成功", request_id=request_id, host_id=client_ip)
