from fastapi import APIRouter, Query, Request

from md_agent.config.config import settings
from md_agent.dependencies.dependency import HistoryServiceDep
from md_agent.response.response_middleware import get_request_meta
from md_agent.response.utils import paginated_200, success_200
from md_agent.utils.paginator.models import PaginatedData

router = APIRouter(prefix=settings.API_PREFIX, tags=["转换历史"])


@router.get(
    path="/history",
    summary="分页获取转换历史",
    description="最新的记录在前",
)
async def list_history(
        http_request: Request,
        history_service: HistoryServiceDep,
        page: int = Query(default=1, ge=1, description="页码"),
        page_size: int = Query(default=20, ge=1, le=100, description="每页条数"),
):
    request_id, client_ip = get_request_meta(request=http_request)
    data = history_service.list_history(page, page_size)
    # 历史记录以camelCase输出
    data = PaginatedData(
        items=[record.to_json_dict() for record in data.items],
        pagination=data.pagination,
    )
    return paginated_200(data, message="获取历史记录成功", request_id=request_id, host_id=client_ip)


@router.delete(
    path="/history/{history_id}",
    summary="删除一条转换历史",
)
async def delete_history_record(
        http_request: Request,
        history_id: str,
        history_service: HistoryServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    history_service.delete_record(history_id)
    return success_200({"id": history_id}, message="历史记录删除成功", request_id=request_id, host_id=client_ip)


@router.delete(
    path="/history",
    summary="清空转换历史",
)
async def clear_history(
        http_request: Request,
        history_service: HistoryServiceDep,
):
    request_id, client_ip = get_request_meta(request=http_request)
    deleted = history_service.clear()
    return success_200({"deleted": deleted}, message="历史记录已清空", request_id=request_id, host_id=client_ip)
