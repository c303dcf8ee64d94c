"""
响应工具函数

控制器直接使用的便捷函数。
"""

from typing import TypeVar

from .response_codes import ResponseCode
from .response_factory import response_factory
from md_agent.utils.paginator.models import PaginatedData

T = TypeVar('T')


def success_200(data: T = None, message: str = "请求成功", request_id: str = None, host_id: str = None):
    """200 成功响应"""
    return response_factory.from_response_code(
        ResponseCode.SUCCESS, data, message=message, request_id=request_id, host_id=host_id
    )


def created_201(data: T = None, message: str = "创建成功", request_id: str = None, host_id: str = None):
    """201 创建成功响应"""
    return response_factory.from_response_code(
        ResponseCode.CREATED, data, message=message, request_id=request_id, host_id=host_id
    )


def paginated_200(data: PaginatedData, message: str = "查询成功", request_id: str = None, host_id: str = None):
    """200 分页响应"""
    return response_factory.paginated(data, message=message, request_id=request_id, host_id=host_id)
