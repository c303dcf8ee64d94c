"""
响应数据模型

所有接口统一返回 BaseResponse 信封，Data 字段承载具体业务数据。
"""

from typing import TypeVar, Generic, Optional, List, Dict, Any

from pydantic import BaseModel, Field

from md_agent.utils.paginator.models import PaginatedData

T = TypeVar('T')


class BaseResponse(BaseModel, Generic[T]):
    """基础响应模型"""

    RequestId: str = Field(description="请求唯一标识符")
    Code: str = Field(description="业务状态码")
    Message: str = Field(description="状态码描述")
    HostId: Optional[str] = Field(default=None, description="请求来源地址")
    Data: Optional[T] = Field(default=None, description="返回的数据内容")
    Success: Optional[bool] = Field(default=None, description="是否成功")

    model_config = {
        "from_attributes": True,
        "populate_by_name": True
    }


class SuccessResponse(BaseResponse[T]):
    """成功响应模型"""

    Success: bool = Field(default=True, description="是否成功")
    Code: str = Field(default="Success", description="业务状态码")

    @classmethod
    def create(cls, data: T = None, code: str = "Success", message: str = "请求成功",
               request_id: str = None, host_id: str = None) -> 'SuccessResponse[T]':
        return cls(
            RequestId=request_id or "",
            Code=code,
            Message=message,
            HostId=host_id,
            Data=data,
            Success=True
        )


class ErrorResponse(BaseResponse[None]):
    """错误响应模型"""

    Success: bool = Field(default=False, description="是否成功")
    Code: str = Field(description="业务状态码")
    ErrorCode: Optional[str] = Field(default=None, description="错误代码")
    Details: Optional[Dict[str, Any]] = Field(default=None, description="错误详情")
    Retryable: bool = Field(default=False, description="是否可重试")

    @classmethod
    def create(cls, code: str, message: str, error_code: str = None,
               details: Dict[str, Any] = None, retryable: bool = False,
               request_id: str = None, host_id: str = None) -> 'ErrorResponse':
        return cls(
            RequestId=request_id or "",
            Code=code,
            Message=message,
            HostId=host_id,
            Data=None,
            Success=False,
            ErrorCode=error_code,
            Details=details,
            Retryable=retryable
        )


class PaginatedResponse(BaseResponse[PaginatedData[T]]):
    """分页响应模型"""

    Success: bool = Field(default=True, description="是否成功")
    Code: str = Field(default="Success", description="业务状态码")


class ValidationErrorDetail(BaseModel):
    """验证错误详情"""

    field: str = Field(description="字段名")
    message: str = Field(description="错误消息")
    value: Any = Field(default=None, description="错误值")

    model_config = {
        "arbitrary_types_allowed": True
    }


class ValidationErrorResponse(ErrorResponse):
    """验证错误响应"""

    ValidationErrors: List[ValidationErrorDetail] = Field(description="验证错误详情")

    @classmethod
    def create(cls, validation_errors: List[ValidationErrorDetail],
               message: str = "参数验证失败", request_id: str = None,
               host_id: str = None) -> 'ValidationErrorResponse':
        return cls(
            RequestId=request_id or "",
            Code="ValidationError",
            Message=message,
            HostId=host_id,
            Data=None,
            Success=False,
            ValidationErrors=validation_errors
        )
