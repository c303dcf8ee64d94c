"""
响应工厂

提供统一的响应创建入口：成功、错误、分页、参数校验错误，以及从异常/响应码构造。
"""

from typing import TypeVar, Dict, Any, List, Union

from .exception.exceptions import APIException
from .response_codes import ResponseCode
from .response_models import (
    SuccessResponse, ErrorResponse, PaginatedResponse,
    ValidationErrorResponse, ValidationErrorDetail
)
from md_agent.utils.paginator.models import PaginatedData

T = TypeVar('T')


class ResponseFactory:
    """响应工厂"""

    def success(self, data: T = None, code: str = "Success", message: str = "请求成功",
                request_id: str = None, host_id: str = None) -> SuccessResponse[T]:
        """创建成功响应"""
        return SuccessResponse.create(
            data=data, code=str(code), message=message,
            request_id=request_id, host_id=host_id
        )

    def error(self, code: str, message: str, error_code: str = None,
              details: Dict[str, Any] = None, retryable: bool = False,
              request_id: str = None, host_id: str = None) -> ErrorResponse:
        """创建错误响应"""
        return ErrorResponse.create(
            code=str(code), message=message, error_code=error_code,
            details=details, retryable=retryable,
            request_id=request_id, host_id=host_id
        )

    def paginated(self, data: PaginatedData, message: str = "查询成功",
                  request_id: str = None, host_id: str = None) -> PaginatedResponse:
        """创建分页响应"""
        return PaginatedResponse(
            RequestId=request_id or "",
            Code="Success",
            Message=message,
            HostId=host_id,
            Data=data,
            Success=True
        )

    def validation_error(self, validation_errors: List[ValidationErrorDetail],
                         message: str = "参数验证失败", request_id: str = None,
                         host_id: str = None) -> ValidationErrorResponse:
        """创建验证错误响应"""
        return ValidationErrorResponse.create(
            validation_errors=validation_errors,
            message=message, request_id=request_id, host_id=host_id
        )

    def from_exception(self, exception: APIException, request_id: str = None,
                       host_id: str = None) -> ErrorResponse:
        """从异常创建错误响应"""
        return self.error(
            code=exception.code,
            message=exception.message,
            error_code=exception.error_code,
            details=exception.details,
            retryable=exception.retryable,
            request_id=request_id,
            host_id=host_id
        )

    def from_response_code(self, response_code: ResponseCode, data: T = None, message: str = None,
                           details: Dict[str, Any] = None, request_id: str = None,
                           host_id: str = None) -> Union[SuccessResponse[T], ErrorResponse]:
        """从响应码创建响应"""
        message = message or response_code.message
        if response_code.http_status < 400:
            return self.success(
                data=data,
                code=response_code.code,
                message=message,
                request_id=request_id,
                host_id=host_id
            )
        return self.error(
            code=response_code.code,
            message=message,
            details=details,
            retryable=response_code.retryable,
            request_id=request_id,
            host_id=host_id
        )


# 全局响应工厂实例
response_factory = ResponseFactory()
