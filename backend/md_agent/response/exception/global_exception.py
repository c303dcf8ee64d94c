from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from md_agent.response.exception.exceptions import APIException, InternalServerException
from md_agent.response.response_codes import ResponseCode
from md_agent.response.response_factory import response_factory
from md_agent.response.response_middleware import get_request_meta
from md_agent.response.response_models import ValidationErrorDetail
from md_agent.utils.logger.simple_logger import get_logger


class GlobalReOrExHandler:
    """
    全局异常处理器
    """

    def __init__(self, app: FastAPI):
        self.app = app
        self.logger = get_logger("md_agent.exception")
        self.register_error_handler()

    def register_error_handler(self):
        """
        注册不同类型的异常处理函数到FastAPI中
        """

        @self.app.exception_handler(APIException)
        async def api_exception_handler(request: Request, exc: APIException):
            """处理API异常"""
            self.logger.info(f"API异常: [{exc.code}] {exc.message}")
            request_id, client_ip = get_request_meta(request)
            response = response_factory.from_exception(exc, request_id=request_id, host_id=client_ip)
            return JSONResponse(
                status_code=exc.http_status,
                content=response.model_dump()
            )

        @self.app.exception_handler(RequestValidationError)
        async def validation_exception_handler(request: Request, exc: RequestValidationError):
            """处理请求体校验失败"""
            request_id, client_ip = get_request_meta(request)
            errors = [
                ValidationErrorDetail(
                    field=".".join(str(loc) for loc in err.get("loc", ())),
                    message=err.get("msg", ""),
                    value=err.get("input"),
                )
                for err in exc.errors()
            ]
            response = response_factory.validation_error(
                errors, request_id=request_id, host_id=client_ip
            )
            return JSONResponse(
                status_code=ResponseCode.VALIDATION_ERROR.http_status,
                content=response.model_dump(mode="json")
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """处理路由层抛出的HTTP异常（如404接口不存在）"""
            request_id, client_ip = get_request_meta(request)
            code = ResponseCode.NOT_FOUND if exc.status_code == 404 else ResponseCode.BAD_REQUEST
            message = "接口不存在" if exc.status_code == 404 else str(exc.detail)
            response = response_factory.error(
                code=code.code, message=message,
                request_id=request_id, host_id=client_ip
            )
            return JSONResponse(status_code=exc.status_code, content=response.model_dump())

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """处理通用异常"""
            self.logger.critical(f"未处理的异常: {exc}", exc_info=exc)
            wrapped_exc = InternalServerException(
                message="服务器内部错误",
                details={"original_error": str(exc)}
            )
            request_id, client_ip = get_request_meta(request)
            response = response_factory.from_exception(wrapped_exc, request_id=request_id, host_id=client_ip)
            return JSONResponse(
                status_code=wrapped_exc.http_status,
                content=response.model_dump()
            )
