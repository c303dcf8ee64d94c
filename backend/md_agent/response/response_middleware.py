"""
响应中间件

为每个请求生成请求ID、记录客户端地址与处理耗时，并写入响应头。
"""
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)


class ResponseMiddleware(BaseHTTPMiddleware):
    """响应处理中间件"""

    def __init__(self, app, enable_tracing: bool = True, enable_request_id: bool = True):
        super().__init__(app)
        self.enable_tracing = enable_tracing
        self.enable_request_id = enable_request_id

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4()) if self.enable_request_id else None
        client_ip = self._get_client_ip(request)

        request.state.request_id = request_id
        request.state.client_ip = client_ip

        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        if request_id:
            response.headers["X-Request-ID"] = request_id
        if self.enable_tracing:
            response.headers["X-Process-Time"] = f"{process_time:.3f}"
            logger.info(f"请求处理完成: {request.method} {request.url.path} "
                        f"{response.status_code} 耗时{process_time:.3f}s")
        return response

    def _get_client_ip(self, request: Request) -> Optional[str]:
        """获取客户端IP地址"""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client and request.client.host:
            return request.client.host
        return None


def get_request_meta(request: Request):
    """从请求状态中取出 (request_id, client_ip)"""
    return (
        getattr(request.state, "request_id", None),
        getattr(request.state, "client_ip", None),
    )
