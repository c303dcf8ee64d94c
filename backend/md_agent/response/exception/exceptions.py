"""
API异常定义

统一的异常体系：每个异常携带业务码、HTTP状态码与是否可重试标记，
由全局异常处理器转换为标准响应。
"""

from typing import Optional, Dict, Any


class APIException(Exception):
    """API基础异常"""

    http_status: int = 400

    def __init__(self, code: str, message: str, error_code: str = None,
                 details: Dict[str, Any] = None, retryable: bool = False,
                 http_status: Optional[int] = None):
        self.code = code
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.retryable = retryable
        if http_status is not None:
            self.http_status = http_status
        super().__init__(message)


class ValidationException(APIException):
    """参数验证异常"""

    http_status = 400

    def __init__(self, message: str = "参数验证失败", error_code: str = "ValidationError",
                 details: Dict[str, Any] = None):
        super().__init__(
            code="BadRequest",
            message=message,
            error_code=error_code,
            details=details,
            retryable=False
        )


class ResourceNotFoundException(APIException):
    """资源不存在异常"""

    http_status = 404

    def __init__(self, message: str = "资源不存在", error_code: str = "NotFound",
                 details: Dict[str, Any] = None):
        super().__init__(
            code="NotFound",
            message=message,
            error_code=error_code,
            details=details,
            retryable=False
        )


class InternalServerException(APIException):
    """服务器内部异常"""

    http_status = 500

    def __init__(self, message: str = "服务器内部错误", error_code: str = "InternalError",
                 details: Dict[str, Any] = None, retryable: bool = True):
        super().__init__(
            code="InternalError",
            message=message,
            error_code=error_code,
            details=details,
            retryable=retryable
        )


# ==================== 模型调用相关异常 ====================

class LanguageModelException(APIException):
    """模型调用链路异常的基类"""

    http_status = 502


class NoProviderException(LanguageModelException):
    """没有可用（或未授权）的模型服务，不可重试"""

    http_status = 503

    def __init__(self, message: str = "没有可用的AI服务", details: Dict[str, Any] = None):
        super().__init__(
            code="NoProvider",
            message=message,
            error_code="NoProvider",
            details=details,
            retryable=False
        )


class CompletionFailedException(LanguageModelException):
    """模型接口调用失败（网络错误、HTTP错误、返回结构异常等）"""

    def __init__(self, message: str = "AI服务调用失败", details: Dict[str, Any] = None):
        super().__init__(
            code="CompletionFailed",
            message=message,
            error_code="CompletionFailed",
            details=details,
            retryable=True
        )


class MalformedResponseException(LanguageModelException):
    """模型返回内容无法解析为JSON对象，原始文本保存在 raw_text 中"""

    def __init__(self, message: str = "无法解析AI返回的JSON结果", raw_text: str = "",
                 details: Dict[str, Any] = None):
        self.raw_text = raw_text
        super().__init__(
            code="MalformedResponse",
            message=message,
            error_code="MalformedResponse",
            details=details,
            retryable=True
        )


class EmptyExtractionException(LanguageModelException):
    """JSON解析成功但没有提取到任何规则"""

    def __init__(self, message: str = "JSON解析成功但未提取到有效规则", details: Dict[str, Any] = None):
        super().__init__(
            code="EmptyExtraction",
            message=message,
            error_code="EmptyExtraction",
            details=details,
            retryable=True
        )


class MergeUnavailableException(LanguageModelException):
    """智能合并失败，调用方应退回为直接新增规则"""

    def __init__(self, message: str = "规则智能合并失败", details: Dict[str, Any] = None):
        super().__init__(
            code="MergeUnavailable",
            message=message,
            error_code="MergeUnavailable",
            details=details,
            retryable=False
        )
