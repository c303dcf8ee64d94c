"""
响应码定义

业务码与HTTP状态码、是否可重试的对应关系。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


@dataclass
class ResponseCodeInfo:
    """响应码信息"""
    code: str  # 字符串类型的业务状态码
    message: str
    category: Optional[str] = None
    retryable: bool = False
    http_status: int = 200


class ResponseCode(Enum):
    """标准响应码枚举"""

    # 成功类
    SUCCESS = ResponseCodeInfo("Success", "请求成功", "success", False, 200)
    CREATED = ResponseCodeInfo("Created", "创建成功", "success", False, 201)

    # 客户端错误类
    BAD_REQUEST = ResponseCodeInfo("BadRequest", "请求错误", "client_error", False, 400)
    NOT_FOUND = ResponseCodeInfo("NotFound", "未找到", "client_error", False, 404)
    VALIDATION_ERROR = ResponseCodeInfo("ValidationError", "参数验证错误", "client_error", False, 422)

    # 服务器错误类
    INTERNAL_ERROR = ResponseCodeInfo("InternalError", "服务器内部错误", "server_error", True, 500)
    BAD_GATEWAY = ResponseCodeInfo("BadGateway", "网关错误", "server_error", True, 502)

    # 模型调用类
    NO_PROVIDER = ResponseCodeInfo("NoProvider", "没有可用的AI服务", "model_error", False, 503)
    COMPLETION_FAILED = ResponseCodeInfo("CompletionFailed", "AI服务调用失败", "model_error", True, 502)
    MALFORMED_RESPONSE = ResponseCodeInfo("MalformedResponse", "AI返回结果无法解析", "model_error", True, 502)
    EMPTY_EXTRACTION = ResponseCodeInfo("EmptyExtraction", "未提取到有效规则", "model_error", True, 502)

    def __init__(self, code_info: ResponseCodeInfo):
        self._code_info = code_info

    @property
    def code(self) -> str:
        return self._code_info.code

    @property
    def message(self) -> str:
        return self._code_info.message

    @property
    def retryable(self) -> bool:
        return self._code_info.retryable

    @property
    def http_status(self) -> int:
        return self._code_info.http_status

    @classmethod
    def lookup(cls, code: str) -> Optional["ResponseCode"]:
        """根据业务码查找响应码"""
        return _CODE_INDEX.get(code)


_CODE_INDEX: Dict[str, ResponseCode] = {item.code: item for item in ResponseCode}
