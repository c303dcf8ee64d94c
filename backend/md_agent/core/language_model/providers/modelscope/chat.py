"""
魔搭社区（OpenAI兼容接口）聊天补全
"""
import asyncio
from typing import Any, Dict, Optional

import httpx

from md_agent.core.language_model.entities.model_entity import BaseCompletionProvider
from md_agent.response.exception.exceptions import CompletionFailedException, NoProviderException
from md_agent.utils.logger.simple_logger import get_logger, truncate_for_log

logger = get_logger(__name__)


class ModelScopeChat(BaseCompletionProvider):
    """通过共享的 httpx.AsyncClient 调用 /chat/completions"""

    provider_name = "modelscope"

    def __init__(self, api_key: str, base_url: str, default_model: str,
                 timeout: float = 300.0, connect_timeout: float = 5.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(default_model)
        self._api_key = api_key
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """获取共享的HTTP客户端，避免重复建连"""
        if self._client is None:
            async with self._client_lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        base_url=self._base_url,
                        headers={
                            "Authorization": f"Bearer {self._api_key}",
                            "Content-Type": "application/json"
                        },
                        timeout=self._timeout,
                        transport=self._transport or httpx.AsyncHTTPTransport(retries=2)
                    )
        return self._client

    async def aclose(self) -> None:
        """关闭共享的HTTP客户端"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post_chat_completion(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """调用聊天补全接口并返回JSON结果"""
        client = await self._get_client()
        try:
            response = await client.post("chat/completions", json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            body = truncate_for_log(exc.response.text, 300)
            logger.error(f"魔搭社区API返回错误: {status} - {body}")
            if status in (401, 403):
                raise NoProviderException(
                    message="魔搭社区API鉴权失败，请检查 MODELSCOPE_ACCESS_TOKEN",
                    details={"status_code": status},
                ) from exc
            raise CompletionFailedException(
                message=f"魔搭社区API请求失败: {status}",
                details={"status_code": status, "body": body},
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(f"魔搭社区API请求异常: {exc}")
            raise CompletionFailedException(message=f"魔搭社区API请求异常: {exc}") from exc
        except ValueError as exc:
            raise CompletionFailedException(message="魔搭社区API返回了非JSON内容") from exc

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
        model: Optional[str] = None,
    ) -> str:
        payload: Dict[str, Any] = {
            "model": model or self.default_model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        result = await self._post_chat_completion(payload)
        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            logger.error("LLM响应结构异常: %s - 响应: %s", exc, truncate_for_log(str(result)))
            raise CompletionFailedException(message="AI服务响应结构异常") from exc
        if not content or not content.strip():
            raise CompletionFailedException(message="AI服务返回空结果")
        return content.strip()
