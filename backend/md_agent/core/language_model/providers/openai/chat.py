from typing import Optional

import openai
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from md_agent.core.language_model.entities.model_entity import BaseCompletionProvider
from md_agent.response.exception.exceptions import CompletionFailedException, NoProviderException
from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)

# 提示词作为模板变量传入，避免其中的花括号被当成模板占位符
_PROMPT = ChatPromptTemplate.from_messages([
    ("system", "{system_prompt}"),
    ("user", "{user_prompt}"),
])


class OpenAIChat(BaseCompletionProvider):
    """OpenAI 备用通道，基于 langchain 的 ChatOpenAI"""

    provider_name = "openai"

    def __init__(self, api_key: str, base_url: str, default_model: str, timeout: float = 300.0):
        super().__init__(default_model)
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout

    def _build_llm(self, model: str, max_tokens: int, temperature: float) -> ChatOpenAI:
        return ChatOpenAI(
            model=model,
            base_url=self._base_url,
            api_key=self._api_key,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=self._timeout,
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
        model: Optional[str] = None,
    ) -> str:
        llm = self._build_llm(model or self.default_model, max_tokens, temperature)
        chain = _PROMPT | llm
        try:
            message = await chain.ainvoke({
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
            })
        except openai.AuthenticationError as exc:
            logger.error(f"OpenAI鉴权失败: {exc}")
            raise NoProviderException(message="OpenAI鉴权失败，请检查 OPENAI_API_KEY") from exc
        except Exception as exc:  # noqa: BLE001 - SDK异常种类繁多，统一归为调用失败
            logger.error(f"OpenAI调用失败: {exc}")
            raise CompletionFailedException(message=f"OpenAI调用失败: {exc}") from exc

        content = message.content if isinstance(message.content, str) else str(message.content)
        if not content.strip():
            raise CompletionFailedException(message="AI服务返回空结果")
        return content.strip()
