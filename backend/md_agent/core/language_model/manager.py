from typing import Optional

from md_agent.config.config import Settings, settings
from md_agent.core.language_model.entities.model_entity import BaseCompletionProvider
from md_agent.core.language_model.providers.modelscope.chat import ModelScopeChat
from md_agent.core.language_model.providers.openai.chat import OpenAIChat
from md_agent.response.exception.exceptions import APIException
from md_agent.schema.markdown_schemas import ConnectionTestResponse
from md_agent.utils.logger.simple_logger import get_logger

logger = get_logger(__name__)


class LanguageModelManager:
    """
    模型服务管理器：第一次使用时按配置选择补全服务，之后一直复用同一个实例。

    优先魔搭社区，其次 OpenAI；两者都没有配置时 get_provider() 返回 None，
    由业务层抛出 NoProviderException。
    """

    def __init__(self, config: Settings):
        self.config = config
        self._provider: Optional[BaseCompletionProvider] = None
        self._initialized = False

    def _build_provider(self) -> Optional[BaseCompletionProvider]:
        if self.config.modelscope_enabled:
            logger.info(f"使用魔搭社区API，模型: {self.config.MODELSCOPE_MODEL}")
            return ModelScopeChat(
                api_key=self.config.MODELSCOPE_ACCESS_TOKEN,
                base_url=self.config.MODELSCOPE_BASE_URL,
                default_model=self.config.MODELSCOPE_MODEL,
                timeout=self.config.LLM_TIMEOUT,
                connect_timeout=self.config.LLM_CONNECT_TIMEOUT,
            )
        if self.config.openai_enabled:
            logger.info(f"魔搭社区未配置，使用OpenAI，模型: {self.config.OPENAI_MODEL}")
            return OpenAIChat(
                api_key=self.config.OPENAI_API_KEY,
                base_url=self.config.OPENAI_BASE_URL,
                default_model=self.config.OPENAI_MODEL,
                timeout=self.config.LLM_TIMEOUT,
            )
        logger.warning("MODELSCOPE_ACCESS_TOKEN 与 OPENAI_API_KEY 均未配置，AI服务不可用")
        return None

    def get_provider(self) -> Optional[BaseCompletionProvider]:
        """获取（必要时创建）补全服务"""
        if not self._initialized:
            self._provider = self._build_provider()
            self._initialized = True
        return self._provider

    async def test_connection(self) -> ConnectionTestResponse:
        """发送一条极短的请求，检查模型服务是否可用"""
        provider = self.get_provider()
        if provider is None:
            return ConnectionTestResponse(success=False, message="没有可用的AI服务")
        try:
            reply = await provider.complete_task(
                "connection_test",
                system_prompt="You are a helpful assistant.",
                user_prompt='请回复"连接成功"',
            )
        except APIException as exc:
            logger.error(f"AI服务连接测试失败: {exc.message}")
            return ConnectionTestResponse(
                success=False,
                message=exc.message,
                provider=provider.provider_name,
                model=provider.default_model,
            )
        return ConnectionTestResponse(
            success=True,
            message=reply or "连接成功",
            provider=provider.provider_name,
            model=provider.default_model,
        )

    async def aclose(self) -> None:
        if self._provider is not None:
            await self._provider.aclose()


# 全局模型管理器实例
language_model_manager = LanguageModelManager(settings)
