from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class CompletionParameters:
    """一次模型调用的生成参数"""
    max_tokens: int
    temperature: float


# 各任务的默认生成参数
DEFAULT_TASK_PARAMETERS: Dict[str, CompletionParameters] = {
    "extract": CompletionParameters(max_tokens=2000, temperature=0.3),
    "convert": CompletionParameters(max_tokens=3000, temperature=0.2),
    "merge": CompletionParameters(max_tokens=2000, temperature=0.2),
    "connection_test": CompletionParameters(max_tokens=10, temperature=0.1),
}


class BaseCompletionProvider(ABC):
    """
    文本补全能力的抽象：给定提示词，返回模型生成的文本。

    实现类在失败时抛出 NoProviderException（未授权/不可用）
    或 CompletionFailedException（其他调用失败），不返回空字符串。
    """

    provider_name: str = "base"

    def __init__(self, default_model: str):
        self.default_model = default_model

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
        model: Optional[str] = None,
    ) -> str:
        """调用模型并返回文本"""

    async def complete_task(self, task: str, system_prompt: str, user_prompt: str,
                            model: Optional[str] = None) -> str:
        """按任务的默认生成参数调用模型"""
        params = DEFAULT_TASK_PARAMETERS[task]
        return await self.complete(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            max_tokens=params.max_tokens,
            temperature=params.temperature,
            model=model,
        )

    async def aclose(self) -> None:
        """释放底层连接"""
        return None
