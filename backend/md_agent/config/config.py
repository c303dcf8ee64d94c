import os
from pathlib import Path
from typing import List

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine whether to load local .env (skip in Docker)
_skip_local = os.getenv("SKIP_LOCAL_DOTENV", "").lower() in ("1", "true", "yes") or \
               os.getenv("DOCKER_CONTEXT", "").lower() in ("1", "true", "yes")
_env_file_path = str(Path(__file__).resolve().parents[2] / ".env") if not _skip_local else None

# 魔搭社区 token 的占位值，出现时视为未配置
MODELSCOPE_TOKEN_PLACEHOLDER = "your_modelscope_access_token_here"


class Settings(BaseSettings):
    # Project info
    PROJECT_NAME: str = "Markdown Style Agent"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api/markdown"

    HOST: str = Field(default="0.0.0.0", description="服务监听地址")
    PORT: int = Field(default=3001, description="服务监听端口")
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="允许跨域访问的前端地址",
    )

    # 日志
    LOG_LEVEL: str = Field(default="INFO", description="日志级别")
    LOG_TO_FILE: bool = Field(default=False, description="是否输出日志文件")
    LOG_DIR: str = Field(default="logs", description="日志文件目录")

    # 魔搭社区（OpenAI兼容接口），优先使用
    MODELSCOPE_ACCESS_TOKEN: str = Field(default="", description="魔搭社区访问令牌")
    MODELSCOPE_BASE_URL: str = Field(
        default="https://api-inference.modelscope.cn/v1/",
        description="魔搭社区推理接口地址",
    )
    MODELSCOPE_MODEL: str = Field(default="Qwen/Qwen2.5-Coder-32B-Instruct", description="魔搭社区模型名称")

    # OpenAI 备用配置
    OPENAI_API_KEY: str = Field(default="", description="OpenAI api_key")
    OPENAI_BASE_URL: str = Field(default="https://api.openai.com/v1", description="OpenAI base_url")
    OPENAI_MODEL: str = Field(default="gpt-3.5-turbo", description="OpenAI模型名称")

    LLM_TIMEOUT: float = Field(default=300.0, description="模型调用读超时（秒）")
    LLM_CONNECT_TIMEOUT: float = Field(default=5.0, description="模型调用连接超时（秒）")

    # 本地JSON存储
    DATA_DIR: str = Field(default=str(Path.cwd() / "data"), description="规则、规则集与历史记录的存放目录")
    HISTORY_LIMIT: int = Field(default=100, description="保留的转换历史条数", ge=1)

    # 样式提取重试策略：第n次重试前等待 n * EXTRACT_RETRY_DELAY 秒
    EXTRACT_MAX_RETRIES: int = Field(default=3, description="样式提取最大重试次数", ge=0)
    EXTRACT_RETRY_DELAY: float = Field(default=1.0, description="样式提取重试基础间隔（秒）", ge=0)
    MERGE_EXTRACTED_RULES: bool = Field(default=True, description="提取出的规则是否走同类型智能合并")

    # Development
    DEBUG: bool = True

    @computed_field
    @property
    def modelscope_enabled(self) -> bool:
        """是否配置了可用的魔搭社区令牌"""
        token = self.MODELSCOPE_ACCESS_TOKEN.strip()
        return bool(token) and token != MODELSCOPE_TOKEN_PLACEHOLDER

    @computed_field
    @property
    def openai_enabled(self) -> bool:
        """是否配置了OpenAI密钥"""
        return bool(self.OPENAI_API_KEY.strip())

    model_config = SettingsConfigDict(
        env_file=_env_file_path,
        case_sensitive=True,
        extra="ignore",
    )


# Create settings instance
settings = Settings()
