import contextlib

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from md_agent.config.config import settings
from md_agent.controller.markdown.history_controller import router as history_router
from md_agent.controller.markdown.markdown_controller import router as markdown_router
from md_agent.controller.markdown.rule_controller import router as rule_router
from md_agent.controller.markdown.rule_set_controller import router as rule_set_router
from md_agent.core.language_model.manager import language_model_manager
from md_agent.dependencies.dependency import get_storage_service
from md_agent.response.exception.global_exception import GlobalReOrExHandler
from md_agent.response.response_middleware import ResponseMiddleware
from md_agent.utils.logger.simple_logger import get_logger, setup_logging

# 创建日志记录器
logger = get_logger(__name__)


def add_middleware(app: FastAPI):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"]
    )
    # 添加响应中间件
    app.add_middleware(
        ResponseMiddleware,
        enable_tracing=True,
        enable_request_id=True
    )


def init_resource():
    # 初始化日志系统
    setup_logging(level=settings.LOG_LEVEL, log_to_file=settings.LOG_TO_FILE, log_dir=settings.LOG_DIR)

    logger.info("正在初始化本地存储")
    get_storage_service().initialize()
    logger.info("本地存储初始化完成")

    provider = language_model_manager.get_provider()
    if provider is None:
        logger.warning("未配置AI服务，提取与转换接口将不可用")
    else:
        logger.info(f"AI服务: {provider.provider_name} / {provider.default_model}")


def register_router(app: FastAPI):
    logger.info("正在注册路由")
    app.include_router(markdown_router)
    app.include_router(rule_router)
    app.include_router(rule_set_router)
    app.include_router(history_router)
    logger.info("注册路由完成")


@contextlib.asynccontextmanager
async def life_span(app: FastAPI):
    logger.info("正在启动fastapi应用")
    try:
        init_resource()
        yield
    finally:
        logger.info("正在关闭AI服务连接")
        await language_model_manager.aclose()
        logger.info("fastapi应用关闭")


def create_app():
    logger.info("创建 FastAPI 应用实例")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Markdown样式规则提取与转换",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=life_span
    )
    logger.info("正在注册全局异常管理器")
    GlobalReOrExHandler(app)
    logger.info("注册全局异常管理器成功")
    logger.info("正在注册中间件")
    add_middleware(app)
    logger.info("注册中间件成功")
    register_router(app)

    return app
