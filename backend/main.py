"""
Markdown 样式规则智能体 应用主入口
"""

from md_agent.config.app_config import create_app
from md_agent.config.config import settings

app = create_app()


@app.get("/")
def read_root():
    """根路径"""
    return {
        "message": "Welcome to Markdown Style Agent API",
        "version": settings.VERSION,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/api/health")
def health_check():
    """健康检查"""
    return {
        "status": "healthy",
        "app": settings.PROJECT_NAME,
        "version": settings.VERSION
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
