"""
简单日志模块
提供统一的日志记录功能
"""

import logging
import sys
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 原始模型输出写入日志时保留的最大长度
RAW_TEXT_LOG_LIMIT = 1000


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    log_dir: str = "logs"
) -> None:
    """
    配置全局日志

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: 是否输出到文件
        log_dir: 日志文件目录
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_path / "md_agent.log",
            encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logging.getLogger().addHandler(file_handler)

    # httpx 默认会记录每一次请求，调低噪音
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    获取日志记录器

    使用示例:
        logger = get_logger(__name__)
        logger.info("规则提取完成")
    """
    return logging.getLogger(name)


def truncate_for_log(text: str, limit: int = RAW_TEXT_LOG_LIMIT) -> str:
    """截断模型原始输出，避免日志被超长文本刷屏"""
    if text is None:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
