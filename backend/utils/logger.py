"""
日志配置模块
提供统一的日志记录功能，支持详细的错误日志记录
"""
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from pathlib import Path


class DetailedFormatter(logging.Formatter):
    """详细的日志格式化器，包含额外的上下文信息"""

    def format(self, record: logging.LogRecord) -> str:
        """
        格式化日志记录

        Args:
            record: 日志记录对象

        Returns:
            格式化后的日志字符串
        """
        formatted = super().format(record)

        # 附加上下文信息（由 log_error_with_context 传入）
        if hasattr(record, 'extra_context'):
            formatted += f"\n上下文信息: {record.extra_context}"

        return formatted


def setup_logger(
    name: str = "geminicliui",
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    设置日志记录器

    Args:
        name: 日志记录器名称
        log_level: 日志级别（DEBUG, INFO, WARNING, ERROR, CRITICAL）
        log_file: 日志文件路径，如果为None则从环境变量读取
        console_output: 是否输出到控制台

    Returns:
        配置好的日志记录器
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    if log_file is None:
        log_file = os.getenv("LOG_FILE", "./logs/app.log")

    log_dir = os.path.dirname(log_file)
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper()))

    # 清除已有的处理器（避免重复添加）
    logger.handlers.clear()

    log_format = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(DetailedFormatter(log_format, date_format))
    logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, log_level.upper()))
        console_handler.setFormatter(DetailedFormatter(log_format, date_format))
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str = "geminicliui") -> logging.Logger:
    """
    获取日志记录器

    Args:
        name: 日志记录器名称

    Returns:
        日志记录器实例
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        setup_logger(name)

    return logger


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    error: Exception,
    context: Optional[Dict[str, Any]] = None
):
    """
    记录带有详细上下文的错误日志

    Args:
        logger: 日志记录器
        message: 错误消息
        error: 异常对象
        context: 额外的上下文信息（如CLI参数、退出码等）
    """
    error_details = {
        "message": message,
        "error_type": type(error).__name__,
        "error_message": str(error),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if context:
        error_details["context"] = context

    # 不在 except 块中调用时也能取到异常自身的堆栈
    error_details["traceback"] = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )

    logger.error(
        f"{message}\n详细信息: {error_details}",
        exc_info=error,
        extra={"extra_context": context}
    )


def log_cli_error(
    logger: logging.Logger,
    args: List[str],
    returncode: Optional[int],
    stderr: str,
    error: Exception
):
    """
    记录外部CLI调用错误

    Args:
        logger: 日志记录器
        args: CLI参数列表（不含可执行文件路径）
        returncode: 退出码（进程未启动时为None）
        stderr: 标准错误输出
        error: 异常对象
    """
    context = {
        "args": args,
        "returncode": returncode,
        "stderr": stderr[:500] if stderr else None,  # 限制长度
    }
    log_error_with_context(logger, "外部CLI调用失败", error, context)
