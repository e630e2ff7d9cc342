"""structlog 配置模块 -- CLI 日志输出

日志统一写到 stderr，stdout 只留给命令结果（通知 + 任务列表）。
structlog 事件与第三方库的标准 logging 记录共用同一条处理器链和渲染器。
"""

import logging
import os
import sys
from typing import TextIO

import structlog
from structlog.types import Processor

# 第三方库日志默认只保留警告以上
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "asyncio")


def _resolve_level(level: str | None) -> int:
    name = (level or os.environ.get("TASKLINE_LOG_LEVEL", "WARNING")).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.WARNING


def _pre_chain() -> list[Processor]:
    """structlog 与 stdlib 记录共用的前置处理器"""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=False)


def _stream_handler(renderer: Processor, stream: TextIO) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=_pre_chain(),
        )
    )
    return handler


def setup_logging(
    log_format: str | None = None,
    level: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """初始化 structlog 配置

    Args:
        log_format: "json" 或 "dev"，默认读 TASKLINE_LOG_FORMAT（默认 dev）
        level: 日志级别名，默认读 TASKLINE_LOG_LEVEL（默认 WARNING）
        stream: 输出流，默认 sys.stderr
    """
    log_level = _resolve_level(level)
    handler = _stream_handler(
        _renderer(log_format or os.environ.get("TASKLINE_LOG_FORMAT", "dev")),
        stream or sys.stderr,
    )

    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(log_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def bind_command_context(command: str, table: str) -> None:
    """为本次 CLI 调用的所有日志绑定命令与表名"""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(command=command, table=table)
