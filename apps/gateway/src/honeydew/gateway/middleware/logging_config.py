"""structlog 配置模块

HONEYDEW_LOG_FORMAT=dev（默认）输出彩色可读日志，json 输出单行 JSON；
标准库 logging（uvicorn、aiosqlite、httpx）经 ProcessorFormatter 走同一渲染器。
Logfire 仅在 LOGFIRE_SEND_TO_LOGFIRE=true 时启用。
"""

import logging
import os
from decimal import Decimal

import structlog

SERVICE_NAME = "honeydew-gateway"

# 第三方库的逐条调用日志过于嘈杂
_NOISY_LOGGERS = {
    "aiosqlite": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    # 请求日志由 LoggingMiddleware 负责
    "uvicorn.access": logging.WARNING,
}


def _decimals_as_strings(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """金额字段以字符串输出，JSON 渲染不丢精度"""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging() -> None:
    """初始化 structlog 与标准库 logging，重复调用会覆盖之前的配置"""
    log_format = os.environ.get("HONEYDEW_LOG_FORMAT", "dev").strip().lower()
    level = _resolve_level(os.environ.get("HONEYDEW_LOG_LEVEL", "INFO"))

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _decimals_as_strings,
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_build_renderer(log_format),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    for name, noisy_level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(level, noisy_level))


def setup_logfire(app=None) -> bool:
    """按环境变量启用 Logfire，返回是否已启用

    需要安装 logfire extra 并提供 LOGFIRE_TOKEN；初始化失败只记录警告。
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name=SERVICE_NAME)
        if app is not None:
            logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
            error=str(e),
        )
        return False
    return True
