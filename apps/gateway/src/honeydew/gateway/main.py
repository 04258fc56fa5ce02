"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭、支付网关与 feed 缓存初始化、路由注册、
领域异常统一渲染为 {"error": {"code", "message"}}。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from honeydew.core.config import get_db_path, get_media_base_url, get_media_dir
from honeydew.core.exceptions import HoneydewError
from honeydew.core.store import StoreGroup, create_store_group
from honeydew.payments import build_payment_gateway, load_payment_config
from starlette.responses import JSONResponse

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import bids, health, payments, profiles, reviews, stream, tasks, work
from .services.feed_cache import TaskFeedCache
from .services.sse_hub import SSEHub
from .services.task_service import TaskService

log = structlog.get_logger()


def init_app_state(app: FastAPI, store_group: StoreGroup) -> None:
    """把运行期组件挂到 app.state（lifespan 与测试共用）"""
    app.state.store_group = store_group
    app.state.sse_hub = SSEHub()

    payment_config = load_payment_config()
    app.state.payment_config = payment_config
    app.state.payment_gateway = build_payment_gateway(payment_config)

    task_service = TaskService(store_group)
    app.state.feed_cache = TaskFeedCache(task_service.list_tasks_for_viewer)

    log.info(
        "app_state_initialized",
        payment_mode=payment_config.payment_mode,
        currency=payment_config.currency,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和支付网关，关闭时清理连接"""
    store_group = await create_store_group(
        get_db_path(),
        get_media_dir(),
        get_media_base_url(),
    )
    init_app_state(app, store_group)

    yield

    if getattr(app.state, "store_group", None):
        await app.state.store_group.conn.close()


async def handle_domain_error(request: Request, exc: HoneydewError) -> JSONResponse:
    """领域异常 -> {"error": {"code", "message"}}"""
    if exc.status_code >= 500:
        await log.aerror("request_failed", error_code=exc.code, error=exc.message)
    else:
        await log.awarning(
            "request_rejected",
            error_code=exc.code,
            status_code=exc.status_code,
            error=exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """请求体校验失败统一报告为 INVALID_INPUT"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "code": "INVALID_INPUT",
                "message": f"{location}: {message}" if location else message,
            }
        },
    )


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Honeydew Gateway",
        version="0.1.0",
        description="Honeydew 家务互助平台 API",
        lifespan=lifespan,
    )

    # 注册中间件（后添加者在外层：Logging 先清理 contextvars，Trace 再绑定 trace_id）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(HoneydewError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    setup_logging()
    setup_logfire(app)

    app.include_router(profiles.router, tags=["profiles"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(bids.router, tags=["bids"])
    app.include_router(work.router, tags=["work"])
    app.include_router(reviews.router, tags=["reviews"])
    app.include_router(payments.router, tags=["payments"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    # 头像与任务照片；目录在 lifespan 中创建
    app.mount(
        "/media",
        StaticFiles(directory=str(get_media_dir()), check_dir=False),
        name="media",
    )

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
