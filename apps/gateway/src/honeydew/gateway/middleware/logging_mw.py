"""LoggingMiddleware -- 请求级日志上下文

每个请求一条 request_id（沿用上游网关传入的 X-Request-ID，否则新生成 ULID），
连同调用者身份头一起绑定到 structlog contextvars，
服务层的 bid_submitted、task_completed 等日志因此自带请求与操作者信息。
健康检查路由不记录请求日志。
"""

import re
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

from ..deps import USER_ID_HEADER, USER_ROLE_HEADER

REQUEST_ID_HEADER = "X-Request-ID"

_QUIET_PATHS = frozenset({"/health", "/ready"})
_INBOUND_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")

log = structlog.get_logger()


def resolve_request_id(inbound: str | None) -> str:
    """上游传入的 request_id 合法则沿用，否则生成新的 ULID"""
    if inbound and _INBOUND_REQUEST_ID.match(inbound):
        return inbound
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """绑定请求上下文并记录耗时"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )
        # 身份头未经校验，仅用于日志关联
        if actor := request.headers.get(USER_ID_HEADER):
            structlog.contextvars.bind_contextvars(
                actor_id=actor,
                actor_role=request.headers.get(USER_ROLE_HEADER, ""),
            )

        quiet = path in _QUIET_PATHS
        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            await log.aexception(
                "request_crashed",
                duration_ms=int((time.monotonic() - start) * 1000),
            )
            raise

        if not quiet:
            await log.ainfo(
                "request_completed",
                status_code=response.status_code,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
