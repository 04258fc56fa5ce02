"""TraceMiddleware -- 任务级追踪

从路径 /api/tasks/{task_id}/... 或 /api/stream/task/{task_id} 中提取 task_id，
绑定 trace_id=trace-{task_id}，贯穿该任务所有请求的日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 字符串长度
_TASK_ID_LENGTH = 26


def extract_task_id(path: str) -> str | None:
    """从请求路径中提取 task_id，非任务路由返回 None"""
    parts = path.strip("/").split("/")
    for i, part in enumerate(parts[:-1]):
        if part in ("tasks", "task"):
            candidate = parts[i + 1]
            if len(candidate) == _TASK_ID_LENGTH and candidate.isalnum():
                return candidate
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为任务操作绑定 trace_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(trace_id=f"trace-{task_id}")

        return await call_next(request)
