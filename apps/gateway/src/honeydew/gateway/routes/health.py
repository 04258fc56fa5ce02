"""健康检查路由

GET /health: 存活探针，进程能响应即 200。
GET /ready: 就绪探针。core 档检查数据库（含 WAL 模式）、媒体目录可写与剩余空间；
            full 档额外向支付网关发起一次探测。任一检查失败返回 503。
"""

import os
import shutil
from typing import Literal

import structlog
from fastapi import APIRouter, Query, Request
from honeydew.core.store import StoreGroup
from honeydew.core.store.sqlite_init import verify_wal_mode
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()

# 低于此值时上传可能失败，视为未就绪
MIN_FREE_DISK_MB = 64


async def _check_sqlite(store_group: StoreGroup) -> tuple[str, bool]:
    try:
        if not await verify_wal_mode(store_group.conn):
            return "error: journal_mode is not WAL", False
    except Exception as e:
        await log.awarning("readiness_sqlite_failed", error_type=type(e).__name__, error=str(e))
        return f"error: {type(e).__name__}", False
    return "ok", True


def _check_media_dir(store_group: StoreGroup) -> tuple[str, bool]:
    media_dir = store_group.media_store.media_dir
    if not media_dir.is_dir():
        return "error: directory does not exist", False
    if not os.access(media_dir, os.W_OK):
        return "error: directory is not writable", False
    return "ok", True


def _free_disk_mb(store_group: StoreGroup) -> int:
    media_dir = store_group.media_store.media_dir
    try:
        return shutil.disk_usage(media_dir if media_dir.exists() else "/").free // (1024 * 1024)
    except OSError:
        return 0


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: Literal["core", "full"] = Query(
        default="core",
        description="core 仅本地依赖；full 额外探测支付网关",
    ),
):
    """就绪检查"""
    state = request.app.state
    store_group: StoreGroup = state.store_group

    sqlite_status, sqlite_ok = await _check_sqlite(store_group)
    media_status, media_ok = _check_media_dir(store_group)
    free_mb = _free_disk_mb(store_group)
    checks: dict = {
        "sqlite": sqlite_status,
        "media_dir": media_status,
        "disk_space_mb": free_mb,
        "sse_subscribers": state.sse_hub.subscriber_count(),
    }
    all_ok = sqlite_ok and media_ok and free_mb >= MIN_FREE_DISK_MB

    gateway = state.payment_gateway
    checks["payment_provider"] = gateway.provider_name
    if profile == "full":
        if await gateway.health_check():
            checks["payment_gateway"] = "ok"
        else:
            await log.awarning("payment_gateway_not_ready", provider=gateway.provider_name)
            checks["payment_gateway"] = "unreachable"
            all_ok = False
    else:
        checks["payment_gateway"] = "skipped"

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "profile": profile,
            "checks": checks,
        },
    )
