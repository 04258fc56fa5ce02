"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store、服务与调用者身份

Store、SSEHub、支付网关、feed 缓存由 lifespan 初始化并挂在 app.state 上；
业务服务按请求构造，无状态。
"""

from fastapi import Depends, Request
from honeydew.core.exceptions import PermissionDenied, Unauthenticated
from honeydew.core.models import Role
from honeydew.core.store import StoreGroup
from pydantic import BaseModel, Field

from .services.feed_cache import TaskFeedCache
from .services.payment_service import PaymentService
from .services.profile_service import ProfileService
from .services.review_service import ReviewService
from .services.sse_hub import SSEHub
from .services.task_service import TaskService

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


class Identity(BaseModel):
    """已认证的调用者（由上游身份服务写入请求头）"""

    user_id: str = Field(min_length=1)
    role: Role


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_sse_hub(request: Request) -> SSEHub:
    """从 app.state 获取 SSEHub 实例"""
    return request.app.state.sse_hub


def get_payment_gateway(request: Request):
    return request.app.state.payment_gateway


def get_feed_cache(request: Request) -> TaskFeedCache:
    return request.app.state.feed_cache


def get_identity(request: Request) -> Identity:
    """从请求头读取调用者身份

    Raises:
        Unauthenticated: 缺少身份头或角色不合法
    """
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    role = request.headers.get(USER_ROLE_HEADER, "").strip().lower()
    if not user_id:
        raise Unauthenticated("Missing caller identity")
    try:
        return Identity(user_id=user_id, role=Role(role))
    except ValueError as e:
        raise Unauthenticated(f"Unknown role: {role!r}") from e


def require_requester(identity: Identity = Depends(get_identity)) -> Identity:
    if identity.role != Role.USER:
        raise PermissionDenied("This action is only available to requesters")
    return identity


def require_helper(identity: Identity = Depends(get_identity)) -> Identity:
    if identity.role != Role.HELPER:
        raise PermissionDenied("This action is only available to helpers")
    return identity


def get_task_service(
    store_group: StoreGroup = Depends(get_store_group),
    sse_hub: SSEHub = Depends(get_sse_hub),
) -> TaskService:
    return TaskService(store_group, sse_hub=sse_hub)


def get_review_service(
    store_group: StoreGroup = Depends(get_store_group),
    sse_hub: SSEHub = Depends(get_sse_hub),
) -> ReviewService:
    return ReviewService(store_group, sse_hub=sse_hub)


def get_profile_service(
    store_group: StoreGroup = Depends(get_store_group),
) -> ProfileService:
    return ProfileService(store_group)


def get_payment_service(
    request: Request,
    store_group: StoreGroup = Depends(get_store_group),
    sse_hub: SSEHub = Depends(get_sse_hub),
) -> PaymentService:
    return PaymentService(
        store_group,
        gateway=get_payment_gateway(request),
        currency=request.app.state.payment_config.currency,
        sse_hub=sse_hub,
    )
