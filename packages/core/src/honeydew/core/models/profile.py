"""Profile Domain Model

average_rating / rating_count 是派生状态：
每次新增评价后都从该 helper 的全部评价重新计算，而不是增量修补。
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from .enums import Role


class Profile(BaseModel):
    """用户资料（requester 与 helper 共用）"""

    user_id: str = Field(description="身份服务提供的用户 ID")
    created_at: datetime = Field(description="创建时间")
    full_name: str = Field(default="")
    role: Role = Field(default=Role.USER)
    zip: str = Field(default="", description="邮编，helper 按此匹配任务")
    address: str = Field(default="", description="默认服务地址")
    bio: str = Field(default="")
    profile_image_url: str | None = Field(default=None)
    average_rating: Decimal | None = Field(default=None, description="首条评价前为空")
    rating_count: int = Field(default=0, ge=0)
