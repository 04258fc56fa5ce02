"""REST 请求体模型与响应序列化

金额在 JSON 中一律以字符串表示（Decimal 不丢精度）。
"""

from decimal import Decimal
from typing import Any

from honeydew.core.models import Bid, Event, Payment, Profile, Review, Role, Task
from pydantic import BaseModel, Field


class CreateProfileRequest(BaseModel):
    role: Role
    zip: str = Field(min_length=1)
    full_name: str = ""
    address: str = ""
    bio: str = ""


class UpdateProfileRequest(BaseModel):
    """None 字段保持不变"""

    full_name: str | None = None
    address: str | None = None
    bio: str | None = None


class CreateTaskRequest(BaseModel):
    description: str = Field(min_length=1)
    proposed_rate: Decimal = Field(gt=0)
    requires_tools: bool = False
    photo_reference: str | None = None
    address: str | None = Field(default=None, description="为空时使用资料中的默认地址")


class SubmitBidRequest(BaseModel):
    rate: Decimal = Field(gt=0)
    helper_has_tools: bool = True


class ReviewRequest(BaseModel):
    rating: int = Field(strict=True, description="1-5")
    text: str = ""


class PaymentRequest(BaseModel):
    tip: Decimal = Field(default=Decimal("0"), ge=0)


def task_to_dict(task: Task) -> dict[str, Any]:
    data = task.model_dump(mode="json")
    data["title"] = task.title
    return data


def event_to_dict(event: Event) -> dict[str, Any]:
    return {
        "event_id": event.event_id,
        "task_id": event.task_id,
        "ts": event.ts.isoformat(),
        "type": event.type.value,
        "actor_id": event.actor_id,
        "payload": event.payload,
    }


def bid_to_dict(bid: Bid) -> dict[str, Any]:
    return bid.model_dump(mode="json")


def review_to_dict(review: Review) -> dict[str, Any]:
    return review.model_dump(mode="json")


def profile_to_dict(profile: Profile) -> dict[str, Any]:
    return profile.model_dump(mode="json")


def payment_to_dict(payment: Payment) -> dict[str, Any]:
    return payment.model_dump(mode="json")
