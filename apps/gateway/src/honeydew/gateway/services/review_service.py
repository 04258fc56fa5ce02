"""ReviewService -- 评价与 helper 评分聚合

只有已完成且支付成功的任务可以评价。

评价插入、评分重算、审计事件在同一事务内提交；
重复评价由 reviews.task_id 唯一索引拦截，两次并发提交只有一次成功。
"""

from collections.abc import Callable
from datetime import datetime

import aiosqlite
import structlog
from honeydew.core.exceptions import (
    DuplicateReview,
    InvalidTransition,
    PermissionDenied,
    TaskNotFound,
)
from honeydew.core.models import (
    Event,
    EventType,
    PaymentStatus,
    Review,
    ReviewRecordedPayload,
    TaskStatus,
)
from honeydew.core.rating import RatingSummary, validate_rating
from honeydew.core.store import StoreGroup, record_review_and_refresh_rating
from honeydew.core.store.review_store import is_duplicate_review_error
from ulid import ULID

from .task_service import utc_now

log = structlog.get_logger()


class ReviewService:
    """评价业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        sse_hub=None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._stores = store_group
        self._sse_hub = sse_hub
        self._clock = clock

    async def record_review(
        self,
        task_id: str,
        reviewer_id: str,
        rating: int,
        text: str | None = None,
    ) -> tuple[Review, RatingSummary]:
        """记录评价并重新聚合 helper 评分

        Raises:
            InvalidInput: 评分不在 1-5
            TaskNotFound: 任务不存在
            PermissionDenied: 评价者不是发布者
            InvalidTransition: 任务尚未完成或尚未支付成功
            DuplicateReview: 该任务已有评价
        """
        validate_rating(rating)
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        if task.requester_id != reviewer_id:
            raise PermissionDenied("Only the requester can review this task")
        if task.status != TaskStatus.COMPLETED or task.helper_id is None:
            raise InvalidTransition(f"Task {task_id} is not completed yet")
        payment = await self._stores.payment_store.get_payment(task_id)
        if payment is None or payment.status != PaymentStatus.SUCCEEDED:
            raise InvalidTransition(f"Task {task_id} has not been paid yet")

        now = self._clock()
        review = Review(
            review_id=str(ULID()),
            task_id=task_id,
            helper_id=task.helper_id,
            reviewer_id=reviewer_id,
            rating=rating,
            text=(text or "").strip(),
            created_at=now,
        )

        built: list[Event] = []

        def build_event(summary: RatingSummary) -> Event:
            event = Event(
                event_id=str(ULID()),
                task_id=task_id,
                ts=now,
                type=EventType.REVIEW_RECORDED,
                actor_id=reviewer_id,
                payload=ReviewRecordedPayload(
                    review_id=review.review_id,
                    helper_id=review.helper_id,
                    rating=rating,
                    average_rating=(
                        str(summary.average_rating)
                        if summary.average_rating is not None
                        else None
                    ),
                    rating_count=summary.rating_count,
                ).model_dump(),
                trace_id=f"trace-{task_id}",
            )
            built.append(event)
            return event

        try:
            summary = await record_review_and_refresh_rating(
                self._stores.conn,
                self._stores.review_store,
                self._stores.profile_store,
                self._stores.event_store,
                review,
                build_event,
            )
        except aiosqlite.IntegrityError as e:
            if is_duplicate_review_error(e):
                raise DuplicateReview(f"Task {task_id} has already been reviewed") from e
            raise

        if summary is None:
            # 读取之后任务或支付状态已变化
            raise InvalidTransition(f"Task {task_id} is not completed and paid")

        await log.ainfo(
            "review_recorded",
            task_id=task_id,
            helper_id=review.helper_id,
            rating=rating,
            average_rating=str(summary.average_rating),
            rating_count=summary.rating_count,
        )
        if self._sse_hub and built:
            await self._sse_hub.broadcast(task_id, built[-1])
        return review, summary

    async def list_reviews_for_helper(self, helper_id: str) -> list[Review]:
        """helper 收到的全部评价"""
        return await self._stores.review_store.list_reviews_for_helper(helper_id)
