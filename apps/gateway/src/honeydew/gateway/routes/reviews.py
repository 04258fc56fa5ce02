"""评价路由

POST /api/tasks/{task_id}/review: requester 评价已完成的任务
GET  /api/helpers/{helper_id}/reviews: helper 收到的评价与聚合评分
"""

from fastapi import APIRouter, Depends

from ..deps import (
    Identity,
    get_identity,
    get_profile_service,
    get_review_service,
    require_requester,
)
from ..services.profile_service import ProfileService
from ..services.review_service import ReviewService
from .schemas import ReviewRequest, review_to_dict

router = APIRouter()


@router.post("/api/tasks/{task_id}/review", status_code=201)
async def record_review(
    task_id: str,
    body: ReviewRequest,
    identity: Identity = Depends(require_requester),
    service: ReviewService = Depends(get_review_service),
):
    review, summary = await service.record_review(
        task_id,
        identity.user_id,
        rating=body.rating,
        text=body.text,
    )
    return {
        "review": review_to_dict(review),
        "helper_rating": summary.model_dump(mode="json"),
    }


@router.get("/api/helpers/{helper_id}/reviews")
async def list_helper_reviews(
    helper_id: str,
    identity: Identity = Depends(get_identity),
    service: ReviewService = Depends(get_review_service),
    profiles: ProfileService = Depends(get_profile_service),
):
    profile = await profiles.get_profile(helper_id)
    reviews = await service.list_reviews_for_helper(helper_id)
    return {
        "helper_id": helper_id,
        "average_rating": (
            str(profile.average_rating) if profile.average_rating is not None else None
        ),
        "rating_count": profile.rating_count,
        "reviews": [review_to_dict(r) for r in reviews],
    }
