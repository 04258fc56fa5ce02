"""评分聚合 -- helper 平均分与评价数

每次都对该 helper 的完整评分集合做一次折叠，而不是维护增量均值。
"""

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel, Field

from .billing import round_cents
from .exceptions import InvalidInput

MIN_RATING = 1
MAX_RATING = 5


class RatingSummary(BaseModel):
    """聚合结果"""

    average_rating: Decimal | None = Field(default=None, description="无评价时为空")
    rating_count: int = Field(default=0, ge=0)


def validate_rating(rating: int) -> int:
    """校验评分在 1-5 范围内的整数"""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidInput(f"Rating must be an integer, got {rating!r}")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidInput(f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}")
    return rating


def aggregate_ratings(ratings: Iterable[int]) -> RatingSummary:
    """计算平均分（两位小数）与评价数"""
    values = [validate_rating(r) for r in ratings]
    if not values:
        return RatingSummary()
    average = Decimal(sum(values)) / Decimal(len(values))
    return RatingSummary(average_rating=round_cents(average), rating_count=len(values))
