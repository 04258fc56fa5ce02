"""评分 Projection 重建模块

profiles.average_rating / rating_count 是 reviews 表的派生状态。
此模块对每个 helper 的完整评价集合重新折叠，覆盖写回 profiles。
"""

import time

import aiosqlite
import structlog

from .rating import aggregate_ratings
from .store.profile_store import SqliteProfileStore
from .store.review_store import SqliteReviewStore
from .store.transaction import unit_of_work

log = structlog.get_logger()


async def rebuild_helper_rating(
    review_store: SqliteReviewStore,
    profile_store: SqliteProfileStore,
    helper_id: str,
) -> bool:
    """重建单个 helper 的评分（不提交事务）

    Returns:
        True 如果该 helper 的资料存在并已更新
    """
    ratings = await review_store.list_ratings_for_helper(helper_id)
    summary = aggregate_ratings(ratings)
    return await profile_store.set_rating_summary(
        helper_id,
        summary.average_rating,
        summary.rating_count,
    )


async def rebuild_all_ratings(
    conn: aiosqlite.Connection,
    review_store: SqliteReviewStore,
    profile_store: SqliteProfileStore,
) -> int:
    """从 reviews 表重建所有 helper 的评分

    流程：
    1. 查出所有收到过评价的 helper
    2. 逐个重新聚合并写回 profiles
    3. 单事务提交

    Args:
        conn: 数据库连接
        review_store: ReviewStore 实例
        profile_store: ProfileStore 实例

    Returns:
        更新的 helper 数量
    """
    start_time = time.monotonic()

    updated = 0
    async with unit_of_work(conn):
        helper_ids = await review_store.list_reviewed_helper_ids()
        await log.ainfo("rating_rebuild_started", helper_count=len(helper_ids))
        for helper_id in helper_ids:
            if await rebuild_helper_rating(review_store, profile_store, helper_id):
                updated += 1
            else:
                # 评价存在但资料缺失：无处写回
                await log.awarning("rating_rebuild_profile_missing", helper_id=helper_id)

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "rating_rebuild_completed",
        helper_count=len(helper_ids),
        updated_count=updated,
        elapsed_ms=elapsed_ms,
    )

    return updated


async def find_rating_drift(
    review_store: SqliteReviewStore,
    profile_store: SqliteProfileStore,
) -> list[str]:
    """找出资料中评分与 reviews 表重新折叠结果不一致的 helper（只读）"""
    drifted: list[str] = []
    for helper_id in await review_store.list_reviewed_helper_ids():
        profile = await profile_store.get_profile(helper_id)
        if profile is None:
            continue
        expected = aggregate_ratings(await review_store.list_ratings_for_helper(helper_id))
        if (profile.average_rating, profile.rating_count) != (
            expected.average_rating,
            expected.rating_count,
        ):
            drifted.append(helper_id)
    return drifted
