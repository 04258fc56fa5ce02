"""ReviewStore SQLite 实现

reviews.task_id 上的唯一索引保证每个任务只有一条评价；
插入以任务 completed 且支付已 succeeded 为条件，未满足时不写入任何数据。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import PaymentStatus, TaskStatus
from ..models.review import Review

_REVIEW_COLUMNS = "review_id, task_id, helper_id, reviewer_id, rating, text, created_at"


def is_duplicate_review_error(error: Exception) -> bool:
    """判断 IntegrityError 是否由 reviews.task_id 唯一约束触发"""
    if not isinstance(error, aiosqlite.IntegrityError):
        return False
    text = str(error)
    return "idx_reviews_task_id" in text or "reviews.task_id" in text


class SqliteReviewStore:
    """ReviewStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert_review(self, review: Review) -> bool:
        """插入评价（仅当任务已 completed、已支付且 helper 与评价者匹配）

        注意：此方法不自动提交事务，需由调用方管理事务。

        Returns:
            True 如果插入成功；False 表示任务前置条件不满足

        Raises:
            aiosqlite.IntegrityError: 该任务已有评价
        """
        cursor = await self._conn.execute(
            f"""
            INSERT INTO reviews ({_REVIEW_COLUMNS})
            SELECT ?, ?, ?, ?, ?, ?, ?
            WHERE EXISTS (
                SELECT 1 FROM tasks
                WHERE task_id = ? AND status = ? AND helper_id = ? AND requester_id = ?
            )
            AND EXISTS (
                SELECT 1 FROM payments WHERE task_id = ? AND status = ?
            )
            """,
            (
                review.review_id,
                review.task_id,
                review.helper_id,
                review.reviewer_id,
                review.rating,
                review.text,
                review.created_at.isoformat(),
                review.task_id,
                TaskStatus.COMPLETED.value,
                review.helper_id,
                review.reviewer_id,
                review.task_id,
                PaymentStatus.SUCCEEDED.value,
            ),
        )
        return cursor.rowcount == 1

    async def get_review_for_task(self, task_id: str) -> Review | None:
        """查询任务的评价"""
        cursor = await self._conn.execute(
            f"SELECT {_REVIEW_COLUMNS} FROM reviews WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_review(row)

    async def list_reviews_for_helper(self, helper_id: str) -> list[Review]:
        """查询 helper 收到的全部评价，按时间正序"""
        cursor = await self._conn.execute(
            f"SELECT {_REVIEW_COLUMNS} FROM reviews WHERE helper_id = ? ORDER BY created_at ASC",
            (helper_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_review(row) for row in rows]

    async def list_ratings_for_helper(self, helper_id: str) -> list[int]:
        """仅查询评分值，供聚合使用"""
        cursor = await self._conn.execute(
            "SELECT rating FROM reviews WHERE helper_id = ?",
            (helper_id,),
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def list_reviewed_helper_ids(self) -> list[str]:
        """所有收到过评价的 helper"""
        cursor = await self._conn.execute(
            "SELECT DISTINCT helper_id FROM reviews ORDER BY helper_id"
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    @staticmethod
    def _row_to_review(row: aiosqlite.Row) -> Review:
        """将数据库行转换为 Review 模型"""
        return Review(
            review_id=row[0],
            task_id=row[1],
            helper_id=row[2],
            reviewer_id=row[3],
            rating=row[4],
            text=row[5],
            created_at=datetime.fromisoformat(row[6]),
        )
