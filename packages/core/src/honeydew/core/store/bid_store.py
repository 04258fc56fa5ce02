"""BidStore SQLite 实现 -- 出价台账

出价按 (task_id, helper_id) upsert；是否允许出价在同一条 INSERT ... SELECT 语句中
以任务当前状态为条件判断，避免“先查后写”的竞态。
"""

from datetime import datetime
from decimal import Decimal

import aiosqlite

from ..models.bid import Bid
from ..models.enums import TaskStatus

_BID_COLUMNS = "task_id, helper_id, rate, helper_has_tools, created_at, updated_at"


class SqliteBidStore:
    """BidStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def upsert_bid(self, bid: Bid) -> bool:
        """新增或覆盖出价（仅当任务 pending 且未分配 helper）

        注意：此方法不自动提交事务，需由调用方管理事务。

        Returns:
            True 如果写入成功；False 表示任务当前不接受出价
        """
        cursor = await self._conn.execute(
            f"""
            INSERT INTO bids ({_BID_COLUMNS})
            SELECT ?, ?, ?, ?, ?, ?
            WHERE EXISTS (
                SELECT 1 FROM tasks
                WHERE task_id = ? AND status = ? AND helper_id IS NULL
            )
            ON CONFLICT (task_id, helper_id) DO UPDATE SET
                rate = excluded.rate,
                helper_has_tools = excluded.helper_has_tools,
                updated_at = excluded.updated_at
            """,
            (
                bid.task_id,
                bid.helper_id,
                str(bid.rate),
                int(bid.helper_has_tools),
                bid.created_at.isoformat(),
                bid.updated_at.isoformat(),
                bid.task_id,
                TaskStatus.PENDING.value,
            ),
        )
        return cursor.rowcount == 1

    async def get_bid(self, task_id: str, helper_id: str) -> Bid | None:
        """查询某个 helper 对某任务的出价"""
        cursor = await self._conn.execute(
            f"SELECT {_BID_COLUMNS} FROM bids WHERE task_id = ? AND helper_id = ?",
            (task_id, helper_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_bid(row)

    async def list_bids_for_task(self, task_id: str) -> list[Bid]:
        """查询任务的全部出价（含已失效的），按首次出价时间正序"""
        cursor = await self._conn.execute(
            f"SELECT {_BID_COLUMNS} FROM bids WHERE task_id = ? ORDER BY created_at ASC",
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_bid(row) for row in rows]

    @staticmethod
    def _row_to_bid(row: aiosqlite.Row) -> Bid:
        """将数据库行转换为 Bid 模型"""
        return Bid(
            task_id=row[0],
            helper_id=row[1],
            rate=Decimal(row[2]),
            helper_has_tools=bool(row[3]),
            created_at=datetime.fromisoformat(row[4]),
            updated_at=datetime.fromisoformat(row[5]),
        )
