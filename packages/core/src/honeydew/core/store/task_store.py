"""TaskStore SQLite 实现

所有状态流转都是单条条件 UPDATE（compare-and-set）：
WHERE 子句携带状态、helper_id 与时间字段的守卫条件，
rowcount == 0 即表示守卫不满足，此时没有任何写入发生。
此处不提交事务，由 transaction 模块管理。
"""

from datetime import datetime
from decimal import Decimal

import aiosqlite

from ..models.enums import TaskStatus
from ..models.task import Task

_TASK_COLUMNS = (
    "task_id, created_at, updated_at, requester_id, description, zip, proposed_rate, "
    "status, helper_id, accepted_rate, requires_tools, photo_reference, address, "
    "start_time, end_time, total_duration_seconds, final_amount"
)


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _dec(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_TASK_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
                task.requester_id,
                task.description,
                task.zip,
                str(task.proposed_rate),
                task.status.value,
                task.helper_id,
                _dec(task.accepted_rate),
                int(task.requires_tools),
                task.photo_reference,
                task.address,
                _ts(task.start_time),
                _ts(task.end_time),
                task.total_duration_seconds,
                _dec(task.final_amount),
            ),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks_for_requester(self, requester_id: str) -> list[Task]:
        """发布者自己的任务"""
        cursor = await self._conn.execute(
            f"""
            SELECT {_TASK_COLUMNS} FROM tasks
            WHERE requester_id = ?
            ORDER BY created_at DESC
            """,
            (requester_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_tasks_for_helper(self, helper_id: str, zip_code: str) -> list[Task]:
        """helper 的任务看板

        同邮编、未分配的 pending 任务，加上已分配给该 helper 的 confirmed/completed 任务。
        """
        cursor = await self._conn.execute(
            f"""
            SELECT {_TASK_COLUMNS} FROM tasks
            WHERE (status = ? AND zip = ? AND helper_id IS NULL)
               OR (status IN (?, ?) AND helper_id = ?)
            ORDER BY created_at DESC
            """,
            (
                TaskStatus.PENDING.value,
                zip_code,
                TaskStatus.CONFIRMED.value,
                TaskStatus.COMPLETED.value,
                helper_id,
            ),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def confirm_with_bid(self, task_id: str, helper_id: str, updated_at: datetime) -> bool:
        """pending -> confirmed：接受 helper 的出价

        同一条 UPDATE 内校验出价存在并复制其 rate，状态、helper_id、accepted_rate 原子写入。

        Returns:
            True 如果条件写入成功
        """
        cursor = await self._conn.execute(
            """
            UPDATE tasks
            SET status = ?,
                helper_id = ?,
                accepted_rate = (
                    SELECT rate FROM bids WHERE bids.task_id = tasks.task_id AND bids.helper_id = ?
                ),
                updated_at = ?
            WHERE task_id = ?
              AND status = ?
              AND helper_id IS NULL
              AND EXISTS (
                  SELECT 1 FROM bids WHERE bids.task_id = tasks.task_id AND bids.helper_id = ?
              )
            """,
            (
                TaskStatus.CONFIRMED.value,
                helper_id,
                helper_id,
                updated_at.isoformat(),
                task_id,
                TaskStatus.PENDING.value,
                helper_id,
            ),
        )
        return cursor.rowcount == 1

    async def mark_started(self, task_id: str, helper_id: str, start_time: datetime) -> bool:
        """写入 start_time（仅当 confirmed、helper 匹配且尚未开始）"""
        cursor = await self._conn.execute(
            """
            UPDATE tasks
            SET start_time = ?, updated_at = ?
            WHERE task_id = ?
              AND status = ?
              AND helper_id = ?
              AND start_time IS NULL
            """,
            (
                start_time.isoformat(),
                start_time.isoformat(),
                task_id,
                TaskStatus.CONFIRMED.value,
                helper_id,
            ),
        )
        return cursor.rowcount == 1

    async def mark_completed(
        self,
        task_id: str,
        helper_id: str,
        expected_start_time: datetime,
        end_time: datetime,
        total_duration_seconds: int,
        final_amount: Decimal,
    ) -> bool:
        """confirmed -> completed：一次性写入 end_time、时长与金额

        以读取到的 start_time 为条件，保证金额基于同一个开始时间计算。
        """
        cursor = await self._conn.execute(
            """
            UPDATE tasks
            SET status = ?,
                end_time = ?,
                total_duration_seconds = ?,
                final_amount = ?,
                updated_at = ?
            WHERE task_id = ?
              AND status = ?
              AND helper_id = ?
              AND start_time = ?
              AND end_time IS NULL
              AND final_amount IS NULL
            """,
            (
                TaskStatus.COMPLETED.value,
                end_time.isoformat(),
                total_duration_seconds,
                str(final_amount),
                end_time.isoformat(),
                task_id,
                TaskStatus.CONFIRMED.value,
                helper_id,
                expected_start_time.isoformat(),
            ),
        )
        return cursor.rowcount == 1

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            created_at=datetime.fromisoformat(row[1]),
            updated_at=datetime.fromisoformat(row[2]),
            requester_id=row[3],
            description=row[4],
            zip=row[5],
            proposed_rate=Decimal(row[6]),
            status=row[7],
            helper_id=row[8],
            accepted_rate=Decimal(row[9]) if row[9] is not None else None,
            requires_tools=bool(row[10]),
            photo_reference=row[11],
            address=row[12],
            start_time=datetime.fromisoformat(row[13]) if row[13] else None,
            end_time=datetime.fromisoformat(row[14]) if row[14] else None,
            total_duration_seconds=row[15],
            final_amount=Decimal(row[16]) if row[16] is not None else None,
        )
