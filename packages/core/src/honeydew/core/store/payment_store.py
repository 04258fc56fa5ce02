"""PaymentStore SQLite 实现"""

from datetime import datetime
from decimal import Decimal

import aiosqlite

from ..models.enums import PaymentStatus
from ..models.payment import Payment

_PAYMENT_COLUMNS = (
    "task_id, intent_id, client_secret, amount, tip, total, currency, status, "
    "created_at, updated_at"
)


class SqlitePaymentStore:
    """PaymentStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_payment(self, payment: Payment) -> bool:
        """保存支付意图

        同一任务已有未失败的支付记录时不覆盖；失败记录可以被新的意图替换。

        Returns:
            True 如果写入成功
        """
        cursor = await self._conn.execute(
            f"""
            INSERT INTO payments ({_PAYMENT_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (task_id) DO UPDATE SET
                intent_id = excluded.intent_id,
                client_secret = excluded.client_secret,
                amount = excluded.amount,
                tip = excluded.tip,
                total = excluded.total,
                currency = excluded.currency,
                status = excluded.status,
                updated_at = excluded.updated_at
            WHERE payments.status = ?
            """,
            (
                payment.task_id,
                payment.intent_id,
                payment.client_secret,
                str(payment.amount),
                str(payment.tip),
                str(payment.total),
                payment.currency,
                payment.status.value,
                payment.created_at.isoformat(),
                payment.updated_at.isoformat(),
                PaymentStatus.FAILED.value,
            ),
        )
        return cursor.rowcount == 1

    async def get_payment(self, task_id: str) -> Payment | None:
        """查询任务的支付记录"""
        cursor = await self._conn.execute(
            f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_payment(row)

    async def update_status(
        self,
        task_id: str,
        intent_id: str,
        status: PaymentStatus,
        updated_at: datetime,
    ) -> bool:
        """更新支付状态（仅当 intent 匹配且尚未成功）"""
        cursor = await self._conn.execute(
            """
            UPDATE payments
            SET status = ?, updated_at = ?
            WHERE task_id = ? AND intent_id = ? AND status != ?
            """,
            (
                status.value,
                updated_at.isoformat(),
                task_id,
                intent_id,
                PaymentStatus.SUCCEEDED.value,
            ),
        )
        return cursor.rowcount == 1

    @staticmethod
    def _row_to_payment(row: aiosqlite.Row) -> Payment:
        """将数据库行转换为 Payment 模型"""
        return Payment(
            task_id=row[0],
            intent_id=row[1],
            client_secret=row[2],
            amount=Decimal(row[3]),
            tip=Decimal(row[4]),
            total=Decimal(row[5]),
            currency=row[6],
            status=row[7],
            created_at=datetime.fromisoformat(row[8]),
            updated_at=datetime.fromisoformat(row[9]),
        )
