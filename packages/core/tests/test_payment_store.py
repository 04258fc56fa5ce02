"""PaymentStore 测试 -- 每个任务至多一条有效支付记录"""

from datetime import UTC, datetime
from decimal import Decimal

from honeydew.core.models import Payment, PaymentStatus, TaskStatus

T1 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _payment(task_id: str, intent_id: str, status=PaymentStatus.REQUIRES_CONFIRMATION) -> Payment:
    return Payment(
        task_id=task_id,
        intent_id=intent_id,
        client_secret=f"{intent_id}_secret",
        amount=Decimal("62.50"),
        tip=Decimal("5.00"),
        total=Decimal("67.50"),
        status=status,
        created_at=T1,
        updated_at=T1,
    )


async def _seed(stores, confirmed_task):
    await stores.task_store.create_task(
        confirmed_task(task_id="T1", status=TaskStatus.COMPLETED, final_amount=Decimal("62.50"))
    )
    await stores.conn.commit()


class TestPaymentStore:
    async def test_save_and_get(self, core_store_group, confirmed_task):
        stores = core_store_group
        await _seed(stores, confirmed_task)

        assert await stores.payment_store.save_payment(_payment("T1", "pi_1"))
        await stores.conn.commit()

        loaded = await stores.payment_store.get_payment("T1")
        assert loaded.intent_id == "pi_1"
        assert loaded.total == Decimal("67.50")
        assert loaded.status == PaymentStatus.REQUIRES_CONFIRMATION

    async def test_active_payment_not_replaced(self, core_store_group, confirmed_task):
        stores = core_store_group
        await _seed(stores, confirmed_task)
        await stores.payment_store.save_payment(_payment("T1", "pi_1"))
        await stores.conn.commit()

        assert not await stores.payment_store.save_payment(_payment("T1", "pi_2"))
        assert (await stores.payment_store.get_payment("T1")).intent_id == "pi_1"

    async def test_failed_payment_replaced(self, core_store_group, confirmed_task):
        stores = core_store_group
        await _seed(stores, confirmed_task)
        await stores.payment_store.save_payment(_payment("T1", "pi_1"))
        await stores.payment_store.update_status("T1", "pi_1", PaymentStatus.FAILED, T1)
        await stores.conn.commit()

        assert await stores.payment_store.save_payment(_payment("T1", "pi_2"))
        assert (await stores.payment_store.get_payment("T1")).intent_id == "pi_2"

    async def test_succeeded_is_final(self, core_store_group, confirmed_task):
        stores = core_store_group
        await _seed(stores, confirmed_task)
        await stores.payment_store.save_payment(_payment("T1", "pi_1"))
        assert await stores.payment_store.update_status(
            "T1", "pi_1", PaymentStatus.SUCCEEDED, T1
        )
        await stores.conn.commit()

        assert not await stores.payment_store.update_status(
            "T1", "pi_1", PaymentStatus.FAILED, T1
        )
        assert not await stores.payment_store.save_payment(_payment("T1", "pi_2"))
        assert (await stores.payment_store.get_payment("T1")).status == PaymentStatus.SUCCEEDED
