"""出价台账测试 -- 按 (task_id, helper_id) upsert，任务接受后拒绝新出价"""

from datetime import UTC, datetime
from decimal import Decimal

from honeydew.core.models import TaskStatus

T1 = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)


class TestBidLedger:
    async def test_resubmit_overwrites_rate(self, core_store_group, make_task, make_bid):
        stores = core_store_group
        task = make_task()
        await stores.task_store.create_task(task)

        assert await stores.bid_store.upsert_bid(make_bid(task.task_id, "helper-1", rate="30"))
        assert await stores.bid_store.upsert_bid(
            make_bid(task.task_id, "helper-1", rate="28", updated_at=T1)
        )
        await stores.conn.commit()

        bids = await stores.bid_store.list_bids_for_task(task.task_id)
        assert len(bids) == 1
        assert bids[0].rate == Decimal("28")
        assert bids[0].updated_at == T1

    async def test_multiple_helpers(self, core_store_group, make_task, make_bid):
        stores = core_store_group
        task = make_task()
        await stores.task_store.create_task(task)
        await stores.bid_store.upsert_bid(make_bid(task.task_id, "helper-1"))
        await stores.bid_store.upsert_bid(
            make_bid(task.task_id, "helper-2", rate="35", helper_has_tools=False)
        )
        await stores.conn.commit()

        bid = await stores.bid_store.get_bid(task.task_id, "helper-2")
        assert bid.rate == Decimal("35")
        assert bid.helper_has_tools is False
        assert len(await stores.bid_store.list_bids_for_task(task.task_id)) == 2

    async def test_bid_rejected_once_confirmed(self, core_store_group, make_task, make_bid):
        stores = core_store_group
        task = make_task()
        await stores.task_store.create_task(task)
        await stores.bid_store.upsert_bid(make_bid(task.task_id, "helper-1"))
        await stores.task_store.confirm_with_bid(task.task_id, "helper-1", T1)
        await stores.conn.commit()

        assert not await stores.bid_store.upsert_bid(make_bid(task.task_id, "helper-2"))
        # 已中标的出价也不能再修改
        assert not await stores.bid_store.upsert_bid(
            make_bid(task.task_id, "helper-1", rate="99")
        )
        assert (await stores.bid_store.get_bid(task.task_id, "helper-1")).rate == Decimal("30")
        assert await stores.bid_store.get_bid(task.task_id, "helper-2") is None
        loaded = await stores.task_store.get_task(task.task_id)
        assert loaded.status == TaskStatus.CONFIRMED
        assert loaded.accepted_rate == Decimal("30")

    async def test_bid_on_missing_task(self, core_store_group, make_bid):
        assert not await core_store_group.bid_store.upsert_bid(make_bid("missing", "helper-1"))
