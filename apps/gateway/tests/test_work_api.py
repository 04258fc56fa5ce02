"""计时 API 测试"""

from httpx import AsyncClient


async def _accept(client: AsyncClient, task_id: str, as_user) -> None:
    await client.put(
        f"/api/tasks/{task_id}/bids",
        json={"rate": "30"},
        headers=as_user("helper-1", "helper"),
    )
    resp = await client.post(
        f"/api/tasks/{task_id}/bids/helper-1/accept",
        headers=as_user("req-1"),
    )
    assert resp.status_code == 200


class TestWorkTimer:
    async def test_start_and_finish(self, client: AsyncClient, posted_task, as_user):
        task_id = posted_task["task_id"]
        await _accept(client, task_id, as_user)
        helper = as_user("helper-1", "helper")

        started = await client.post(f"/api/tasks/{task_id}/start", headers=helper)
        assert started.status_code == 200
        assert started.json()["status"] == "confirmed"
        assert started.json()["start_time"] is not None

        finished = await client.post(f"/api/tasks/{task_id}/finish", headers=helper)
        assert finished.status_code == 200
        body = finished.json()
        assert body["status"] == "completed"
        # 不足 1 小时按 1 小时计
        assert body["final_amount"] == "30.00"
        assert body["total_duration_seconds"] >= 0

        detail = (await client.get(f"/api/tasks/{task_id}", headers=as_user("req-1"))).json()
        assert [e["type"] for e in detail["events"]] == [
            "TASK_CREATED",
            "BID_SUBMITTED",
            "BID_ACCEPTED",
            "WORK_STARTED",
            "WORK_COMPLETED",
        ]
        completed_event = detail["events"][-1]
        assert completed_event["payload"]["billed_minutes"] == 60
        assert completed_event["payload"]["from_status"] == "confirmed"
        assert completed_event["payload"]["to_status"] == "completed"

    async def test_start_on_pending_task(self, client: AsyncClient, posted_task, as_user):
        resp = await client.post(
            f"/api/tasks/{posted_task['task_id']}/start",
            headers=as_user("helper-1", "helper"),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_TRANSITION"

    async def test_other_helper_cannot_start(self, client: AsyncClient, posted_task, as_user):
        task_id = posted_task["task_id"]
        await _accept(client, task_id, as_user)
        resp = await client.post(
            f"/api/tasks/{task_id}/start",
            headers=as_user("helper-2", "helper"),
        )
        assert resp.status_code == 403

    async def test_start_twice(self, client: AsyncClient, posted_task, as_user):
        task_id = posted_task["task_id"]
        await _accept(client, task_id, as_user)
        helper = as_user("helper-1", "helper")
        await client.post(f"/api/tasks/{task_id}/start", headers=helper)
        resp = await client.post(f"/api/tasks/{task_id}/start", headers=helper)
        assert resp.status_code == 409

    async def test_finish_before_start(self, client: AsyncClient, posted_task, as_user):
        task_id = posted_task["task_id"]
        await _accept(client, task_id, as_user)
        resp = await client.post(
            f"/api/tasks/{task_id}/finish",
            headers=as_user("helper-1", "helper"),
        )
        assert resp.status_code == 409

    async def test_finish_twice(self, client: AsyncClient, completed_task, as_user):
        resp = await client.post(
            f"/api/tasks/{completed_task['task_id']}/finish",
            headers=as_user("helper-1", "helper"),
        )
        assert resp.status_code == 409
