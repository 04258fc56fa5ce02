"""出价与接受 API 测试"""

from httpx import AsyncClient


class TestSubmitBid:
    async def test_resubmission_overwrites(self, client: AsyncClient, posted_task, as_user):
        task_id = posted_task["task_id"]
        helper = as_user("helper-1", "helper")
        first = await client.put(f"/api/tasks/{task_id}/bids", json={"rate": "30"}, headers=helper)
        second = await client.put(f"/api/tasks/{task_id}/bids", json={"rate": "27.5"}, headers=helper)
        assert first.status_code == 200
        assert second.status_code == 200

        resp = await client.get(f"/api/tasks/{task_id}/bids", headers=as_user("req-1"))
        bids = resp.json()["bids"]
        assert len(bids) == 1
        assert bids[0]["rate"] == "27.5"
        assert bids[0]["created_at"] == first.json()["created_at"]

    async def test_helper_without_profile(self, client: AsyncClient, posted_task, as_user):
        resp = await client.put(
            f"/api/tasks/{posted_task['task_id']}/bids",
            json={"rate": "30"},
            headers=as_user("helper-ghost", "helper"),
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "PROFILE_NOT_FOUND"

        bids = await client.get(f"/api/tasks/{posted_task['task_id']}/bids", headers=as_user("req-1"))
        assert bids.json()["bids"] == []

    async def test_user_profile_claiming_helper_role(
        self, client: AsyncClient, posted_task, signup, as_user
    ):
        await signup("req-2")
        resp = await client.put(
            f"/api/tasks/{posted_task['task_id']}/bids",
            json={"rate": "30"},
            headers=as_user("req-2", "helper"),
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "PERMISSION_DENIED"

    async def test_requires_tools(self, client: AsyncClient, signup, as_user):
        await signup("req-1")
        await signup("helper-1", role="helper")
        task = (
            await client.post(
                "/api/tasks",
                json={"description": "Tile bathroom", "proposed_rate": "50", "requires_tools": True},
                headers=as_user("req-1"),
            )
        ).json()

        resp = await client.put(
            f"/api/tasks/{task['task_id']}/bids",
            json={"rate": "55", "helper_has_tools": False},
            headers=as_user("helper-1", "helper"),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "BID_NOT_ALLOWED"

    async def test_invalid_rate(self, client: AsyncClient, posted_task, as_user):
        resp = await client.put(
            f"/api/tasks/{posted_task['task_id']}/bids",
            json={"rate": "-3"},
            headers=as_user("helper-1", "helper"),
        )
        assert resp.status_code == 422

    async def test_requester_cannot_bid(self, client: AsyncClient, posted_task, as_user):
        resp = await client.put(
            f"/api/tasks/{posted_task['task_id']}/bids",
            json={"rate": "30"},
            headers=as_user("req-1"),
        )
        assert resp.status_code == 403

    async def test_bid_on_missing_task(self, client: AsyncClient, as_user):
        resp = await client.put(
            "/api/tasks/01HZZZZZZZZZZZZZZZZZZZZZZZ/bids",
            json={"rate": "30"},
            headers=as_user("helper-1", "helper"),
        )
        assert resp.status_code == 404

    async def test_only_owner_lists_bids(self, client: AsyncClient, posted_task, signup, as_user):
        await signup("req-2")
        resp = await client.get(
            f"/api/tasks/{posted_task['task_id']}/bids",
            headers=as_user("req-2"),
        )
        assert resp.status_code == 403


class TestAcceptBid:
    async def test_accept_confirms_task(self, client: AsyncClient, posted_task, as_user):
        task_id = posted_task["task_id"]
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
        body = resp.json()
        assert body["status"] == "confirmed"
        assert body["helper_id"] == "helper-1"
        assert body["accepted_rate"] == "30"

    async def test_second_accept_rejected(self, client: AsyncClient, posted_task, as_user):
        task_id = posted_task["task_id"]
        for helper in ("helper-1", "helper-2"):
            await client.put(
                f"/api/tasks/{task_id}/bids",
                json={"rate": "30"},
                headers=as_user(helper, "helper"),
            )
        await client.post(f"/api/tasks/{task_id}/bids/helper-1/accept", headers=as_user("req-1"))

        resp = await client.post(
            f"/api/tasks/{task_id}/bids/helper-2/accept",
            headers=as_user("req-1"),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_TRANSITION"

        task = (await client.get(f"/api/tasks/{task_id}", headers=as_user("req-1"))).json()
        assert task["task"]["helper_id"] == "helper-1"

    async def test_bid_after_accept_rejected(self, client: AsyncClient, posted_task, as_user):
        task_id = posted_task["task_id"]
        await client.put(
            f"/api/tasks/{task_id}/bids",
            json={"rate": "30"},
            headers=as_user("helper-1", "helper"),
        )
        await client.post(f"/api/tasks/{task_id}/bids/helper-1/accept", headers=as_user("req-1"))

        resp = await client.put(
            f"/api/tasks/{task_id}/bids",
            json={"rate": "20"},
            headers=as_user("helper-2", "helper"),
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "BID_NOT_ALLOWED"

    async def test_accept_without_bid(self, client: AsyncClient, posted_task, as_user):
        resp = await client.post(
            f"/api/tasks/{posted_task['task_id']}/bids/helper-1/accept",
            headers=as_user("req-1"),
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "INVALID_INPUT"

    async def test_other_requester_cannot_accept(
        self, client: AsyncClient, posted_task, signup, as_user
    ):
        task_id = posted_task["task_id"]
        await signup("req-2")
        await client.put(
            f"/api/tasks/{task_id}/bids",
            json={"rate": "30"},
            headers=as_user("helper-1", "helper"),
        )
        resp = await client.post(
            f"/api/tasks/{task_id}/bids/helper-1/accept",
            headers=as_user("req-2"),
        )
        assert resp.status_code == 403
