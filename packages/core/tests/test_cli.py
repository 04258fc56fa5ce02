"""python -m honeydew.core CLI 测试"""

from datetime import UTC, datetime
from decimal import Decimal

from honeydew.core import __main__ as cli
from honeydew.core.models import Review, Role, TaskStatus
from honeydew.core.store import create_store_group

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


async def _seed(db_path, media_dir, make_profile, confirmed_task, make_payment):
    stores = await create_store_group(str(db_path), media_dir)
    try:
        await stores.profile_store.create_profile(make_profile("helper-1", role=Role.HELPER))
        for task_id, rating in (("T1", 4), ("T2", 5)):
            await stores.task_store.create_task(
                confirmed_task(
                    task_id=task_id,
                    status=TaskStatus.COMPLETED,
                    final_amount=Decimal("30.00"),
                )
            )
            await stores.payment_store.save_payment(make_payment(task_id))
            await stores.review_store.insert_review(
                Review(
                    review_id=f"R-{task_id}",
                    task_id=task_id,
                    helper_id="helper-1",
                    reviewer_id="req-1",
                    rating=rating,
                    created_at=T0,
                )
            )
        await stores.conn.commit()
    finally:
        await stores.conn.close()


async def _read_profile(db_path, media_dir):
    stores = await create_store_group(str(db_path), media_dir)
    try:
        return await stores.profile_store.get_profile("helper-1")
    finally:
        await stores.conn.close()


class TestCli:
    def test_no_command(self, capsys):
        assert cli.main([]) == 1
        assert "rebuild-ratings" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        assert cli.main(["compact"]) == 1
        assert "未知命令: compact" in capsys.readouterr().out

    def test_unknown_flag(self, capsys):
        assert cli.main(["rebuild-ratings", "--force"]) == 1
        assert "--force" in capsys.readouterr().out

    async def test_rebuild_ratings(
        self, tmp_path, monkeypatch, make_profile, confirmed_task, make_payment, capsys
    ):
        db_path = tmp_path / "sqlite" / "cli.db"
        media_dir = tmp_path / "media"
        monkeypatch.setenv("HONEYDEW_DB_PATH", str(db_path))
        monkeypatch.setenv("HONEYDEW_MEDIA_DIR", str(media_dir))
        await _seed(db_path, media_dir, make_profile, confirmed_task, make_payment)

        assert await cli.rebuild_ratings() == 0

        assert "更新 1 个 helper" in capsys.readouterr().out
        profile = await _read_profile(db_path, media_dir)
        assert profile.average_rating == Decimal("4.50")
        assert profile.rating_count == 2

    async def test_dry_run_reports_drift_without_writing(
        self, tmp_path, monkeypatch, make_profile, confirmed_task, make_payment, capsys
    ):
        db_path = tmp_path / "sqlite" / "cli.db"
        media_dir = tmp_path / "media"
        monkeypatch.setenv("HONEYDEW_DB_PATH", str(db_path))
        monkeypatch.setenv("HONEYDEW_MEDIA_DIR", str(media_dir))
        await _seed(db_path, media_dir, make_profile, confirmed_task, make_payment)

        assert await cli.rebuild_ratings(dry_run=True) == 2

        out = capsys.readouterr().out
        assert "评分漂移: helper-1" in out
        profile = await _read_profile(db_path, media_dir)
        assert profile.rating_count == 0

        await cli.rebuild_ratings()
        assert await cli.rebuild_ratings(dry_run=True) == 0
