"""Honeydew Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .bid_store import SqliteBidStore
from .event_store import SqliteEventStore
from .media_store import FileMediaStore
from .payment_store import SqlitePaymentStore
from .profile_store import SqliteProfileStore
from .review_store import SqliteReviewStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import (
    create_task_with_initial_event,
    guarded_write_with_event,
    record_review_and_refresh_rating,
    unit_of_work,
)


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接

    写操作必须包在 unit_of_work(conn) 里，见 transaction 模块。
    """

    def __init__(
        self,
        conn: aiosqlite.Connection,
        media_dir: Path,
        media_base_url: str = "/media",
    ) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.bid_store = SqliteBidStore(conn)
        self.review_store = SqliteReviewStore(conn)
        self.profile_store = SqliteProfileStore(conn)
        self.payment_store = SqlitePaymentStore(conn)
        self.event_store = SqliteEventStore(conn)
        self.media_store = FileMediaStore(media_dir, media_base_url)


async def create_store_group(
    db_path: str,
    media_dir: str | Path,
    media_base_url: str = "/media",
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径
        media_dir: 媒体文件存储目录
        media_base_url: 媒体文件公开 URL 前缀

    Returns:
        StoreGroup 实例
    """
    media_path = Path(media_dir)
    media_path.mkdir(parents=True, exist_ok=True)

    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    await init_db(conn)

    return StoreGroup(conn=conn, media_dir=media_path, media_base_url=media_base_url)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteBidStore",
    "SqliteReviewStore",
    "SqliteProfileStore",
    "SqlitePaymentStore",
    "SqliteEventStore",
    "FileMediaStore",
    "init_db",
    "create_task_with_initial_event",
    "guarded_write_with_event",
    "record_review_and_refresh_rating",
    "unit_of_work",
]
