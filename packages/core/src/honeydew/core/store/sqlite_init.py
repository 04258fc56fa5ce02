"""SQLite 数据库初始化

PRAGMA 配置 + 表 DDL + 索引创建。
使用 aiosqlite 异步操作。金额以 TEXT 保存 Decimal 字符串，时间以 ISO 8601 TEXT 保存。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id                 TEXT PRIMARY KEY,
    created_at              TEXT NOT NULL,
    updated_at              TEXT NOT NULL,
    requester_id            TEXT NOT NULL,
    description             TEXT NOT NULL DEFAULT '',
    zip                     TEXT NOT NULL DEFAULT '',
    proposed_rate           TEXT NOT NULL,
    status                  TEXT NOT NULL DEFAULT 'pending',
    helper_id               TEXT,
    accepted_rate           TEXT,
    requires_tools          INTEGER NOT NULL DEFAULT 0,
    photo_reference         TEXT,
    address                 TEXT NOT NULL DEFAULT '',
    start_time              TEXT,
    end_time                TEXT,
    total_duration_seconds  INTEGER,
    final_amount            TEXT
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status_zip ON tasks(status, zip);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_helper_id ON tasks(helper_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_requester_id ON tasks(requester_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# bids 表 DDL：(task_id, helper_id) 唯一，供 upsert 使用
_BIDS_DDL = """
CREATE TABLE IF NOT EXISTS bids (
    task_id          TEXT NOT NULL,
    helper_id        TEXT NOT NULL,
    rate             TEXT NOT NULL,
    helper_has_tools INTEGER NOT NULL DEFAULT 1,
    created_at       TEXT NOT NULL,
    updated_at       TEXT NOT NULL,

    PRIMARY KEY (task_id, helper_id),
    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

# reviews 表 DDL：每个任务至多一条评价
_REVIEWS_DDL = """
CREATE TABLE IF NOT EXISTS reviews (
    review_id    TEXT PRIMARY KEY,
    task_id      TEXT NOT NULL,
    helper_id    TEXT NOT NULL,
    reviewer_id  TEXT NOT NULL,
    rating       INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
    text         TEXT NOT NULL DEFAULT '',
    created_at   TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_REVIEWS_INDEXES = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_reviews_task_id ON reviews(task_id);",
    "CREATE INDEX IF NOT EXISTS idx_reviews_helper_id ON reviews(helper_id);",
]

# profiles 表 DDL
_PROFILES_DDL = """
CREATE TABLE IF NOT EXISTS profiles (
    user_id            TEXT PRIMARY KEY,
    created_at         TEXT NOT NULL,
    full_name          TEXT NOT NULL DEFAULT '',
    role               TEXT NOT NULL DEFAULT 'user',
    zip                TEXT NOT NULL DEFAULT '',
    address            TEXT NOT NULL DEFAULT '',
    bio                TEXT NOT NULL DEFAULT '',
    profile_image_url  TEXT,
    average_rating     TEXT,
    rating_count       INTEGER NOT NULL DEFAULT 0
);
"""

# payments 表 DDL：每个任务至多一条支付记录
_PAYMENTS_DDL = """
CREATE TABLE IF NOT EXISTS payments (
    task_id        TEXT PRIMARY KEY,
    intent_id      TEXT NOT NULL,
    client_secret  TEXT NOT NULL,
    amount         TEXT NOT NULL,
    tip            TEXT NOT NULL DEFAULT '0.00',
    total          TEXT NOT NULL,
    currency       TEXT NOT NULL DEFAULT 'usd',
    status         TEXT NOT NULL DEFAULT 'requires_confirmation',
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

# events 表 DDL（append-only 审计日志）
_EVENTS_DDL = """
CREATE TABLE IF NOT EXISTS events (
    event_id  TEXT PRIMARY KEY,
    task_id   TEXT NOT NULL,
    ts        TEXT NOT NULL,
    type      TEXT NOT NULL,
    actor_id  TEXT NOT NULL,
    payload   TEXT NOT NULL DEFAULT '{}',
    trace_id  TEXT NOT NULL DEFAULT '',

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_EVENTS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_events_task_ts ON events(task_id, ts);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    for ddl in (_TASKS_DDL, _BIDS_DDL, _REVIEWS_DDL, _PROFILES_DDL, _PAYMENTS_DDL, _EVENTS_DDL):
        await conn.execute(ddl)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _REVIEWS_INDEXES + _EVENTS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
