"""EventStore SQLite 实现 -- 任务审计事件

只追加不修改。同一任务内的顺序以 rowid 为准：event_id 虽是 ULID，
同一毫秒内生成的两个 id 不保证单调。
"""

import json
from datetime import datetime
from typing import Any

import aiosqlite

from ..models.enums import EventType
from ..models.event import Event

_COLUMNS = ("event_id", "task_id", "ts", "type", "actor_id", "payload", "trace_id")
_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM events"


def _encode_payload(payload: dict[str, Any]) -> str:
    # Decimal / datetime 兜底为字符串
    return json.dumps(payload, ensure_ascii=False, default=str)


class SqliteEventStore:
    """EventStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_event(self, event: Event) -> None:
        """追加一条事件，事务由调用方提交"""
        await self._conn.execute(
            f"INSERT INTO events ({', '.join(_COLUMNS)}) VALUES ({', '.join('?' * len(_COLUMNS))})",
            (
                event.event_id,
                event.task_id,
                event.ts.isoformat(),
                event.type.value,
                event.actor_id,
                _encode_payload(event.payload),
                event.trace_id,
            ),
        )

    async def get_events_for_task(self, task_id: str) -> list[Event]:
        """任务的完整审计记录"""
        return await self._query("WHERE task_id = ? ORDER BY rowid", (task_id,))

    async def get_events_after(self, task_id: str, after_event_id: str) -> list[Event]:
        """SSE 断线重连：返回 after_event_id 之后的事件

        after_event_id 不属于该任务时视为从头重放。
        """
        return await self._query(
            """
            WHERE task_id = ?
              AND rowid > COALESCE(
                  (SELECT rowid FROM events WHERE event_id = ? AND task_id = ?), 0
              )
            ORDER BY rowid
            """,
            (task_id, after_event_id, task_id),
        )

    async def _query(self, clause: str, params: tuple) -> list[Event]:
        cursor = await self._conn.execute(f"{_SELECT} {clause}", params)
        return [self._row_to_event(row) for row in await cursor.fetchall()]

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> Event:
        event_id, task_id, ts, event_type, actor_id, payload, trace_id = row
        return Event(
            event_id=event_id,
            task_id=task_id,
            ts=datetime.fromisoformat(ts),
            type=EventType(event_type),
            actor_id=actor_id,
            payload=json.loads(payload) if payload else {},
            trace_id=trace_id,
        )
