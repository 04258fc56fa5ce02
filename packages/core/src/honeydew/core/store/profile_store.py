"""ProfileStore SQLite 实现

average_rating / rating_count 只通过 set_rating_summary() 写入，
其值总是由评分聚合器对完整评价集合重新计算得到。
"""

from datetime import datetime
from decimal import Decimal

import aiosqlite

from ..models.profile import Profile

_PROFILE_COLUMNS = (
    "user_id, created_at, full_name, role, zip, address, bio, "
    "profile_image_url, average_rating, rating_count"
)


def is_duplicate_profile_error(error: Exception) -> bool:
    """判断 IntegrityError 是否由 profiles 主键冲突触发"""
    if not isinstance(error, aiosqlite.IntegrityError):
        return False
    return "profiles.user_id" in str(error)


class SqliteProfileStore:
    """ProfileStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_profile(self, profile: Profile) -> None:
        """创建用户资料"""
        await self._conn.execute(
            f"""
            INSERT INTO profiles ({_PROFILE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                profile.user_id,
                profile.created_at.isoformat(),
                profile.full_name,
                profile.role.value,
                profile.zip,
                profile.address,
                profile.bio,
                profile.profile_image_url,
                str(profile.average_rating) if profile.average_rating is not None else None,
                profile.rating_count,
            ),
        )

    async def get_profile(self, user_id: str) -> Profile | None:
        """根据 user_id 查询资料"""
        cursor = await self._conn.execute(
            f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_profile(row)

    async def update_details(
        self,
        user_id: str,
        bio: str | None = None,
        address: str | None = None,
        full_name: str | None = None,
    ) -> bool:
        """更新可编辑字段，None 表示不修改"""
        cursor = await self._conn.execute(
            """
            UPDATE profiles
            SET bio = COALESCE(?, bio),
                address = COALESCE(?, address),
                full_name = COALESCE(?, full_name)
            WHERE user_id = ?
            """,
            (bio, address, full_name, user_id),
        )
        return cursor.rowcount == 1

    async def set_profile_image(self, user_id: str, url: str) -> bool:
        """更新头像 URL"""
        cursor = await self._conn.execute(
            "UPDATE profiles SET profile_image_url = ? WHERE user_id = ?",
            (url, user_id),
        )
        return cursor.rowcount == 1

    async def set_rating_summary(
        self,
        user_id: str,
        average_rating: Decimal | None,
        rating_count: int,
    ) -> bool:
        """写入聚合后的评分"""
        cursor = await self._conn.execute(
            "UPDATE profiles SET average_rating = ?, rating_count = ? WHERE user_id = ?",
            (
                str(average_rating) if average_rating is not None else None,
                rating_count,
                user_id,
            ),
        )
        return cursor.rowcount == 1

    @staticmethod
    def _row_to_profile(row: aiosqlite.Row) -> Profile:
        """将数据库行转换为 Profile 模型"""
        return Profile(
            user_id=row[0],
            created_at=datetime.fromisoformat(row[1]),
            full_name=row[2],
            role=row[3],
            zip=row[4],
            address=row[5],
            bio=row[6],
            profile_image_url=row[7],
            average_rating=Decimal(row[8]) if row[8] is not None else None,
            rating_count=row[9],
        )
