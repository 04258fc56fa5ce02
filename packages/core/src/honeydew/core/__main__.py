"""CLI 入口 -- python -m honeydew.core <command>

  rebuild-ratings            从 reviews 表重建所有 helper 的评分
  rebuild-ratings --dry-run  只列出评分与 reviews 不一致的 helper，不写入
"""

import asyncio
import sys

from .config import get_db_path, get_media_dir

USAGE = """用法: python -m honeydew.core <command> [--dry-run]
命令:
  rebuild-ratings  从 reviews 表重建所有 helper 的评分（--dry-run 仅检查）"""


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args or args[0] != "rebuild-ratings":
        if args:
            print(f"未知命令: {args[0]}")
        print(USAGE)
        return 1

    unknown = [a for a in args[1:] if a != "--dry-run"]
    if unknown:
        print(f"未知参数: {' '.join(unknown)}")
        print(USAGE)
        return 1

    return asyncio.run(rebuild_ratings(dry_run="--dry-run" in args[1:]))


async def rebuild_ratings(dry_run: bool = False) -> int:
    """重建（或检查）评分，dry_run 且存在漂移时返回 2"""
    from .projection import find_rating_drift, rebuild_all_ratings
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    store_group = await create_store_group(db_path, get_media_dir())
    try:
        if dry_run:
            drifted = await find_rating_drift(store_group.review_store, store_group.profile_store)
            for helper_id in drifted:
                print(f"评分漂移: {helper_id}")
            print(f"检查完成，{len(drifted)} 个 helper 需要重建")
            return 2 if drifted else 0

        updated = await rebuild_all_ratings(
            store_group.conn,
            store_group.review_store,
            store_group.profile_store,
        )
        print(f"重建完成，更新 {updated} 个 helper")
        return 0
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    sys.exit(main())
