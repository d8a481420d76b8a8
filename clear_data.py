"""
清空帖子与参与记录（保留用户表）
"""
import asyncio
import traceback
from sqlalchemy import select, delete, func
from machus.db.database import AsyncSessionLocal, close_db
from machus.models import Participation, Post, User


async def clear_all_data():
    """按依赖顺序清空参与记录和帖子"""
    try:
        async with AsyncSessionLocal() as session:
            print("开始清空数据...")

            # 先删除依赖表，后删除被依赖表
            tables = [
                (Participation, '参与记录'),
                (Post, '帖子'),
            ]

            total_deleted = 0

            for model, table_desc in tables:
                count = (await session.execute(select(func.count()).select_from(model))).scalar()

                if count > 0:
                    await session.execute(delete(model))
                    await session.commit()
                    print(f"✅ 清空 {table_desc} 表: 删除了 {count} 条记录")
                    total_deleted += count
                else:
                    print(f"⚪ {table_desc} 表: 已经是空的")

            print(f"\n总计删除了 {total_deleted} 条记录")

            user_count = (await session.execute(select(func.count()).select_from(User))).scalar()
            print(f"\n✅ 用户表保留: {user_count} 个用户")
            print("\n🎉 数据清空完成！")

    except Exception as e:
        print(f"❌ 错误: {str(e)}")
        traceback.print_exc()
    finally:
        await close_db()


if __name__ == "__main__":
    print("=" * 60)
    print("清空数据库（保留用户表）")
    print("=" * 60)

    print("\n⚠️  警告: 此操作将删除以下表的所有数据:")
    print("  - participations (参与记录)")
    print("  - posts (帖子)")
    print("\n✅ 用户表 (users) 的数据将被保留\n")

    confirm = input("确认执行此操作? (输入 'yes' 确认): ")

    if confirm.lower() == 'yes':
        asyncio.run(clear_all_data())
    else:
        print("\n❌ 操作已取消")
