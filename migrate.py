"""
创建数据表并配置管理员
"""
import asyncio
from sqlalchemy import update
from machus.core.config import settings
from machus.db.database import AsyncSessionLocal, init_models, close_db
from machus.models import User


async def migrate():
    """建表（已存在的表保持不变），再把 ADMIN_EMAILS 中的账号设为管理员"""
    try:
        print("开始建表...")
        await init_models()
        print("✅ 数据表已就绪: users, posts, participations, email_verification_tokens, password_reset_tokens")

        if settings.ADMIN_EMAILS:
            async with AsyncSessionLocal() as session:
                result = await session.execute(
                    update(User)
                    .where(User.email.in_(settings.ADMIN_EMAILS))
                    .values(is_admin=True)
                )
                await session.commit()
                print(f"✅ 管理员已配置: {result.rowcount} 个账号")
        else:
            print("⚪ 未配置 ADMIN_EMAILS，跳过管理员设置")

        print("\n迁移完成！")
    except Exception as e:
        print(f"❌ 迁移失败: {str(e)}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(migrate())
