"""
数据库连接和会话管理
"""
from sqlalchemy import BigInteger, Integer, JSON, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from machus.core.config import settings

# 主键类型：PostgreSQL 用 BIGINT，SQLite 只有 INTEGER 主键才会自增
IdType = BigInteger().with_variant(Integer(), "sqlite")

# 字符串数组：PostgreSQL 用 TEXT[]，SQLite 退化为 JSON
TagArray = ARRAY(Text).with_variant(JSON(), "sqlite")


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


# 创建异步引擎
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

# 创建会话工厂
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# 创建Base类
Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    获取数据库会话依赖
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models():
    """按模型定义建表（已存在的表不会改动）"""
    import machus.models  # noqa: F401  注册所有模型

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """关闭连接池"""
    await engine.dispose()
