"""
测试公共夹具：内存SQLite数据库 + ASGI测试客户端
"""
import os

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MAIL_ENABLED", "false")

from typing import Dict

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import machus.models  # noqa: F401  注册所有模型
from machus.db.database import Base, get_db
from machus.models import User
from machus.utils.auth import create_access_token, hash_password
from main import app

TEST_PASSWORD = "secret123"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite 默认不启用外键，级联删除依赖它
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def create_user(
    session_factory,
    email: str,
    real_name: str = None,
    nickname: str = None,
    is_admin: bool = False,
    profile_completed: bool = True,
    email_verified: bool = True,
) -> User:
    """直接写库创建用户，跳过注册流程"""
    async with session_factory() as session:
        user = User(
            email=email,
            password_hash=hash_password(TEST_PASSWORD),
            email_verified=email_verified,
            real_name=real_name,
            nickname=nickname,
            grade="大二" if profile_completed else None,
            gender="未知" if profile_completed else None,
            bio=f"{nickname} 的简介" if profile_completed else None,
            tags=["羽毛球"] if profile_completed else [],
            avatar_url=None,
            is_admin=is_admin,
            profile_completed=profile_completed,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def alice(session_factory):
    """帖子作者"""
    return await create_user(session_factory, "alice@shanghaitech.edu.cn", "张爱丽", "Alice")


@pytest_asyncio.fixture
async def bob(session_factory):
    return await create_user(session_factory, "bob@shanghaitech.edu.cn", "李博", "Bob")


@pytest_asyncio.fixture
async def carol(session_factory):
    return await create_user(session_factory, "carol@shanghaitech.edu.cn", "王卡萝", "Carol")


@pytest_asyncio.fixture
async def admin(session_factory):
    return await create_user(session_factory, "admin@shanghaitech.edu.cn", "赵管理", "Admin", is_admin=True)
