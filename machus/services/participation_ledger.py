"""
参与记录账本

(post_id, user_id) 至多一条记录，由数据库唯一约束保证。
参与状态（是否参与、参与人数、参与者名单）只从这里查询，
真实姓名的可见性判断因此只有一个数据来源。
"""
import logging
from enum import Enum
from typing import Dict, Iterable, List, Set, Tuple

from sqlalchemy import select, delete, func, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from machus.models.participation import Participation
from machus.models.user import User

logger = logging.getLogger(__name__)


class JoinOutcome(str, Enum):
    JOINED = "joined"
    ALREADY_JOINED = "already_joined"


class ParticipationLedger:
    """参与记录的读写入口"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists_for(self, post_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            select(Participation.id).where(
                and_(
                    Participation.post_id == post_id,
                    Participation.user_id == user_id
                )
            )
        )
        return result.first() is not None

    async def count_for(self, post_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Participation.id)).where(Participation.post_id == post_id)
        )
        return result.scalar_one()

    async def counts_for(self, post_ids: Iterable[int]) -> Dict[int, int]:
        """批量统计参与人数，没有参与者的帖子不出现在结果里"""
        post_ids = list(post_ids)
        if not post_ids:
            return {}
        result = await self.db.execute(
            select(Participation.post_id, func.count(Participation.id))
            .where(Participation.post_id.in_(post_ids))
            .group_by(Participation.post_id)
        )
        return {post_id: count for post_id, count in result.all()}

    async def joined_post_ids(self, user_id: int, post_ids: Iterable[int]) -> Set[int]:
        """给定帖子中用户已参与的那些"""
        post_ids = list(post_ids)
        if not post_ids:
            return set()
        result = await self.db.execute(
            select(Participation.post_id).where(
                and_(
                    Participation.user_id == user_id,
                    Participation.post_id.in_(post_ids)
                )
            )
        )
        return set(result.scalars().all())

    async def list_for(self, post_id: int) -> List[Tuple[User, Participation]]:
        """按参与先后排序，参与时间相同时按插入顺序"""
        result = await self.db.execute(
            select(User, Participation)
            .join(Participation, Participation.user_id == User.id)
            .where(Participation.post_id == post_id)
            .order_by(Participation.participated_at.asc(), Participation.id.asc())
        )
        return [(user, participation) for user, participation in result.all()]

    async def add(self, post_id: int, user_id: int) -> JoinOutcome:
        """
        记录一次参与

        先查重；并发请求同时通过查重时，由唯一约束拦下后到者，
        返回 ALREADY_JOINED 而不是抛出数据库异常。
        """
        if await self.exists_for(post_id, user_id):
            return JoinOutcome.ALREADY_JOINED

        self.db.add(Participation(post_id=post_id, user_id=user_id))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            # 外键失败（帖子刚被删除）等情况不能当作重复参与
            if await self.exists_for(post_id, user_id):
                logger.warning(f"并发重复参与被唯一约束拦截: post={post_id}, user={user_id}")
                return JoinOutcome.ALREADY_JOINED
            raise
        return JoinOutcome.JOINED

    async def remove(self, post_id: int, user_id: int) -> bool:
        """删除参与记录，返回是否真的删除了一条"""
        result = await self.db.execute(
            delete(Participation).where(
                and_(
                    Participation.post_id == post_id,
                    Participation.user_id == user_id
                )
            )
        )
        removed = result.rowcount
        await self.db.commit()
        return removed > 0
