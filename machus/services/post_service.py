"""
帖子生命周期服务

发布、查看、编辑、删除、参与、取消参与、踢人、查看参与者。
权限与脱敏统一交给 visibility 模块判断，参与状态统一从 ParticipationLedger 读取；
本服务只负责按顺序查询、抛出对应的业务异常并写库。
每一步写操作都是单条语句提交，不使用跨语句事务。
"""
import logging
from typing import Any, List, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from machus.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    NotParticipatingError,
    ValidationError,
)
from machus.models.post import Post
from machus.models.user import User
from machus.schemas.post import PostCreate, PostUpdate, PostView, ParticipantResponse
from machus.services.participation_ledger import JoinOutcome, ParticipationLedger
from machus.services.visibility import (
    Viewer,
    build_post_view,
    can_kick,
    can_manage,
    can_view_participants,
)

logger = logging.getLogger(__name__)


class PostService:
    """帖子服务类"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = ParticipationLedger(db)

    async def _get_post(self, post_id: int) -> Post:
        result = await self.db.execute(select(Post).where(Post.id == post_id))
        post = result.scalar_one_or_none()
        if not post:
            raise NotFoundError("帖子不存在", error_code="POST_NOT_FOUND")
        return post

    async def _get_post_with_author(self, post_id: int) -> Tuple[Post, User]:
        result = await self.db.execute(
            select(Post, User)
            .join(User, Post.author_id == User.id)
            .where(Post.id == post_id)
        )
        row = result.first()
        if not row:
            raise NotFoundError("帖子不存在", error_code="POST_NOT_FOUND")
        return row[0], row[1]

    async def _view(self, post: Post, author: User, viewer: Viewer) -> PostView:
        has_participated = await self.ledger.exists_for(post.id, viewer.id)
        participants_count = await self.ledger.count_for(post.id)
        return build_post_view(post, author, viewer, has_participated, participants_count)

    async def create_post(self, viewer: Viewer, data: PostCreate) -> PostView:
        """
        发布帖子

        Args:
            viewer: 当前用户（已完善资料）
            data: 已校验的帖子内容

        Returns:
            PostView: 新帖子，尚无人参与
        """
        post = Post(
            author_id=viewer.id,
            content=data.content,
            event_time=data.eventTime,
            duration_minutes=data.duration,
            location=data.location,
            target_people=data.targetPeople,
            tags=data.tags or [],
        )
        self.db.add(post)
        await self.db.commit()
        await self.db.refresh(post)
        logger.info(f"帖子已发布: post={post.id}, author={viewer.id}")

        post, author = await self._get_post_with_author(post.id)
        return build_post_view(post, author, viewer, False, 0)

    async def list_feed(self, viewer: Viewer) -> List[PostView]:
        """信息流：全部帖子按发布时间倒序，不分页"""
        result = await self.db.execute(
            select(Post, User)
            .join(User, Post.author_id == User.id)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        rows = result.all()
        post_ids = [post.id for post, _ in rows]

        joined = await self.ledger.joined_post_ids(viewer.id, post_ids)
        counts = await self.ledger.counts_for(post_ids)

        return [
            build_post_view(post, author, viewer, post.id in joined, counts.get(post.id, 0))
            for post, author in rows
        ]

    async def get_post(self, viewer: Viewer, post_id: int) -> PostView:
        post, author = await self._get_post_with_author(post_id)
        return await self._view(post, author, viewer)

    async def update_post(self, viewer: Viewer, post_id: int, payload: Any) -> Post:
        """
        部分更新帖子

        先判断帖子是否存在、是否有权限，再校验请求体，
        因此无权用户无论请求体是否合法（包括不是JSON对象或为空）都会得到403。
        """
        post = await self._get_post(post_id)
        if not can_manage(viewer, post):
            raise AuthorizationError("无权编辑此帖子")

        if not isinstance(payload, dict):
            raise ValidationError("请求体必须是JSON对象")

        try:
            changes = PostUpdate.model_validate(payload).to_changes()
        except PydanticValidationError as e:
            raise ValidationError(
                "请求参数不合法",
                details={"errors": e.errors(include_url=False, include_context=False)},
            )
        if not changes:
            raise ValidationError("没有需要更新的字段", error_code="NO_FIELDS_TO_UPDATE")

        result = await self.db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        updated = result.rowcount
        await self.db.commit()
        if updated == 0:
            raise NotFoundError("帖子不存在", error_code="POST_NOT_FOUND")

        await self.db.refresh(post)
        logger.info(f"帖子已更新: post={post_id}, by={viewer.id}, fields={sorted(changes)}")
        return post

    async def delete_post(self, viewer: Viewer, post_id: int) -> None:
        """删除帖子，参与记录由数据库外键级联删除"""
        post = await self._get_post(post_id)
        if not can_manage(viewer, post):
            raise AuthorizationError("无权删除此帖子")

        result = await self.db.execute(delete(Post).where(Post.id == post_id))
        deleted = result.rowcount
        await self.db.commit()
        if deleted == 0:
            raise NotFoundError("帖子不存在", error_code="POST_NOT_FOUND")
        logger.info(f"帖子已删除: post={post_id}, by={viewer.id}")

    async def participate(self, viewer: Viewer, post_id: int) -> PostView:
        """参与帖子，成功后作者真实姓名对当前用户可见"""
        post, author = await self._get_post_with_author(post_id)
        if post.author_id == viewer.id:
            raise ValidationError("不能参与自己发布的帖子")

        try:
            outcome = await self.ledger.add(post_id, viewer.id)
        except IntegrityError:
            # 查询后帖子被删除，外键插入失败；帖子仍存在则是其他约束错误
            await self._get_post(post_id)
            raise
        if outcome is JoinOutcome.ALREADY_JOINED:
            raise ConflictError("你已经参与了该帖子", error_code="ALREADY_PARTICIPATED")

        logger.info(f"参与成功: post={post_id}, user={viewer.id}")
        participants_count = await self.ledger.count_for(post.id)
        return build_post_view(post, author, viewer, True, participants_count)

    async def cancel_participation(self, viewer: Viewer, post_id: int) -> PostView:
        """取消参与，作者真实姓名对当前用户重新隐藏"""
        post, author = await self._get_post_with_author(post_id)

        removed = await self.ledger.remove(post.id, viewer.id)
        if not removed:
            raise NotParticipatingError()

        logger.info(f"取消参与: post={post_id}, user={viewer.id}")
        participants_count = await self.ledger.count_for(post.id)
        return build_post_view(post, author, viewer, False, participants_count)

    async def list_participants(self, viewer: Viewer, post_id: int) -> List[ParticipantResponse]:
        """参与者名单，按参与先后排序；仅参与者与管理者可见"""
        post = await self._get_post(post_id)
        has_participated = await self.ledger.exists_for(post.id, viewer.id)
        if not can_view_participants(viewer, post, has_participated):
            raise AuthorizationError(
                "参与后才能查看其他参与者",
                error_code="PARTICIPATION_REQUIRED",
            )

        return [
            ParticipantResponse(
                id=user.id,
                nickname=user.nickname,
                avatarUrl=user.avatar_url,
                grade=user.grade,
                bio=user.bio,
                tags=list(user.tags or []),
                participatedAt=participation.participated_at,
            )
            for user, participation in await self.ledger.list_for(post.id)
        ]

    async def kick_participant(self, viewer: Viewer, post_id: int, target_user_id: int) -> None:
        """作者或管理员移除某个参与者，不影响自己的参与状态"""
        post = await self._get_post(post_id)
        if not can_manage(viewer, post):
            raise AuthorizationError("无权移除参与者")
        if not can_kick(viewer, post, target_user_id):
            raise ValidationError("不能移除自己，请使用取消参与", error_code="CANNOT_KICK_SELF")

        removed = await self.ledger.remove(post.id, target_user_id)
        if not removed:
            raise NotFoundError("该用户未参与此帖子", error_code="PARTICIPANT_NOT_FOUND")
        logger.info(f"参与者已被移除: post={post_id}, target={target_user_id}, by={viewer.id}")
