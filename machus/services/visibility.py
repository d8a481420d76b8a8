"""
可见性与权限判定

纯函数，不访问数据库、不抛异常。帖子的所有读写路径都通过这里决定：
- 谁可以管理（编辑/删除/踢人）一个帖子
- 谁可以查看参与者名单
- 作者的真实姓名对谁可见
"""
from dataclasses import dataclass
from typing import Optional

from machus.models.post import Post
from machus.models.user import User
from machus.schemas.post import AuthorView, PostView


@dataclass(frozen=True)
class Viewer:
    """发起请求的用户，由路由层显式传入服务层"""
    id: int
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: User) -> "Viewer":
        return cls(id=user.id, is_admin=bool(user.is_admin))


def can_manage(viewer: Viewer, post: Post) -> bool:
    """作者本人或管理员"""
    return viewer.id == post.author_id or viewer.is_admin


def can_view_participants(viewer: Viewer, post: Post, has_participated: bool) -> bool:
    return has_participated or can_manage(viewer, post)


def can_kick(viewer: Viewer, post: Post, target_user_id: int) -> bool:
    """踢人只针对他人；自己退出走取消参与"""
    return can_manage(viewer, post) and target_user_id != viewer.id


def reveals_real_name(viewer: Viewer, post: Post, has_participated: bool) -> bool:
    """
    参与了该帖子的人可以看到作者真实姓名。
    作者看自己的帖子时也显示自己的真实姓名；管理员不因身份获得额外可见性。
    """
    return has_participated or viewer.id == post.author_id


def redact_author_identity(author: User, reveal_real_name: bool) -> AuthorView:
    return AuthorView(
        id=author.id,
        nickname=author.nickname,
        avatarUrl=author.avatar_url,
        grade=author.grade,
        bio=author.bio,
        tags=list(author.tags or []),
        realName=author.real_name if reveal_real_name else None,
    )


def build_post_view(
    post: Post,
    author: User,
    viewer: Viewer,
    has_participated: bool,
    participants_count: Optional[int],
) -> PostView:
    """组装 PostView，单条查询和信息流使用同一套规则"""
    return PostView(
        id=post.id,
        content=post.content,
        eventTime=post.event_time,
        duration=post.duration_minutes,
        location=post.location,
        targetPeople=post.target_people,
        tags=list(post.tags or []),
        createdAt=post.created_at,
        author=redact_author_identity(
            author, reveals_real_name(viewer, post, has_participated)
        ),
        hasParticipated=has_participated,
        participantsCount=participants_count or 0,
    )
