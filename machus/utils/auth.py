"""
认证工具函数
"""
import base64
import hashlib
import hmac
import os
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from fastapi import Depends, Header
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from machus.core.config import settings
from machus.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from machus.db.database import get_db
from machus.models.user import User

PBKDF2_ITERATIONS = 100_000


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    """
    PBKDF2-HMAC-SHA256 哈希密码

    Returns:
        str: "salt$hash"，两部分均为base64
    """
    salt_bytes = os.urandom(16) if salt is None else salt
    hashed = hashlib.pbkdf2_hmac("sha256", password.encode(), salt_bytes, PBKDF2_ITERATIONS)
    return f"{base64.b64encode(salt_bytes).decode()}${base64.b64encode(hashed).decode()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        salt_b64, _ = stored.split("$", 1)
        salt = base64.b64decode(salt_b64)
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(hash_password(password, salt), stored)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    创建JWT访问token

    Args:
        data: 要编码到token中的数据
        expires_delta: token过期时间增量，默认使用配置中的时间

    Returns:
        str: JWT token字符串
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def verify_token(token: str, raise_on_error: bool = True) -> Optional[Dict[str, Any]]:
    """
    验证JWT token

    Args:
        token: JWT token字符串
        raise_on_error: 验证失败时是否抛出异常，False时返回None

    Returns:
        Dict: token中的payload数据，验证失败时返回None（如果raise_on_error=False）

    Raises:
        AuthenticationError: token无效或过期（如果raise_on_error=True）
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        if raise_on_error:
            raise AuthenticationError(
                "Token无效或已过期",
                error_code="TOKEN_INVALID",
                status_code=403,
            )
        return None


async def get_current_user_id(authorization: Optional[str] = Header(None)) -> int:
    """
    从请求头获取当前用户ID（通过JWT token）

    未提供token返回401，token格式错误、无效或过期返回403。

    Args:
        authorization: Authorization请求头，格式为 "Bearer {token}"

    Returns:
        int: 用户ID
    """
    if not authorization or not authorization.strip():
        raise AuthenticationError("需要访问令牌")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError(
            "认证格式错误，应为: Bearer {token}",
            error_code="TOKEN_INVALID",
            status_code=403,
        )

    payload = verify_token(parts[1], raise_on_error=True)
    user_id = payload.get("sub")
    try:
        return int(user_id)
    except (TypeError, ValueError):
        raise AuthenticationError(
            "Token中未找到用户ID",
            error_code="TOKEN_INVALID",
            status_code=403,
        )


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
) -> User:
    """加载当前用户，账号已删除时返回404"""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("用户不存在", error_code="USER_NOT_FOUND")
    return user


async def require_completed_profile(user: User = Depends(get_current_user)) -> User:
    """要求已完善资料"""
    if not user.profile_completed:
        raise AuthorizationError(
            "请先完善个人资料",
            error_code="PROFILE_INCOMPLETE",
            details={"profileCompleted": False},
        )
    return user
