"""
认证服务

注册、邮箱验证、登录、找回密码、重置密码。
"""
import logging
import re
import secrets
import smtplib
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote

from sqlalchemy import select, update, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession

from machus.core.config import settings
from machus.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InternalError,
    ValidationError,
)
from machus.models.email_verification_token import EmailVerificationToken
from machus.models.password_reset_token import PasswordResetToken
from machus.models.user import User
from machus.services.mail_service import MailService
from machus.utils.auth import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """认证服务类"""

    @staticmethod
    def generate_token() -> str:
        """生成64位十六进制的一次性令牌"""
        return secrets.token_hex(32)

    @staticmethod
    def is_allowed_email(email: str) -> bool:
        pattern = r"^[a-zA-Z0-9._%+-]+@" + re.escape(settings.ALLOWED_EMAIL_DOMAIN) + r"$"
        return re.match(pattern, email) is not None

    @staticmethod
    def build_link(path: str, token: str, email: str) -> str:
        return f"{settings.FRONTEND_URL}/{path}?token={token}&email={quote(email)}"

    @staticmethod
    def check_password_strength(password: str) -> None:
        if len(password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(f"密码至少需要{settings.PASSWORD_MIN_LENGTH}个字符")

    @classmethod
    async def get_user_by_email(cls, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @classmethod
    async def register(
        cls,
        db: AsyncSession,
        email: str,
        password: str,
        avatar_url: Optional[str] = None
    ) -> User:
        """
        注册新用户并发送验证邮件

        步骤：
        1. 校验学校邮箱与密码长度
        2. 邮箱已存在则拒绝（已验证/未验证提示不同）
        3. 创建未验证用户
        4. 生成验证令牌并发送邮件

        Raises:
            ValidationError: 邮箱域名或密码不合法
            ConflictError: 邮箱已注册
            InternalError: 验证邮件发送失败
        """
        if not cls.is_allowed_email(email):
            raise ValidationError(f"邮箱必须是有效的 @{settings.ALLOWED_EMAIL_DOMAIN} 地址")
        cls.check_password_strength(password)

        existing = await cls.get_user_by_email(db, email)
        if existing:
            if existing.email_verified:
                raise ConflictError("该邮箱已注册", error_code="EMAIL_REGISTERED")
            raise ConflictError(
                "该邮箱已注册，请查收验证邮件",
                error_code="EMAIL_REGISTERED",
                details={"emailVerified": False},
            )

        user = User(
            email=email,
            password_hash=hash_password(password),
            avatar_url=avatar_url,
            email_verified=False,
            profile_completed=False,
            is_admin=False,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)

        token = cls.generate_token()
        db.add(EmailVerificationToken(
            user_id=user.id,
            token=token,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
            used=False,
        ))
        await db.commit()

        verify_url = cls.build_link("verify-email", token, email)
        try:
            await MailService.send_template("verification", email, verify_url)
        except (smtplib.SMTPException, OSError):
            raise InternalError("验证邮件发送失败", error_code="MAIL_DELIVERY_FAILED")

        logger.info(f"新用户注册: user={user.id}")
        return user

    @classmethod
    async def verify_email(cls, db: AsyncSession, email: str, token: str) -> bool:
        """
        验证邮箱

        Returns:
            bool: True 表示本次完成验证，False 表示此前已验证
        """
        user = await cls.get_user_by_email(db, email)
        if not user:
            raise ValidationError("无效的验证链接")
        if user.email_verified:
            return False

        result = await db.execute(
            select(EmailVerificationToken)
            .where(
                and_(
                    EmailVerificationToken.user_id == user.id,
                    EmailVerificationToken.token == token,
                    EmailVerificationToken.used == False,
                    EmailVerificationToken.expires_at > datetime.now(timezone.utc)
                )
            )
            .order_by(EmailVerificationToken.created_at.desc())
            .limit(1)
        )
        record = result.scalar_one_or_none()
        if not record:
            raise ValidationError("验证链接无效或已过期")

        user.email_verified = True
        record.used = True
        await db.commit()
        logger.info(f"邮箱验证成功: user={user.id}")
        return True

    @classmethod
    async def login(cls, db: AsyncSession, email: str, password: str) -> tuple:
        """
        邮箱密码登录

        Returns:
            tuple: (access_token, user)
        """
        user = await cls.get_user_by_email(db, email)
        if not user:
            raise AuthenticationError("邮箱或密码错误", error_code="INVALID_CREDENTIALS")

        if not user.email_verified:
            raise AuthenticationError(
                "邮箱尚未验证，请查收验证邮件",
                error_code="EMAIL_NOT_VERIFIED",
                status_code=403,
            )

        if not verify_password(password, user.password_hash):
            raise AuthenticationError("邮箱或密码错误", error_code="INVALID_CREDENTIALS")

        token = create_access_token({"sub": str(user.id), "email": user.email})
        return token, user

    @classmethod
    async def request_password_reset(cls, db: AsyncSession, email: str) -> None:
        """
        申请重置密码

        邮箱不存在时静默返回，不暴露账号是否存在。
        """
        user = await cls.get_user_by_email(db, email)
        if not user:
            return

        # 删除旧的重置记录
        await db.execute(delete(PasswordResetToken).where(PasswordResetToken.user_id == user.id))

        token = cls.generate_token()
        db.add(PasswordResetToken(
            user_id=user.id,
            token=token,
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
            used=False,
        ))
        await db.commit()

        reset_url = cls.build_link("reset-password", token, email)
        try:
            await MailService.send_template("reset_password", email, reset_url)
        except (smtplib.SMTPException, OSError):
            raise InternalError("重置邮件发送失败", error_code="MAIL_DELIVERY_FAILED")

    @classmethod
    async def reset_password(cls, db: AsyncSession, email: str, token: str, password: str) -> None:
        """使用重置令牌设置新密码"""
        cls.check_password_strength(password)

        user = await cls.get_user_by_email(db, email)
        if not user:
            raise ValidationError("令牌或邮箱无效")

        result = await db.execute(
            select(PasswordResetToken)
            .where(
                and_(
                    PasswordResetToken.user_id == user.id,
                    PasswordResetToken.token == token,
                    PasswordResetToken.used == False,
                    PasswordResetToken.expires_at > datetime.now(timezone.utc)
                )
            )
            .order_by(PasswordResetToken.created_at.desc())
            .limit(1)
        )
        record = result.scalar_one_or_none()
        if not record:
            raise ValidationError("令牌无效或已过期")

        await db.execute(
            update(User)
            .where(User.id == user.id)
            .values(password_hash=hash_password(password))
            .execution_options(synchronize_session=False)
        )
        record.used = True
        await db.commit()
        logger.info(f"密码已重置: user={user.id}")
