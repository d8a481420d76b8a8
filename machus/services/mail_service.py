"""
邮件发送服务（SMTP over SSL）
"""
import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from machus.core.config import settings

logger = logging.getLogger(__name__)

# 邮件模板
EMAIL_TEMPLATES = {
    "verification": {
        "subject": "M@CHUS 邮箱验证",
        "text": "欢迎注册 M@CHUS！请点击以下链接验证你的邮箱：\n\n{url}\n\n如果这不是你本人操作，请忽略此邮件。",
        "html": '<p>欢迎注册 M@CHUS！请点击以下链接验证你的邮箱：</p><p><a href="{url}">{url}</a></p><p>如果这不是你本人操作，请忽略此邮件。</p>',
    },
    "reset_password": {
        "subject": "M@CHUS 密码重置",
        "text": "你正在重置 M@CHUS 账户密码，请点击以下链接完成操作：\n\n{url}\n\n如果这不是你本人操作，请忽略此邮件。",
        "html": '<p>你正在重置 M@CHUS 账户密码，请点击以下链接完成操作：</p><p><a href="{url}">{url}</a></p><p>如果这不是你本人操作，请忽略此邮件。</p>',
    },
}


class MailService:
    """邮件服务类"""

    @staticmethod
    def _send_sync(to_email: str, subject: str, text: str, html: Optional[str]) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((settings.MAIL_SENDER_NAME, settings.MAIL_USER or ""))
        msg["To"] = to_email
        msg.attach(MIMEText(text, "plain", "utf-8"))
        if html:
            msg.attach(MIMEText(html, "html", "utf-8"))

        with smtplib.SMTP_SSL(settings.MAIL_HOST, settings.MAIL_PORT, timeout=10) as server:
            if settings.MAIL_USER and settings.MAIL_PASS:
                server.login(settings.MAIL_USER, settings.MAIL_PASS)
            server.sendmail(settings.MAIL_USER, [to_email], msg.as_string())

    @classmethod
    async def send(cls, to_email: str, subject: str, text: str, html: Optional[str] = None) -> None:
        """
        发送邮件

        MAIL_ENABLED 关闭时只写日志，便于本地开发直接从日志拿链接。

        Raises:
            smtplib.SMTPException, OSError: 发送失败
        """
        if not settings.MAIL_ENABLED:
            logger.info(f"邮件发送已关闭，跳过: to={to_email}, subject={subject}")
            logger.debug(text)
            return

        try:
            await asyncio.to_thread(cls._send_sync, to_email, subject, text, html)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"邮件发送失败: to={to_email}, error={e}")
            raise
        logger.info(f"邮件已发送: to={to_email}, subject={subject}")

    @classmethod
    async def send_template(cls, template: str, to_email: str, url: str) -> None:
        tpl = EMAIL_TEMPLATES[template]
        await cls.send(
            to_email,
            tpl["subject"],
            tpl["text"].format(url=url),
            tpl["html"].format(url=url),
        )
