"""
应用配置文件
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """应用配置"""

    # 应用基本配置
    APP_NAME: str = "M@CHUS"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # 数据库配置
    DB_USERNAME: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "machus"
    DATABASE_URL_OVERRIDE: Optional[str] = None  # 例如测试时使用 sqlite+aiosqlite

    # JWT配置
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7天

    # CORS配置
    CORS_ORIGINS: list = ["*"]

    # 注册配置
    ALLOWED_EMAIL_DOMAIN: str = "shanghaitech.edu.cn"
    PASSWORD_MIN_LENGTH: int = 6
    ADMIN_EMAILS: List[str] = []  # migrate.py 会把这些邮箱设为管理员

    # 验证/重置链接配置
    FRONTEND_URL: str = "http://localhost:3000"
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # 邮件配置（465端口使用SSL）
    MAIL_ENABLED: bool = False
    MAIL_HOST: str = "smtp.126.com"
    MAIL_PORT: int = 465
    MAIL_USER: Optional[str] = None
    MAIL_PASS: Optional[str] = None
    MAIL_SENDER_NAME: str = "M@CHUS"

    @property
    def DATABASE_URL(self) -> str:
        """获取数据库连接URL"""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql+asyncpg://{self.DB_USERNAME}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
