"""
业务异常定义

服务层只抛出这里的异常，由 main.py 中注册的处理器统一转换为错误响应：
{"error": true, "error_code": "...", "error_message": "...", "details": {...}}
"""
from typing import Any, Dict, Optional

from fastapi import status


class AppError(Exception):
    """业务异常基类"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "服务器内部错误"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": True,
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }


class ValidationError(AppError):
    """请求参数不合法"""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    default_message = "请求参数不合法"


class NotParticipatingError(ValidationError):
    """取消参与时当前用户并未参与"""
    error_code = "NOT_PARTICIPATING"
    default_message = "你尚未参与该帖子"


class AuthenticationError(AppError):
    """缺少或无效的凭证（缺少为401，无效/过期为403）"""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "TOKEN_REQUIRED"
    default_message = "需要访问令牌"


class AuthorizationError(AppError):
    """已认证但无权操作"""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_message = "无权执行此操作"


class NotFoundError(AppError):
    """资源不存在"""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    default_message = "资源不存在"


class ConflictError(AppError):
    """唯一性冲突，例如重复参与"""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "CONFLICT"
    default_message = "资源冲突"


class InternalError(AppError):
    """存储或外部服务异常"""
