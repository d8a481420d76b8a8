from .user import User
from .post import Post
from .participation import Participation
from .email_verification_token import EmailVerificationToken
from .password_reset_token import PasswordResetToken

__all__ = [
    "User",
    "Post",
    "Participation",
    "EmailVerificationToken",
    "PasswordResetToken"
]
