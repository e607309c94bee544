from enum import Enum
from typing import Optional

from pydantic import Field

from .base import CamelModel, DocumentBase, EMAIL_PATTERN, PHONE_PATTERN, UtcDatetime


class UserRole(str, Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    AGENT = "Agent"
    SUPPORT = "Support"


class UserFields(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    phone_number: str = Field(pattern=PHONE_PATTERN)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    role: UserRole = UserRole.AGENT


class UserCreate(UserFields):
    password: str = Field(min_length=6)


class UserDB(DocumentBase, UserFields):
    password_hash: str
    created_by: Optional[str] = None
    reset_password_token: Optional[str] = None
    reset_password_expire: Optional[UtcDatetime] = None


# Never leaves the store through a read endpoint
USER_SECRET_FIELDS = ("passwordHash", "resetPasswordToken", "resetPasswordExpire")
PUBLIC_USER_PROJECTION = {field: 0 for field in USER_SECRET_FIELDS}
