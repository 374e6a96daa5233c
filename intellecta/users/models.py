from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum

from intellecta.core.security import password_strength_errors

# ==================== ENUMS ====================

class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


def _strong_password(value: str) -> str:
    errors = password_strength_errors(value)
    if errors:
        raise ValueError("; ".join(errors))
    return value

# ==================== AUTH MODELS ====================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str
    expo_push_token: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters long")
        return v

    @field_validator("password")
    @classmethod
    def password_rules(cls, v):
        return _strong_password(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., pattern=r"^\d{6}$")


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)

# ==================== PROFILE MODELS ====================

class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def password_rules(cls, v):
        return _strong_password(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Password confirmation does not match new password")
        return self


class ProfilePictureUpdate(BaseModel):
    url: str = Field(..., pattern=r"^https?://")


class ExpoTokenUpdate(BaseModel):
    expo_push_token: str = Field(..., min_length=1)

# ==================== ADMIN MODELS ====================

class AdminUserUpdate(BaseModel):
    role: Optional[UserRole] = None
    verified: Optional[bool] = None
    is_premium: Optional[bool] = None
    premium_expiry_date: Optional[datetime] = None
