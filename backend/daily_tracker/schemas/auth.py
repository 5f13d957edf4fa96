"""
Daily Tracker Backend — Authentication Request/Response Schemas
=================================================================

What:  Payloads for /api/auth/*. Field names follow the browser client
       (`currentPassword`, `newPassword`).

Password length is checked by the auth service against
settings.password_min_length rather than here, so the limit stays
configurable.
"""

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from daily_tracker.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=32)
    password: str = Field(min_length=1)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username cannot be blank")
        return v

    @field_validator("phone")
    @classmethod
    def blank_phone_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class LoginRequest(CamelModel):
    username: str
    password: str


class UserPublic(CamelModel):
    """Returned by register, login and mobile login."""

    id: str
    username: str
    email: str


class MeResponse(UserPublic):
    """GET /api/auth/me. `password` is the stored hash, never the plain text."""

    password: str


class AuthCheckResponse(CamelModel):
    authenticated: bool


class SendEmailOtpRequest(CamelModel):
    email: EmailStr


class VerifyEmailOtpRequest(CamelModel):
    email: EmailStr
    otp: str = Field(min_length=1, max_length=16)


class ResetPasswordRequest(CamelModel):
    email: EmailStr
    otp: str = Field(min_length=1, max_length=16)
    password: str


class SendPhoneOtpRequest(CamelModel):
    phone: str = Field(min_length=1, max_length=32)


class VerifyPhoneOtpRequest(CamelModel):
    phone: str = Field(min_length=1, max_length=32)
    otp: str = Field(min_length=1, max_length=16)


class MobileLoginResponse(UserPublic):
    success: bool = True


class ChangePasswordRequest(CamelModel):
    """
    `current_password` is accepted for client compatibility but not checked;
    the session alone authorizes the change.
    """

    current_password: Optional[str] = None
    new_password: Optional[str] = None
