"""
Daily Tracker Backend — Authentication Routes
===============================================

What:  /api/auth/* endpoints. Session tokens travel in an HttpOnly,
       SameSite=Lax cookie; the token itself is never in a response body.
Who:   The browser client's login, registration and account screens.

Status codes:
    register             200 | 400 (invalid / duplicate)
    login                200 | 401
    logout               200 (even without a session)
    check                200, never cached
    me                   200 | 401 | 404
    forgot-password/*    send-otp always 200; verify 200 | 400; reset 200 | 400 | 404
    mobile-login/*       send-otp 200 | 404; verify 200 | 400 | 404
    change-password      200 | 400 | 401
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response

from daily_tracker.config import Settings
from daily_tracker.routes.dependencies import (
    get_auth_service,
    get_session_token,
    get_settings,
    require_user_id,
)
from daily_tracker.schemas.auth import (
    AuthCheckResponse,
    ChangePasswordRequest,
    LoginRequest,
    MeResponse,
    MobileLoginResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SendEmailOtpRequest,
    SendPhoneOtpRequest,
    UserPublic,
    VerifyEmailOtpRequest,
    VerifyPhoneOtpRequest,
)
from daily_tracker.schemas.common import ErrorResponse, SuccessResponse
from daily_tracker.schemas.records import UserRecord
from daily_tracker.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "0",
}

ERRORS = {
    400: {"description": "Invalid payload", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    404: {"description": "Not found", "model": ErrorResponse},
}


def _set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        # Why httponly: page scripts never need the token.
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
        path="/",
    )


def _public(user: UserRecord) -> UserPublic:
    return UserPublic(id=user.id, username=user.username, email=user.email)


# ── Account + session ─────────────────────────────────────────────────────


@router.post("/register", response_model=UserPublic, responses={400: ERRORS[400]})
async def register(
    payload: RegisterRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> UserPublic:
    user, token = await auth.register(payload)
    _set_session_cookie(response, settings, token)
    return _public(user)


@router.post("/login", response_model=UserPublic, responses={401: ERRORS[401]})
async def login(
    payload: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> UserPublic:
    user, token = await auth.login(payload)
    _set_session_cookie(response, settings, token)
    return _public(user)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> SuccessResponse:
    await auth.logout(token)
    response.delete_cookie(settings.session_cookie_name, path="/")
    return SuccessResponse()


@router.get("/check", response_model=AuthCheckResponse)
async def check(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    auth: AuthService = Depends(get_auth_service),
) -> AuthCheckResponse:
    response.headers.update(NO_CACHE_HEADERS)
    return AuthCheckResponse(authenticated=await auth.is_authenticated(token))


@router.get("/me", response_model=MeResponse, responses={401: ERRORS[401], 404: ERRORS[404]})
async def me(
    response: Response,
    user_id: str = Depends(require_user_id),
    auth: AuthService = Depends(get_auth_service),
) -> MeResponse:
    response.headers.update(NO_CACHE_HEADERS)
    user = await auth.get_user(user_id)
    return MeResponse(id=user.id, username=user.username, email=user.email, password=user.password)


@router.post(
    "/change-password",
    response_model=SuccessResponse,
    responses={400: ERRORS[400], 401: ERRORS[401]},
)
async def change_password(
    payload: ChangePasswordRequest,
    user_id: str = Depends(require_user_id),
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.change_password(user_id, payload)
    return SuccessResponse(message="Password updated successfully")


# ── Forgot password ───────────────────────────────────────────────────────


@router.post("/forgot-password/send-otp", response_model=SuccessResponse)
async def forgot_password_send_otp(
    payload: SendEmailOtpRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.send_reset_otp(payload.email)
    return SuccessResponse(message="If the email is registered, an OTP has been sent")


@router.post(
    "/forgot-password/verify-otp",
    response_model=SuccessResponse,
    responses={400: ERRORS[400]},
)
async def forgot_password_verify_otp(
    payload: VerifyEmailOtpRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.verify_reset_otp(payload.email, payload.otp)
    return SuccessResponse(message="OTP verified")


@router.post(
    "/forgot-password/reset",
    response_model=SuccessResponse,
    responses={400: ERRORS[400], 404: ERRORS[404]},
)
async def forgot_password_reset(
    payload: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.reset_password(payload.email, payload.otp, payload.password)
    return SuccessResponse(message="Password reset successful")


# ── Mobile login ──────────────────────────────────────────────────────────


@router.post(
    "/mobile-login/send-otp",
    response_model=SuccessResponse,
    responses={404: ERRORS[404]},
)
async def mobile_login_send_otp(
    payload: SendPhoneOtpRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SuccessResponse:
    await auth.send_mobile_otp(payload.phone)
    return SuccessResponse(message="OTP sent to your registered email")


@router.post(
    "/mobile-login/verify-otp",
    response_model=MobileLoginResponse,
    responses={400: ERRORS[400], 404: ERRORS[404]},
)
async def mobile_login_verify_otp(
    payload: VerifyPhoneOtpRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> MobileLoginResponse:
    user, token = await auth.verify_mobile_otp(payload.phone, payload.otp)
    _set_session_cookie(response, settings, token)
    return MobileLoginResponse(id=user.id, username=user.username, email=user.email)
