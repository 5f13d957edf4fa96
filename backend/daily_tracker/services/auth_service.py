"""
Daily Tracker Backend — Authentication Service
================================================

What:  Account lifecycle and session issuance.
Why:   One place owns the credential rules (hashing, length limits, OTP
       single use), so routes stay thin.
How:   Credentials are bcrypt hashes in the store; sessions live in the
       SessionStore; OTP codes go to the store and out through EmailService.
Who:   routes/auth.py. Every method raises TrackerError subclasses that the
       global handlers translate to 400 / 401 / 404.

Session states:

    anonymous ──register / login / mobile verify-otp──▶ authenticated
        ▲                                                    │
        └──────────────────────── logout ────────────────────┘

OTP flows:
    Password reset  identifier = email, channel = email
        send-otp     always succeeds (unknown email: nothing stored or sent)
        verify-otp   check only, code stays valid
        reset        check, set new hash, delete code (single use)

    Mobile login    identifier = phone, channel = phone
        send-otp     unknown phone → 404; code emailed to the account address
        verify-otp   check, delete code, start session

Passwords:
    6 characters minimum, 72 UTF-8 bytes maximum (bcrypt input limit).
    Hashing and verification run in the threadpool so a 200 ms bcrypt
    round does not stall other requests or WebSocket pings.

Known gaps kept as-is:
    - No lockout or backoff after repeated bad passwords or codes.
    - change_password does not check `current_password`.
"""

import logging
from typing import Optional, Tuple

from daily_tracker.exceptions import (
    AuthenticationError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from daily_tracker.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
)
from daily_tracker.schemas.records import OtpChannel, UserRecord
from daily_tracker.services.email_service import EmailService, OtpPurpose
from daily_tracker.services.otp import generate_otp
from daily_tracker.services.passwords import (
    MAX_PASSWORD_BYTES,
    hash_password_async,
    password_too_long,
    verify_password_async,
)
from daily_tracker.services.session_store import SessionStore
from daily_tracker.storage.base import StorageBackend

logger = logging.getLogger(__name__)

INVALID_OTP = "Invalid or expired OTP"


class AuthService:
    def __init__(
        self,
        store: StorageBackend,
        sessions: SessionStore,
        email: EmailService,
        password_min_length: int = 6,
    ):
        self.store = store
        self.sessions = sessions
        self.email = email
        self.password_min_length = password_min_length

    def _check_password_length(self, password: Optional[str], field: str = "password") -> str:
        if not password:
            raise ValidationError("New password is required", field=field)
        if len(password) < self.password_min_length:
            raise ValidationError(
                f"Password must be at least {self.password_min_length} characters",
                field=field,
            )
        if password_too_long(password):
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                field=field,
            )
        return password

    # ── Account + session ─────────────────────────────────────────────────

    async def register(self, payload: RegisterRequest) -> Tuple[UserRecord, str]:
        """Create the account and log it in. Returns (user, session token)."""
        self._check_password_length(payload.password)
        if await self.store.get_user_by_username(payload.username) is not None:
            raise DuplicateError("Username already exists", field="username")
        if await self.store.get_user_by_email(payload.email) is not None:
            raise DuplicateError("Email already registered", field="email")

        user = await self.store.create_user(
            username=payload.username,
            email=payload.email,
            phone=payload.phone,
            password_hash=await hash_password_async(payload.password),
        )
        token = await self.sessions.create(user.id)
        logger.info("User registered: %s (%s)", user.username, user.id)
        return user, token

    async def login(self, payload: LoginRequest) -> Tuple[UserRecord, str]:
        user = await self.store.get_user_by_username(payload.username)
        if user is None or not await verify_password_async(payload.password, user.password):
            logger.info("Failed login for username %r", payload.username)
            raise AuthenticationError("Invalid username or password")
        token = await self.sessions.create(user.id)
        logger.info("User logged in: %s", user.id)
        return user, token

    async def logout(self, token: Optional[str]) -> None:
        await self.sessions.destroy(token)

    async def is_authenticated(self, token: Optional[str]) -> bool:
        return await self.sessions.get_user_id(token) is not None

    async def get_user(self, user_id: str) -> UserRecord:
        user = await self.store.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("user", message="User not found")
        return user

    async def change_password(self, user_id: str, payload: ChangePasswordRequest) -> None:
        new_password = self._check_password_length(payload.new_password, field="newPassword")
        if not await self.store.update_password(user_id, await hash_password_async(new_password)):
            raise NotFoundError("user", message="User not found")
        logger.info("Password changed for user %s", user_id)

    # ── Forgot password (email OTP) ───────────────────────────────────────

    async def send_reset_otp(self, email: str) -> None:
        user = await self.store.get_user_by_email(email)
        # Why silent: the reply must not reveal which emails are registered.
        if user is None:
            logger.info("Password reset requested for unknown email")
            return
        code = generate_otp()
        await self.store.store_otp(email, code, OtpChannel.EMAIL)
        await self.email.send_otp(email, code, OtpPurpose.PASSWORD_RESET)

    async def verify_reset_otp(self, email: str, otp: str) -> None:
        if not await self.store.verify_otp(email, otp, OtpChannel.EMAIL):
            raise ValidationError(INVALID_OTP, field="otp")

    async def reset_password(self, email: str, otp: str, password: str) -> None:
        await self.verify_reset_otp(email, otp)
        self._check_password_length(password)
        if not await self.store.update_password_by_email(email, await hash_password_async(password)):
            raise NotFoundError("user", message="User not found")
        await self.store.delete_otp(email, OtpChannel.EMAIL)
        logger.info("Password reset completed via email OTP")

    # ── Mobile login (phone OTP, delivered by email) ──────────────────────

    async def send_mobile_otp(self, phone: str) -> None:
        user = await self.store.get_user_by_phone(phone)
        if user is None:
            raise NotFoundError("phone", message="Phone number not registered")
        code = generate_otp()
        await self.store.store_otp(phone, code, OtpChannel.PHONE)
        await self.email.send_otp(user.email, code, OtpPurpose.MOBILE_LOGIN, phone=phone)

    async def verify_mobile_otp(self, phone: str, otp: str) -> Tuple[UserRecord, str]:
        if not await self.store.verify_otp(phone, otp, OtpChannel.PHONE):
            raise ValidationError(INVALID_OTP, field="otp")
        user = await self.store.get_user_by_phone(phone)
        if user is None:
            raise NotFoundError("user", message="User not found")
        await self.store.delete_otp(phone, OtpChannel.PHONE)
        token = await self.sessions.create(user.id)
        logger.info("Mobile login for user %s", user.id)
        return user, token
