"""Account registration, login, password recovery and favorites."""

from __future__ import annotations

import logging
from datetime import timedelta
from urllib.parse import urlencode

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import settings
from src.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from src.core.security import create_access_token, generate_token, hash_password, verify_password
from src.modules.catalog.models import Therapist
from src.modules.notifications.dispatcher import NotificationQueue
from src.modules.notifications.templates import render_password_reset_email, render_verification_email
from src.modules.users.models import User, UserFavoriteTherapist
from src.shared.datetimes import as_utc, utcnow
from src.shared.enums import UserRole

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
VERIFICATION_TOKEN_TTL = timedelta(hours=24)
RESET_TOKEN_TTL = timedelta(hours=1)

INVALID_CREDENTIALS = "Email or password is incorrect"
RESET_LINK_SENT = "If an account exists for this email, a password reset link has been sent"
INVALID_RESET_TOKEN = "Invalid or expired token"


def _check_new_password(password: str, confirmation: str) -> None:
    if password != confirmation:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _frontend_link(path: str, **params: str) -> str:
    return f"{settings.frontend_base_url.rstrip('/')}/{path}?{urlencode(params)}"


class AuthService:
    def __init__(self, db: AsyncSession, notifier: NotificationQueue):
        self.db = db
        self.notifier = notifier

    async def _get_user(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User)
            .options(selectinload(User.favorite_links).selectinload(UserFavoriteTherapist.therapist))
            .where(User.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def _find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(self, name: str, surname: str, email: str, phone: str | None, password: str, confirm: str) -> tuple[User, str]:
        _check_new_password(password, confirm)
        if await self._find_by_email(email) is not None:
            raise ConflictError("This email address is already in use")

        token = generate_token()
        user = User(
            name=name.strip(),
            surname=surname.strip(),
            email=email,
            phone=phone,
            password_hash=hash_password(password),
            role=UserRole.CUSTOMER,
            is_email_verified=False,
            email_verification_token=token,
            email_verification_token_expiry=utcnow() + VERIFICATION_TOKEN_TTL,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("This email address is already in use")

        subject, html = render_verification_email(user.name, _frontend_link("verify-email", token=token, email=email))
        self.notifier.send_email(email, subject, html)
        logger.info("Registered user %s", user.user_id)

        user = await self._get_user(user.user_id)
        return user, create_access_token(user.user_id, user.role)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        user = await self._find_by_email(email)
        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)
        user.last_login_at = utcnow()
        await self.db.commit()
        user = await self._get_user(user.user_id)
        return user, create_access_token(user.user_id, user.role)

    async def get_profile(self, user_id: str) -> User:
        return await self._get_user(user_id)

    async def update_profile(self, user_id: str, name: str, surname: str, phone: str | None) -> User:
        user = await self._get_user(user_id)
        user.name = name.strip()
        user.surname = surname.strip()
        user.phone = phone
        await self.db.commit()
        return await self._get_user(user_id)

    async def change_password(self, user_id: str, current: str, new: str, confirm: str) -> None:
        user = await self._get_user(user_id)
        if not verify_password(current, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        _check_new_password(new, confirm)
        user.password_hash = hash_password(new)
        await self.db.commit()

    async def forgot_password(self, email: str) -> None:
        """Email a reset link when the account exists; callers always report success."""
        user = await self._find_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return
        token = generate_token()
        user.password_reset_token = token
        user.password_reset_token_expiry = utcnow() + RESET_TOKEN_TTL
        await self.db.commit()

        subject, html = render_password_reset_email(user.name, _frontend_link("reset-password", token=token, email=email))
        self.notifier.send_email(email, subject, html)

    async def reset_password(self, email: str, token: str, new: str, confirm: str) -> None:
        user = await self._find_by_email(email)
        if (
            user is None
            or user.password_reset_token is None
            or user.password_reset_token != token
            or user.password_reset_token_expiry is None
            or as_utc(user.password_reset_token_expiry) <= utcnow()
        ):
            raise ValidationError(INVALID_RESET_TOKEN)
        _check_new_password(new, confirm)
        user.password_hash = hash_password(new)
        user.password_reset_token = None
        user.password_reset_token_expiry = None
        await self.db.commit()

    async def verify_email(self, email: str, token: str) -> None:
        user = await self._find_by_email(email)
        if user is None:
            raise NotFoundError("No account is registered with this email")
        if user.is_email_verified and user.email_verification_token is None:
            return
        if user.email_verification_token is None or user.email_verification_token != token:
            raise ValidationError("Invalid token")
        if user.email_verification_token_expiry is None or as_utc(user.email_verification_token_expiry) <= utcnow():
            raise ValidationError("Token has expired")
        user.is_email_verified = True
        user.email_verification_token = None
        user.email_verification_token_expiry = None
        await self.db.commit()

    async def list_favorites(self, user_id: str) -> list[Therapist]:
        user = await self._get_user(user_id)
        self._ensure_customer(user)
        return [link.therapist for link in user.favorite_links]

    async def add_favorite(self, user_id: str, therapist_id: str) -> bool:
        """Returns False when the therapist was already a favorite."""
        user = await self._get_user(user_id)
        self._ensure_customer(user)
        if await self.db.get(Therapist, therapist_id) is None:
            raise NotFoundError("Therapist not found")
        if any(link.therapist_id == therapist_id for link in user.favorite_links):
            return False
        self.db.add(UserFavoriteTherapist(user_id=user_id, therapist_id=therapist_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent request added the same pair first.
            await self.db.rollback()
            return False
        return True

    async def remove_favorite(self, user_id: str, therapist_id: str) -> bool:
        """Returns False when there was nothing to remove."""
        user = await self._get_user(user_id)
        self._ensure_customer(user)
        result = await self.db.execute(
            delete(UserFavoriteTherapist)
            .where(
                UserFavoriteTherapist.user_id == user_id,
                UserFavoriteTherapist.therapist_id == therapist_id,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return bool(result.rowcount)

    @staticmethod
    def _ensure_customer(user: User) -> None:
        if user.role != UserRole.CUSTOMER:
            raise ValidationError("Only customers can manage favorite therapists")
