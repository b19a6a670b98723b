"""Authentication, profile and favorite-therapist routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import ensure_self_or_admin, get_current_user
from src.modules.auth.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    FavoritesResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    VerifyEmailRequest,
)
from src.modules.auth.service import RESET_LINK_SENT, AuthService
from src.modules.catalog.schemas import TherapistSummary
from src.modules.notifications.dispatcher import NotificationQueue, get_notifier
from src.modules.users.models import User
from src.modules.users.schemas import UserProfile
from src.shared.schemas import MessageResponse

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def get_service(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationQueue = Depends(get_notifier),
) -> AuthService:
    return AuthService(db, notifier)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, service: AuthService = Depends(get_service)) -> AuthResponse:
    user, token = await service.register(
        payload.name,
        payload.surname,
        payload.email,
        payload.phone,
        payload.password,
        payload.confirm_password,
    )
    return AuthResponse(
        message="Registration successful. Check your inbox to verify your email address.",
        user=UserProfile.from_user(user),
        token=token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, service: AuthService = Depends(get_service)) -> AuthResponse:
    user, token = await service.login(payload.email, payload.password)
    return AuthResponse(message="Login successful", user=UserProfile.from_user(user), token=token)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    service: AuthService = Depends(get_service),
) -> MessageResponse:
    await service.forgot_password(payload.email)
    return MessageResponse(message=RESET_LINK_SENT)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    service: AuthService = Depends(get_service),
) -> MessageResponse:
    await service.reset_password(payload.email, payload.token, payload.new_password, payload.confirm_new_password)
    return MessageResponse(message="Your password has been reset")


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(payload: VerifyEmailRequest, service: AuthService = Depends(get_service)) -> MessageResponse:
    await service.verify_email(payload.email, payload.token)
    return MessageResponse(message="Your email address has been verified")


@router.post("/change-password/{user_id}", response_model=MessageResponse)
async def change_password(
    user_id: str,
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_service),
) -> MessageResponse:
    ensure_self_or_admin(current_user, user_id)
    await service.change_password(
        user_id,
        payload.current_password,
        payload.new_password,
        payload.confirm_new_password,
    )
    return MessageResponse(message="Password changed successfully")


@router.get("/profile/{user_id}", response_model=AuthResponse)
async def get_profile(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_service),
) -> AuthResponse:
    ensure_self_or_admin(current_user, user_id)
    user = await service.get_profile(user_id)
    return AuthResponse(user=UserProfile.from_user(user))


@router.put("/profile/{user_id}", response_model=AuthResponse)
async def update_profile(
    user_id: str,
    payload: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_service),
) -> AuthResponse:
    ensure_self_or_admin(current_user, user_id)
    user = await service.update_profile(user_id, payload.name, payload.surname, payload.phone)
    return AuthResponse(message="Profile updated", user=UserProfile.from_user(user))


@router.get("/favorites/{user_id}", response_model=FavoritesResponse)
async def list_favorites(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_service),
) -> FavoritesResponse:
    ensure_self_or_admin(current_user, user_id)
    therapists = await service.list_favorites(user_id)
    return FavoritesResponse(favorite_therapists=[TherapistSummary.model_validate(t) for t in therapists])


@router.post("/favorites/{user_id}/add/{therapist_id}", response_model=MessageResponse)
async def add_favorite(
    user_id: str,
    therapist_id: str,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_service),
) -> MessageResponse:
    ensure_self_or_admin(current_user, user_id)
    added = await service.add_favorite(user_id, therapist_id)
    return MessageResponse(message="Therapist added to favorites" if added else "Therapist is already a favorite")


@router.delete("/favorites/{user_id}/remove/{therapist_id}", response_model=MessageResponse)
async def remove_favorite(
    user_id: str,
    therapist_id: str,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_service),
) -> MessageResponse:
    ensure_self_or_admin(current_user, user_id)
    removed = await service.remove_favorite(user_id, therapist_id)
    return MessageResponse(message="Therapist removed from favorites" if removed else "Therapist was not a favorite")
