"""Auth module schemas."""

from pydantic import BaseModel, EmailStr, Field

from src.modules.catalog.schemas import TherapistSummary
from src.modules.users.schemas import UserProfile


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field("", max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=32)
    password: str
    confirm_password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_new_password: str


class UpdateProfileRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field("", max_length=100)
    phone: str | None = Field(None, max_length=32)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=1)
    new_password: str
    confirm_new_password: str


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    token: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    success: bool = True
    message: str | None = None
    user: UserProfile | None = None
    token: str | None = None


class FavoritesResponse(BaseModel):
    success: bool = True
    message: str | None = None
    favorite_therapists: list[TherapistSummary] = Field(default_factory=list)
