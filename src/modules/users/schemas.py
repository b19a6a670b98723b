"""Pydantic schemas for user accounts."""

from pydantic import BaseModel, ConfigDict, Field

from src.modules.catalog.schemas import TherapistSummary
from src.shared.enums import UserRole
from src.shared.schemas import UtcDatetime


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(serialization_alias="id")
    name: str
    surname: str
    email: str
    phone: str | None = None
    role: UserRole
    is_active: bool
    is_email_verified: bool
    created_at: UtcDatetime
    last_login_at: UtcDatetime | None = None


class UserProfile(UserPublic):
    """Account view returned to the owner, including favorite therapists."""

    favorite_therapists: list[TherapistSummary] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user) -> "UserProfile":
        # ``favorite_links`` and their therapists must already be loaded.
        profile = cls.model_validate(user)
        profile.favorite_therapists = [
            TherapistSummary.model_validate(link.therapist) for link in user.favorite_links
        ]
        return profile


class UserRoleUpdate(BaseModel):
    role: UserRole
