"""Catalog schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    service_id: str = Field(serialization_alias="id")
    name: str
    description: str | None = None
    duration_minutes: int
    price: Decimal


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    duration_minutes: int = Field(60, gt=0)
    price: Decimal = Field(..., ge=0)


class ServiceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    duration_minutes: int | None = Field(None, gt=0)
    price: Decimal | None = Field(None, ge=0)


class TherapistSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    therapist_id: str = Field(serialization_alias="id")
    name: str
    bio: str | None = None


class TherapistPublic(TherapistSummary):
    profile_picture_url: str | None = None
    user_id: str | None = None


class TherapistCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    bio: str | None = None
    profile_picture_url: str | None = None
    user_id: str | None = None


class TherapistUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    bio: str | None = None
    profile_picture_url: str | None = None
    user_id: str | None = None
