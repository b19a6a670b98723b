"""Catalog write routes (admin, plus therapists editing their own profile)."""

from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.database import get_db
from src.core.deps import require_admin, require_staff
from src.core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError
from src.core.storage import LocalFileStorage, get_storage
from src.modules.appointments.models import Appointment
from src.modules.catalog.models import Service, Therapist
from src.modules.catalog.schemas import (
    ServiceCreate,
    ServicePublic,
    ServiceUpdate,
    TherapistCreate,
    TherapistPublic,
    TherapistUpdate,
)
from src.modules.users.models import User
from src.shared.enums import UserRole

services_router = APIRouter(prefix="/api/v1/services", tags=["services"])
therapists_router = APIRouter(prefix="/api/v1/therapists", tags=["therapists"])

ALLOWED_PICTURE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


async def _get_entity(db: AsyncSession, model, column, value, not_found: str):
    stmt = select(model).where(column == value)
    result = await db.execute(stmt)
    entity = result.scalar_one_or_none()
    if entity is None:
        raise NotFoundError(not_found)
    return entity


async def _ensure_unreferenced(db: AsyncSession, column, value, message: str) -> None:
    result = await db.execute(select(Appointment.appointment_id).where(column == value).limit(1))
    if result.scalar_one_or_none() is not None:
        raise ConflictError(message)


async def _validate_therapist_user(db: AsyncSession, user_id: str | None) -> None:
    if user_id is None:
        return
    user = await db.get(User, user_id)
    if user is None:
        raise ValidationError("Linked user not found")
    if user.role != UserRole.THERAPIST:
        raise ValidationError("Linked user must have the therapist role")


def _ensure_own_profile(therapist: Therapist, actor: User) -> None:
    if actor.role == UserRole.THERAPIST and therapist.user_id != actor.user_id:
        raise BusinessLogicError("Therapists can only edit their own profile", status_code=status.HTTP_403_FORBIDDEN)


@services_router.post("", response_model=ServicePublic, status_code=status.HTTP_201_CREATED)
async def create_service(
    payload: ServiceCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ServicePublic:
    service = Service(**payload.model_dump())
    db.add(service)
    await db.commit()
    await db.refresh(service)
    return service


@services_router.put("/{service_id}", response_model=ServicePublic)
async def update_service(
    service_id: str,
    payload: ServiceUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ServicePublic:
    service = await _get_entity(db, Service, Service.service_id, service_id, "Service not found")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    await db.commit()
    await db.refresh(service)
    return service


@services_router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: str,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    service = await _get_entity(db, Service, Service.service_id, service_id, "Service not found")
    await _ensure_unreferenced(db, Appointment.service_id, service_id, "Service has appointments")
    await db.delete(service)
    await db.commit()


@therapists_router.post("", response_model=TherapistPublic, status_code=status.HTTP_201_CREATED)
async def create_therapist(
    payload: TherapistCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> TherapistPublic:
    await _validate_therapist_user(db, payload.user_id)
    therapist = Therapist(**payload.model_dump())
    db.add(therapist)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("User already has a therapist profile")
    await db.refresh(therapist)
    return therapist


@therapists_router.put("/{therapist_id}", response_model=TherapistPublic)
async def update_therapist(
    therapist_id: str,
    payload: TherapistUpdate,
    current_user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> TherapistPublic:
    therapist = await _get_entity(db, Therapist, Therapist.therapist_id, therapist_id, "Therapist not found")
    _ensure_own_profile(therapist, current_user)
    update_data = payload.model_dump(exclude_unset=True)
    if "user_id" in update_data:
        if current_user.role != UserRole.ADMIN:
            raise BusinessLogicError("Only admins can relink accounts", status_code=status.HTTP_403_FORBIDDEN)
        await _validate_therapist_user(db, update_data["user_id"])
    for field, value in update_data.items():
        setattr(therapist, field, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("User already has a therapist profile")
    await db.refresh(therapist)
    return therapist


@therapists_router.delete("/{therapist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_therapist(
    therapist_id: str,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    therapist = await _get_entity(db, Therapist, Therapist.therapist_id, therapist_id, "Therapist not found")
    await _ensure_unreferenced(db, Appointment.therapist_id, therapist_id, "Therapist has appointments")
    await db.delete(therapist)
    await db.commit()


@therapists_router.post("/{therapist_id}/upload-picture", response_model=TherapistPublic)
async def upload_therapist_picture(
    therapist_id: str,
    file: UploadFile = File(...),
    current_user: User = Depends(require_staff),
    storage: LocalFileStorage = Depends(get_storage),
    db: AsyncSession = Depends(get_db),
) -> TherapistPublic:
    therapist = await _get_entity(db, Therapist, Therapist.therapist_id, therapist_id, "Therapist not found")
    _ensure_own_profile(therapist, current_user)

    extension = Path(file.filename or "").suffix.lower()
    if extension not in ALLOWED_PICTURE_EXTENSIONS:
        raise ValidationError("Only jpg, jpeg, png, gif and webp images are allowed")
    content = await file.read()
    if not content:
        raise ValidationError("Uploaded file is empty")
    if len(content) > settings.max_upload_bytes:
        raise ValidationError("Uploaded file is too large")

    therapist.profile_picture_url = await storage.save(
        content,
        f"{therapist_id}{extension}",
        folder="therapists",
        replaces=therapist.profile_picture_url,
    )
    await db.commit()
    await db.refresh(therapist)
    return therapist
