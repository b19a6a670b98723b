"""Availability slot routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_staff
from src.modules.schedule.schemas import (
    AvailabilitySlotCreate,
    AvailabilitySlotPublic,
    AvailabilitySlotUpdate,
)
from src.modules.schedule.service import AvailabilityService
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/availability", tags=["availability"])


def get_service(db: AsyncSession = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


@router.get("", response_model=list[AvailabilitySlotPublic])
async def list_slots(
    therapist_id: str | None = Query(None),
    available: bool | None = Query(None),
    service: AvailabilityService = Depends(get_service),
) -> list[AvailabilitySlotPublic]:
    return await service.list_slots(therapist_id=therapist_id, available=available)


@router.get("/{slot_id}", response_model=AvailabilitySlotPublic)
async def get_slot(
    slot_id: str,
    service: AvailabilityService = Depends(get_service),
) -> AvailabilitySlotPublic:
    return await service.get(slot_id)


@router.post("", response_model=AvailabilitySlotPublic, status_code=status.HTTP_201_CREATED)
async def create_slot(
    payload: AvailabilitySlotCreate,
    current_user: User = Depends(require_staff),
    service: AvailabilityService = Depends(get_service),
) -> AvailabilitySlotPublic:
    return await service.create(payload, current_user)


@router.put("/{slot_id}", response_model=AvailabilitySlotPublic)
async def update_slot(
    slot_id: str,
    payload: AvailabilitySlotUpdate,
    current_user: User = Depends(require_staff),
    service: AvailabilityService = Depends(get_service),
) -> AvailabilitySlotPublic:
    return await service.update(slot_id, payload, current_user)


@router.delete("/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_slot(
    slot_id: str,
    current_user: User = Depends(require_staff),
    service: AvailabilityService = Depends(get_service),
) -> None:
    await service.delete(slot_id, current_user)
