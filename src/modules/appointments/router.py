"""Appointments API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import get_optional_user, require_admin
from src.modules.appointments.schemas import (
    AppointmentCreate,
    AppointmentPublic,
    AppointmentUpdate,
    RescheduleRequest,
)
from src.modules.appointments.service import AppointmentService
from src.modules.notifications.dispatcher import NotificationQueue, get_notifier
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])


def get_service(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationQueue = Depends(get_notifier),
) -> AppointmentService:
    return AppointmentService(db, notifier)


@router.get("", response_model=list[AppointmentPublic])
async def list_appointments(
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentPublic]:
    return await service.list_all()


@router.get("/customer/{email}", response_model=list[AppointmentPublic])
async def customer_appointments(
    email: str,
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentPublic]:
    return await service.list_for_customer_email(email)


@router.get("/customer/{email}/upcoming", response_model=list[AppointmentPublic])
async def customer_upcoming_appointments(
    email: str,
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentPublic]:
    return await service.list_for_customer_email(email, scope="upcoming")


@router.get("/customer/{email}/past", response_model=list[AppointmentPublic])
async def customer_past_appointments(
    email: str,
    service: AppointmentService = Depends(get_service),
) -> list[AppointmentPublic]:
    return await service.list_for_customer_email(email, scope="past")


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.get(appointment_id)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    current_user: User | None = Depends(get_optional_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.create(payload, booked_by=current_user)


@router.put("/{appointment_id}", response_model=AppointmentPublic)
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate,
    _: User = Depends(require_admin),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.update(appointment_id, payload)


@router.put("/{appointment_id}/reschedule", response_model=AppointmentPublic)
async def reschedule_appointment(
    appointment_id: str,
    payload: RescheduleRequest,
    service: AppointmentService = Depends(get_service),
) -> AppointmentPublic:
    return await service.reschedule(
        appointment_id,
        payload.new_availability_slot_id,
        payload.new_therapist_id,
    )


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_service),
) -> None:
    await service.delete(appointment_id)
