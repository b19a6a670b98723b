"""Catalog read-only routes."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.exceptions import NotFoundError
from src.modules.catalog.models import Service, Therapist
from src.modules.catalog.schemas import ServicePublic, TherapistPublic

services_router = APIRouter(prefix="/api/v1/services", tags=["services"])
therapists_router = APIRouter(prefix="/api/v1/therapists", tags=["therapists"])


@services_router.get("", response_model=list[ServicePublic])
async def list_services(db: AsyncSession = Depends(get_db)) -> list[Service]:
    result = await db.execute(select(Service).order_by(Service.name))
    return list(result.scalars().all())


@services_router.get("/{service_id}", response_model=ServicePublic)
async def get_service(service_id: str, db: AsyncSession = Depends(get_db)) -> Service:
    service = await db.get(Service, service_id)
    if service is None:
        raise NotFoundError("Service not found")
    return service


@therapists_router.get("", response_model=list[TherapistPublic])
async def list_therapists(db: AsyncSession = Depends(get_db)) -> list[Therapist]:
    result = await db.execute(select(Therapist).order_by(Therapist.name))
    return list(result.scalars().all())


@therapists_router.get("/{therapist_id}", response_model=TherapistPublic)
async def get_therapist(therapist_id: str, db: AsyncSession = Depends(get_db)) -> Therapist:
    therapist = await db.get(Therapist, therapist_id)
    if therapist is None:
        raise NotFoundError("Therapist not found")
    return therapist
