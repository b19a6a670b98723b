"""Customer routes.

Anyone may create a customer record (the booking flow does this for guests);
reading and managing the full list is admin only.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_admin
from src.core.exceptions import ConflictError, NotFoundError
from src.modules.appointments.models import Appointment
from src.modules.customers.models import Customer
from src.modules.customers.schemas import CustomerCreate, CustomerPublic, CustomerUpdate
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/customers", tags=["customers"])


async def _get_customer(customer_id: str, db: AsyncSession) -> Customer:
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


@router.get("", response_model=list[CustomerPublic])
async def list_customers(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[Customer]:
    result = await db.execute(select(Customer).order_by(Customer.created_at.desc()))
    return list(result.scalars().all())


@router.get("/{customer_id}", response_model=CustomerPublic)
async def get_customer(
    customer_id: str,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Customer:
    return await _get_customer(customer_id, db)


@router.post("", response_model=CustomerPublic, status_code=status.HTTP_201_CREATED)
async def create_customer(payload: CustomerCreate, db: AsyncSession = Depends(get_db)) -> Customer:
    customer = Customer(**payload.model_dump())
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    return customer


@router.put("/{customer_id}", response_model=CustomerPublic)
async def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Customer:
    customer = await _get_customer(customer_id, db)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    await db.commit()
    await db.refresh(customer)
    return customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: str,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    customer = await _get_customer(customer_id, db)
    result = await db.execute(
        select(Appointment.appointment_id).where(Appointment.customer_id == customer_id).limit(1)
    )
    if result.scalar_one_or_none() is not None:
        raise ConflictError("Customer has appointments")
    await db.delete(customer)
    await db.commit()
