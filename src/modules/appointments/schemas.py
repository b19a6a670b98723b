"""Appointments schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field

from src.modules.catalog.schemas import ServicePublic, TherapistSummary
from src.modules.customers.schemas import CustomerPublic
from src.modules.schedule.schemas import AvailabilitySlotPublic
from src.shared.datetimes import to_local
from src.shared.schemas import UtcDatetime


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str = Field(serialization_alias="id")
    service_id: str
    therapist_id: str
    availability_slot_id: str
    customer_id: str
    booked_by_user_id: str | None = None
    created_at: UtcDatetime
    service: ServicePublic
    therapist: TherapistSummary
    customer: CustomerPublic
    availability_slot: AvailabilitySlotPublic

    @computed_field
    @property
    def created_at_local(self) -> datetime:
        return to_local(self.created_at)


class AppointmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    service_id: str = Field(validation_alias=AliasChoices("service_id", "serviceId"))
    therapist_id: str = Field(validation_alias=AliasChoices("therapist_id", "therapistId"))
    availability_slot_id: str = Field(
        validation_alias=AliasChoices("availability_slot_id", "availabilitySlotId"),
    )
    customer_id: str = Field(validation_alias=AliasChoices("customer_id", "customerId"))


class AppointmentUpdate(AppointmentCreate):
    appointment_id: str = Field(validation_alias=AliasChoices("id", "appointment_id"))


class RescheduleRequest(BaseModel):
    new_availability_slot_id: str = Field(
        validation_alias=AliasChoices("new_availability_slot_id", "newAvailabilitySlotId"),
    )
    new_therapist_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("new_therapist_id", "newTherapistId"),
    )
