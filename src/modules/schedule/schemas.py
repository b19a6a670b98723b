"""Schedule schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.shared.schemas import UtcDatetime


class AvailabilitySlotPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot_id: str = Field(serialization_alias="id")
    therapist_id: str
    start_time: UtcDatetime
    end_time: UtcDatetime
    is_booked: bool


class AvailabilitySlotCreate(BaseModel):
    therapist_id: str
    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def validate_window(self) -> "AvailabilitySlotCreate":
        if self.start_time.tzinfo is None or self.end_time.tzinfo is None:
            raise ValueError("start_time and end_time must be timezone-aware")
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilitySlotUpdate(BaseModel):
    start_time: datetime | None = None
    end_time: datetime | None = None
    is_booked: bool | None = None

    @model_validator(mode="after")
    def validate_window(self) -> "AvailabilitySlotUpdate":
        for value in (self.start_time, self.end_time):
            if value is not None and value.tzinfo is None:
                raise ValueError("Datetimes must be timezone-aware")
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self
