"""Customer schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class CustomerPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: str = Field(serialization_alias="id")
    name: str
    surname: str
    phone: str | None = None
    email: str


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field("", max_length=100)
    phone: str | None = Field(None, max_length=32)
    email: EmailStr


class CustomerUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    surname: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=32)
    email: EmailStr | None = None
