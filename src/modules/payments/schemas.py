"""Payment simulation schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class PaymentRequest(BaseModel):
    payment_method: str = Field(..., min_length=1)
    amount: Decimal = Field(Decimal("0"), ge=0)
    card_number: str | None = None
    card_holder: str | None = None
    expiry: str | None = None
    cvv: str | None = None


class PaymentResponse(BaseModel):
    success: bool
    transaction_id: str
    message: str
