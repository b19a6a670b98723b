"""Payment simulation route."""

from fastapi import APIRouter

from src.modules.payments.schemas import PaymentRequest, PaymentResponse
from src.modules.payments.service import simulate_payment

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("/simulate", response_model=PaymentResponse)
async def simulate(payload: PaymentRequest) -> PaymentResponse:
    return await simulate_payment(payload)
