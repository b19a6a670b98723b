"""Simulated payment approval; no gateway is contacted."""

import asyncio
import logging
import uuid

from src.core.config import settings
from src.core.exceptions import ValidationError
from src.modules.payments.schemas import PaymentRequest, PaymentResponse
from src.shared.enums import PaymentMethod

logger = logging.getLogger(__name__)

MIN_CARD_DIGITS = 12
DECLINED_SUFFIX = "0000"


def _transaction_id() -> str:
    return uuid.uuid4().hex


def _check_card(payload: PaymentRequest) -> str:
    number = (payload.card_number or "").replace(" ", "")
    if len(number) < MIN_CARD_DIGITS:
        raise ValidationError("Invalid card number")
    if not payload.cvv or len(payload.cvv.strip()) < 3:
        raise ValidationError("Invalid CVV")
    if not (payload.card_holder or "").strip() or not (payload.expiry or "").strip():
        raise ValidationError("Card holder and expiry date are required")
    return number


async def simulate_payment(payload: PaymentRequest) -> PaymentResponse:
    try:
        method = PaymentMethod(payload.payment_method.strip().lower())
    except ValueError:
        raise ValidationError("Unsupported payment method") from None

    if method is PaymentMethod.CARD:
        number = _check_card(payload)
    if settings.payment_simulation_delay_seconds > 0:
        await asyncio.sleep(settings.payment_simulation_delay_seconds)

    if method is PaymentMethod.CARD and number.endswith(DECLINED_SUFFIX):
        logger.info("Simulated card payment of %s declined", payload.amount)
        return PaymentResponse(
            success=False,
            transaction_id=_transaction_id(),
            message="The transaction was declined by your bank",
        )

    logger.info("Simulated %s payment of %s approved", method, payload.amount)
    return PaymentResponse(
        success=True,
        transaction_id=_transaction_id(),
        message="Payment completed successfully" if method is PaymentMethod.CARD else "Cash payment approved",
    )
