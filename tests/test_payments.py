import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import create_app
from src.core.exceptions import ValidationError
from src.modules.payments.schemas import PaymentRequest
from src.modules.payments.service import simulate_payment

VALID_CARD = {
    "payment_method": "card",
    "amount": "250.00",
    "card_number": "4111 1111 1111 1111",
    "card_holder": "Zeynep Kaya",
    "expiry": "12/29",
    "cvv": "123",
}


@pytest.mark.asyncio
async def test_card_payment_is_approved():
    result = await simulate_payment(PaymentRequest(**VALID_CARD))
    assert result.success is True
    assert len(result.transaction_id) == 32


@pytest.mark.asyncio
async def test_card_ending_in_zeros_is_declined():
    result = await simulate_payment(PaymentRequest(**{**VALID_CARD, "card_number": "4111 1111 1111 0000"}))
    assert result.success is False
    assert result.transaction_id


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "override",
    [
        {"card_number": "4111 1111"},
        {"cvv": "12"},
        {"card_holder": "  "},
        {"expiry": None},
    ],
)
async def test_card_details_are_validated(override):
    with pytest.raises(ValidationError):
        await simulate_payment(PaymentRequest(**{**VALID_CARD, **override}))


@pytest.mark.asyncio
async def test_cash_is_always_approved_and_method_is_case_insensitive():
    result = await simulate_payment(PaymentRequest(payment_method="CASH", amount="100"))
    assert result.success is True

    first = await simulate_payment(PaymentRequest(payment_method="Cash"))
    assert first.transaction_id != result.transaction_id


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.mark.asyncio
async def test_simulate_endpoint(client):
    ok = await client.post("/api/v1/payments/simulate", json=VALID_CARD)
    assert ok.status_code == 200
    assert ok.json()["success"] is True

    unknown = await client.post("/api/v1/payments/simulate", json={"payment_method": "crypto"})
    assert unknown.status_code == 400
    assert unknown.json() == {"success": False, "message": "Unsupported payment method"}
