from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from main import create_app
from src.core.database import get_db
from src.core.exceptions import AuthenticationError, ConflictError, ValidationError
from src.core.security import decode_access_token, hash_password, verify_password
from src.modules.auth.service import AuthService
from src.modules.catalog.models import Therapist
from src.modules.notifications.dispatcher import get_notifier
from src.modules.users.models import User, UserFavoriteTherapist
from src.shared.datetimes import utcnow
from src.shared.enums import UserRole


async def _register(service: AuthService, email: str = "zeynep@example.com", password: str = "secret1"):
    return await service.register("Zeynep", "Kaya", email, "05321234567", password, password)


def test_password_hash_round_trip():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
    assert hash_password("correct horse") != hashed
    assert not verify_password("anything", None)


@pytest.mark.asyncio
async def test_register_issues_token_and_verification_email(db_session, notifier, email_sender):
    service = AuthService(db_session, notifier)

    user, token = await _register(service)

    assert user.role == UserRole.CUSTOMER
    assert user.is_email_verified is False
    assert user.email_verification_token
    assert decode_access_token(token)["sub"] == user.user_id

    await notifier.drain()
    to, subject, html = email_sender.sent[0]
    assert to == "zeynep@example.com"
    assert "Email Verification" in subject
    assert user.email_verification_token in html


@pytest.mark.asyncio
async def test_register_validates_passwords_and_duplicates(db_session, notifier):
    service = AuthService(db_session, notifier)
    with pytest.raises(ValidationError):
        await service.register("A", "", "a@example.com", None, "secret1", "secret2")
    with pytest.raises(ValidationError):
        await service.register("A", "", "a@example.com", None, "short", "short")

    await _register(service)
    with pytest.raises(ConflictError):
        await _register(service)


@pytest.mark.asyncio
async def test_login_is_generic_on_failure(db_session, notifier):
    service = AuthService(db_session, notifier)
    await _register(service)

    with pytest.raises(AuthenticationError) as wrong_password:
        await service.login("zeynep@example.com", "not-it")
    with pytest.raises(AuthenticationError) as unknown_user:
        await service.login("nobody@example.com", "secret1")
    assert wrong_password.value.detail == unknown_user.value.detail

    user, token = await service.login("zeynep@example.com", "secret1")
    assert user.last_login_at is not None
    assert decode_access_token(token)["role"] == "customer"


@pytest.mark.asyncio
async def test_change_password_requires_current_password(db_session, notifier):
    service = AuthService(db_session, notifier)
    user, _ = await _register(service)

    with pytest.raises(AuthenticationError):
        await service.change_password(user.user_id, "wrong", "newsecret", "newsecret")
    with pytest.raises(ValidationError):
        await service.change_password(user.user_id, "secret1", "newsecret", "different")

    await service.change_password(user.user_id, "secret1", "newsecret", "newsecret")
    await service.login("zeynep@example.com", "newsecret")


@pytest.mark.asyncio
async def test_forgot_password_does_not_reveal_accounts(db_session, notifier, email_sender):
    service = AuthService(db_session, notifier)
    await service.forgot_password("nobody@example.com")
    await notifier.drain()
    assert email_sender.sent == []


@pytest.mark.asyncio
async def test_reset_token_is_single_use(db_session, notifier, email_sender):
    service = AuthService(db_session, notifier)
    user, _ = await _register(service)
    await service.forgot_password("zeynep@example.com")
    token = user.password_reset_token
    assert token

    await notifier.drain()
    assert any("Password Reset" in subject and token in html for _, subject, html in email_sender.sent)

    await service.reset_password("zeynep@example.com", token, "brandnew", "brandnew")
    await service.login("zeynep@example.com", "brandnew")

    with pytest.raises(ValidationError):
        await service.reset_password("zeynep@example.com", token, "another1", "another1")


@pytest.mark.asyncio
async def test_expired_reset_token_is_rejected(db_session, notifier):
    service = AuthService(db_session, notifier)
    user, _ = await _register(service)
    await service.forgot_password("zeynep@example.com")
    user.password_reset_token_expiry = utcnow() - timedelta(minutes=1)
    await db_session.commit()

    with pytest.raises(ValidationError):
        await service.reset_password("zeynep@example.com", user.password_reset_token, "brandnew", "brandnew")


@pytest.mark.asyncio
async def test_verify_email_marks_user_verified(db_session, notifier):
    service = AuthService(db_session, notifier)
    user, _ = await _register(service)
    token = user.email_verification_token

    with pytest.raises(ValidationError):
        await service.verify_email("zeynep@example.com", "bogus")

    await service.verify_email("zeynep@example.com", token)
    profile = await service.get_profile(user.user_id)
    assert profile.is_email_verified is True
    assert profile.email_verification_token is None


@pytest.mark.asyncio
async def test_favorites_are_idempotent(db_session, notifier):
    service = AuthService(db_session, notifier)
    user, _ = await _register(service)
    therapist = Therapist(name="Ayşe", bio="Aromatherapy")
    db_session.add(therapist)
    await db_session.commit()

    assert await service.add_favorite(user.user_id, therapist.therapist_id) is True
    assert await service.add_favorite(user.user_id, therapist.therapist_id) is False
    count = await db_session.execute(select(func.count()).select_from(UserFavoriteTherapist))
    assert count.scalar_one() == 1

    favorites = await service.list_favorites(user.user_id)
    assert [t.name for t in favorites] == ["Ayşe"]

    assert await service.remove_favorite(user.user_id, therapist.therapist_id) is True
    assert await service.remove_favorite(user.user_id, therapist.therapist_id) is False
    assert await service.list_favorites(user.user_id) == []


@pytest.mark.asyncio
async def test_only_customers_keep_favorites(db_session, notifier):
    service = AuthService(db_session, notifier)
    user, _ = await _register(service)
    user.role = UserRole.THERAPIST
    await db_session.commit()
    with pytest.raises(ValidationError):
        await service.add_favorite(user.user_id, "01ANYTHERAPIST000000000000")
    with pytest.raises(ValidationError):
        await service.list_favorites(user.user_id)


@pytest_asyncio.fixture
async def client(db_session, notifier):
    app = create_app()

    async def override_db():
        yield db_session

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.mark.asyncio
async def test_register_login_and_profile_over_http(client):
    register = await client.post(
        "/api/v1/auth/register",
        json={
            "name": "Zeynep",
            "surname": "Kaya",
            "email": "zeynep@example.com",
            "password": "secret1",
            "confirm_password": "secret1",
        },
    )
    assert register.status_code == 201
    user_id = register.json()["user"]["id"]

    login = await client.post("/api/v1/auth/login", json={"email": "zeynep@example.com", "password": "secret1"})
    assert login.status_code == 200
    body = login.json()
    assert body["success"] is True
    assert body["user"]["favorite_therapists"] == []
    headers = {"Authorization": f"Bearer {body['token']}"}

    profile = await client.get(f"/api/v1/auth/profile/{user_id}", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["user"]["email"] == "zeynep@example.com"

    updated = await client.put(
        f"/api/v1/auth/profile/{user_id}",
        json={"name": "Zeynep", "surname": "Demir", "phone": "05320000000"},
        headers=headers,
    )
    assert updated.json()["user"]["surname"] == "Demir"

    assert (await client.get(f"/api/v1/auth/profile/{user_id}")).status_code == 401
    assert (await client.get("/api/v1/auth/profile/01SOMEONEELSE0000000000000", headers=headers)).status_code == 403


@pytest.mark.asyncio
async def test_bad_login_and_forgot_password_over_http(client):
    bad = await client.post("/api/v1/auth/login", json={"email": "ghost@example.com", "password": "whatever"})
    assert bad.status_code == 400
    assert bad.json() == {"success": False, "message": "Email or password is incorrect"}

    forgot = await client.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})
    assert forgot.status_code == 200
    assert forgot.json()["success"] is True


@pytest.mark.asyncio
async def test_admin_can_change_roles(client, db_session):
    admin = User(
        name="Admin",
        surname="",
        email="admin@example.com",
        password_hash=hash_password("adminpass"),
        role=UserRole.ADMIN,
    )
    customer = User(
        name="Can",
        surname="",
        email="can@example.com",
        password_hash=hash_password("canpass1"),
        role=UserRole.CUSTOMER,
    )
    db_session.add_all([admin, customer])
    await db_session.commit()

    token = (await client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "adminpass"})).json()[
        "token"
    ]
    headers = {"Authorization": f"Bearer {token}"}

    users = await client.get("/api/v1/admin/users", headers=headers)
    assert {u["email"] for u in users.json()} == {"admin@example.com", "can@example.com"}

    resp = await client.put(
        f"/api/v1/admin/users/{customer.user_id}/role",
        json={"role": "therapist"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "therapist"

    customer_token = (
        await client.post("/api/v1/auth/login", json={"email": "can@example.com", "password": "canpass1"})
    ).json()["token"]
    forbidden = await client.get("/api/v1/admin/users", headers={"Authorization": f"Bearer {customer_token}"})
    assert forbidden.status_code == 403
