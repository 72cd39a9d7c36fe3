import pytest
from sqlalchemy import select

from app.configs.settings import settings
from app.cores.security import verify_password
from app.models.users.user import User
from app.scripts.databases.create_user_admin import create_admin_user


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_admin_seed_is_idempotent(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "Admin-Pass-1")

    await create_admin_user(session_factory)
    await create_admin_user(session_factory)

    async with session_factory() as db:
        admins = (await db.execute(select(User).where(User.email == settings.ADMIN_EMAIL))).scalars().all()
    assert len(admins) == 1
    admin = admins[0]
    assert admin.is_admin and admin.is_verified and admin.is_approved
    assert verify_password("Admin-Pass-1", admin.password_hash)


@pytest.mark.asyncio
async def test_admin_seed_skipped_without_password(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "")

    await create_admin_user(session_factory)

    async with session_factory() as db:
        assert (await db.execute(select(User))).scalars().all() == []
