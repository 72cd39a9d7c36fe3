import asyncio
import time

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.apis import projects_api
from app.configs.settings import settings
from app.cores.file_validator import ValidatedFile
from app.models.common.login_otp import LoginOtp
from app.models.projects.project import Project
from app.models.users.user import User
from app.schemas.projects.project_schema import ProjectCreateRequest, ProjectUpdateRequest
from app.schemas.user.profile_schema import ProfileCreateRequest, ProfileUpdateRequest
from app.services.auths.register_service import register_user
from app.services.externals import email_service, media_service
from app.services.projects.project_service import create_project, update_project
from app.services.user.profile_service import create_profile, update_profile
from app.services.validation.exception import EmailDeliveryFailed, Unavailable
from tests.conftest import create_user, login_as

EMAIL = "a@x.com"
PASSWORD = "pw123456"

PNG = ("me.png", b"\x89PNG\r\n\x1a\nfake-image", "image/png")
MP4 = ("demo.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")


class SlowMail:
    def __init__(self, conf):
        pass

    async def send_message(self, message, template_name=None):
        await asyncio.sleep(5)


class BrokenMail:
    def __init__(self, conf):
        pass

    async def send_message(self, message, template_name=None):
        raise RuntimeError("smtp refused")


@pytest.fixture
def slow_mail(monkeypatch):
    monkeypatch.setattr(settings, "MAIL_TIMEOUT_SECONDS", 0.05)
    monkeypatch.setattr(email_service, "FastMail", SlowMail)

# ==================== EMAIL ====================

@pytest.mark.asyncio
async def test_sign_up_email_timeout_is_unavailable(client, session_factory, slow_mail):
    response = await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})

    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "message": "Email service timed out. Please try again later.",
    }
    async with session_factory() as db:
        assert await db.scalar(select(func.count(User.id)).where(User.email == EMAIL)) == 1


@pytest.mark.asyncio
async def test_login_email_timeout_is_unavailable(client, session_factory, slow_mail):
    await create_user(session_factory, EMAIL, PASSWORD)

    response = await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})

    assert response.status_code == 503
    assert response.json()["message"] == "Email service timed out. Please try again later."
    async with session_factory() as db:
        assert await db.scalar(select(func.count(LoginOtp.id))) == 1


@pytest.mark.asyncio
async def test_send_templated_email_timeout_raises_unavailable(slow_mail):
    with pytest.raises(Unavailable):
        await email_service.send_templated_email(email_service.OTP_TEMPLATE, {"otp": "123456"}, to=EMAIL, subject="Code")


@pytest.mark.asyncio
async def test_sign_up_email_failure_keeps_original_cause(session_factory, monkeypatch):
    monkeypatch.setattr(email_service, "FastMail", BrokenMail)

    async with session_factory() as db:
        with pytest.raises(EmailDeliveryFailed) as exc_info:
            await register_user(db, EMAIL, PASSWORD)

    assert exc_info.value.detail == "Failed to send verification email"
    assert isinstance(exc_info.value.__cause__, EmailDeliveryFailed)
    assert isinstance(exc_info.value.__cause__.__cause__, RuntimeError)

# ==================== MEDIA ====================

@pytest.mark.asyncio
async def test_media_timeout_is_unavailable_and_cleans_up(client, session_factory, outbox, media_store, monkeypatch):
    await create_user(session_factory, EMAIL, PASSWORD)
    await login_as(client, outbox, EMAIL, PASSWORD)
    created = await client.post(
        "/profile",
        data={"name": "Jane Dev", "gmail": "jane.dev@gmail.com", "about": "Backend developer building APIs."},
        files={"profilePicture": PNG},
    )
    assert created.status_code == 201
    profile_keys = set(media_store)

    def stalled_put(object_name, data, content_type):
        if content_type.startswith("video/"):
            time.sleep(0.5)
            return
        media_store[object_name] = data

    monkeypatch.setattr(settings, "MEDIA_TIMEOUT_SECONDS", 0.05)
    monkeypatch.setattr(media_service, "_put_object", stalled_put)

    response = await client.post(
        "/projects",
        data={"name": "Slow", "description": "Slow upload"},
        files={"image": PNG, "video": MP4},
    )

    assert response.status_code == 503
    assert response.json()["message"] == "Media service timed out. Please try again later."
    assert set(media_store) == profile_keys
    async with session_factory() as db:
        assert await db.scalar(select(func.count(Project.id))) == 0

# ==================== DATABASE ====================

@pytest.mark.asyncio
async def test_pool_timeout_is_unavailable(client, monkeypatch):
    async def exhausted_pool(db):
        raise PoolTimeoutError("QueuePool limit of size 5 overflow 0 reached")

    monkeypatch.setattr(projects_api, "list_projects", exhausted_pool)

    response = await client.get("/projects")

    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "message": "Service temporarily unavailable. Please try again later.",
    }

# ==================== CONEXIONES DURANTE SUBIDAS ====================

def _track_transaction_during_uploads(monkeypatch, db):
    seen = []
    original = media_service.upload_buffer

    async def tracking_upload(*args, **kwargs):
        seen.append(db.in_transaction())
        return await original(*args, **kwargs)

    monkeypatch.setattr(media_service, "upload_buffer", tracking_upload)
    return seen


@pytest.mark.asyncio
async def test_uploads_run_outside_database_transaction(session_factory, media_store, monkeypatch):
    user = await create_user(session_factory, EMAIL, PASSWORD)
    image = ValidatedFile(content=b"img", content_type="image/png", filename="me.png")
    resume = ValidatedFile(content=b"%PDF-1.4", content_type="application/pdf", filename="cv.pdf")

    async with session_factory() as db:
        seen = _track_transaction_during_uploads(monkeypatch, db)

        await create_profile(
            db,
            user.id,
            ProfileCreateRequest(name="Jane", gmail="jane.dev@gmail.com", about="Backend developer."),
            picture=image,
            resume=resume,
        )
        await update_profile(db, user.id, ProfileUpdateRequest(name="Jane D."), picture=image)
        project = await create_project(
            db,
            user.id,
            ProjectCreateRequest(name="Site", description="Portfolio site"),
            image=image,
        )
        await update_project(db, user.id, str(project.id), ProjectUpdateRequest(), image=image)

    assert seen == [False, False, False, False, False]
