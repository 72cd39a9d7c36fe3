import os

# la configuración se lee al importar la app
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-portfolio-sessions")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("MAIL_SUPPRESS_SEND", "true")
os.environ.setdefault("MAIL_FROM", "noreply@portfolio.dev")
os.environ.setdefault("ADMIN_EMAIL", "owner@portfolio.dev")
os.environ.setdefault("APP_URL", "http://test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import ASGITransport, AsyncClient

from app.apis.deps import get_db
from app.cores.security import get_password_hash
from app.main import app
from app.models.users.user import User
from app.services.externals import email_service, media_service
from app.services.validation.exception import EmailDeliveryFailed
from tests.test_db import create_test_engine, init_test_db, make_session_factory


@dataclass
class SentEmail:
    template: str
    data: Dict[str, Any]
    to: str
    subject: str


@dataclass
class Outbox:
    messages: List[SentEmail] = field(default_factory=list)
    fail_templates: set = field(default_factory=set)

    def last_for(self, to: str, template: str) -> SentEmail:
        for message in reversed(self.messages):
            if message.to == to and message.template == template:
                return message
        raise AssertionError(f"No '{template}' email sent to {to}")

    def verification_token(self, to: str) -> str:
        url = self.last_for(to, email_service.VERIFICATION_TEMPLATE).data["verify_url"]
        return parse_qs(urlparse(url).query)["token"][0]

    def otp(self, to: str) -> str:
        return self.last_for(to, email_service.OTP_TEMPLATE).data["otp"]


@pytest.fixture
async def session_factory():
    engine = create_test_engine()
    await init_test_db(engine)
    factory = make_session_factory(engine)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def outbox(monkeypatch) -> Outbox:
    box = Outbox()

    async def fake_send(template, data, to, subject):
        if template in box.fail_templates:
            raise EmailDeliveryFailed()
        box.messages.append(SentEmail(template=template, data=data, to=to, subject=subject))

    monkeypatch.setattr(email_service, "send_templated_email", fake_send)
    return box


@pytest.fixture
def media_store(monkeypatch) -> Dict[str, bytes]:
    """Sustituye las llamadas síncronas a MinIO por un diccionario en memoria."""
    store: Dict[str, bytes] = {}

    def fake_put(object_name, data, content_type):
        store[object_name] = data

    def fake_remove(object_name):
        store.pop(object_name, None)

    monkeypatch.setattr(media_service, "_put_object", fake_put)
    monkeypatch.setattr(media_service, "_remove_object", fake_remove)
    return store


async def create_user(
    session_factory,
    email: str,
    password: str = "Password123!",
    verified: bool = True,
    approved: bool = True,
    admin: bool = False,
) -> User:
    async with session_factory() as db:
        user = User(
            email=email,
            password_hash=get_password_hash(password),
            is_verified=verified,
            is_approved=approved,
            is_admin=admin,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user


async def login_as(client: AsyncClient, outbox: Outbox, email: str, password: str = "Password123!"):
    response = await client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    response = await client.post("/auth/verify-otp", json={"email": email, "otp": outbox.otp(email)})
    assert response.status_code == 200, response.text
    return response


def is_six_digits(code: str) -> bool:
    return re.fullmatch(r"[1-9]\d{5}", code) is not None
