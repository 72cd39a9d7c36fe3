from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from app.cores.token import SESSION_COOKIE_NAME, issue_session_token
from app.models.common.login_otp import LoginOtp
from app.models.notifications.admin_notification import AdminNotification
from app.models.users.user import User
from app.services.externals import email_service
from tests.conftest import create_user, login_as

EMAIL = "a@x.com"
PASSWORD = "pw123456"


async def _get_user(session_factory, email: str) -> User:
    async with session_factory() as db:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one()


async def _approve(session_factory, email: str) -> None:
    async with session_factory() as db:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one()
        user.is_approved = True
        await db.commit()


# ==================== SIGN-UP ====================

@pytest.mark.asyncio
async def test_sign_up_creates_unverified_unapproved_account(client, session_factory, outbox):
    response = await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Sign-up successful"
    assert data["user"]["email"] == EMAIL

    user = await _get_user(session_factory, EMAIL)
    assert user.is_verified is False
    assert user.is_approved is False
    assert user.is_admin is False

    token = outbox.verification_token(EMAIL)
    assert user.verification_token_hash != token
    assert user.verification_token_hash is not None

    admin_mail = outbox.last_for("owner@portfolio.dev", email_service.ADMIN_NEW_USER_TEMPLATE)
    assert admin_mail.subject == f"New signup: {EMAIL}"

    async with session_factory() as db:
        notification = (await db.execute(select(AdminNotification))).scalar_one()
    assert notification.type == "signup"
    assert notification.payload == {"email": EMAIL}
    assert notification.read is False


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"email": EMAIL}, {"password": PASSWORD}, {"email": "", "password": PASSWORD}])
async def test_sign_up_requires_email_and_password(client, outbox, payload):
    response = await client.post("/auth/sign-up", json=payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Email and password required"


@pytest.mark.asyncio
async def test_sign_up_duplicate_email_conflicts(client, session_factory, outbox):
    first = await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    second = await client.post("/auth/sign-up", json={"email": EMAIL, "password": "other-password"})

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["message"] == "User already exists"

    async with session_factory() as db:
        count = await db.scalar(select(func.count(User.id)).where(User.email == EMAIL))
    assert count == 1


@pytest.mark.asyncio
async def test_sign_up_email_lookup_is_case_sensitive(client, outbox):
    await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    response = await client.post("/auth/sign-up", json={"email": EMAIL.upper(), "password": PASSWORD})
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_sign_up_email_failure_keeps_account(client, session_factory, outbox):
    outbox.fail_templates.add(email_service.VERIFICATION_TEMPLATE)

    response = await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to send verification email"
    user = await _get_user(session_factory, EMAIL)
    assert user.is_verified is False


@pytest.mark.asyncio
async def test_sign_up_admin_email_failure_is_not_fatal(client, outbox):
    outbox.fail_templates.add(email_service.ADMIN_NEW_USER_TEMPLATE)

    response = await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 201

# ==================== VERIFY EMAIL ====================

@pytest.mark.asyncio
async def test_verify_email_is_single_use(client, session_factory, outbox):
    await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    token = outbox.verification_token(EMAIL)

    first = await client.get("/auth/verify-email", params={"token": token, "email": EMAIL})
    second = await client.get("/auth/verify-email", params={"token": token, "email": EMAIL})

    assert first.status_code == 200
    assert first.text == "Email verified. Wait for admin approval to be able to login."
    assert second.status_code == 400
    assert second.text == "Invalid or expired verification link"

    user = await _get_user(session_factory, EMAIL)
    assert user.is_verified is True
    assert user.verification_token_hash is None
    assert user.verification_token_expires_at is None


@pytest.mark.asyncio
async def test_verify_email_missing_params(client):
    response = await client.get("/auth/verify-email", params={"email": EMAIL})
    assert response.status_code == 400
    assert response.text == "Invalid verification link"


@pytest.mark.asyncio
async def test_verify_email_wrong_token(client, outbox):
    await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    response = await client.get("/auth/verify-email", params={"token": "f" * 64, "email": EMAIL})
    assert response.status_code == 400
    assert response.text == "Invalid or expired verification link"


@pytest.mark.asyncio
async def test_verify_email_expired_link(client, session_factory, outbox):
    await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    token = outbox.verification_token(EMAIL)

    async with session_factory() as db:
        user = (await db.execute(select(User).where(User.email == EMAIL))).scalar_one()
        user.verification_token_expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        await db.commit()

    response = await client.get("/auth/verify-email", params={"token": token, "email": EMAIL})
    assert response.status_code == 400
    assert response.text == "Verification link expired. Please request a new one."
    assert (await _get_user(session_factory, EMAIL)).is_verified is False

# ==================== LOGIN ====================

@pytest.mark.asyncio
async def test_login_unverified_account_never_issues_otp(client, session_factory, outbox):
    await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})

    response = await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})

    assert response.status_code == 403
    assert response.json()["message"] == "Email not verified. Please verify your email before logging in."
    async with session_factory() as db:
        assert await db.scalar(select(func.count(LoginOtp.id))) == 0


@pytest.mark.asyncio
async def test_login_verified_but_unapproved_is_pending(client, session_factory, outbox):
    await create_user(session_factory, EMAIL, PASSWORD, verified=True, approved=False)

    response = await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})

    assert response.status_code == 403
    assert response.json()["message"] == "Admin approval pending. Please wait for approval before logging in."
    async with session_factory() as db:
        assert await db.scalar(select(func.count(LoginOtp.id))) == 0


@pytest.mark.asyncio
async def test_login_invalid_credentials_are_uniform(client, session_factory, outbox):
    await create_user(session_factory, EMAIL, PASSWORD)

    wrong_password = await client.post("/auth/login", json={"email": EMAIL, "password": "nope"})
    unknown_user = await client.post("/auth/login", json={"email": "ghost@x.com", "password": PASSWORD})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json()["message"] == unknown_user.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_requires_email_and_password(client):
    response = await client.post("/auth/login", json={"email": EMAIL})
    assert response.status_code == 400
    assert response.json()["message"] == "Email and password required"


@pytest.mark.asyncio
async def test_login_otp_email_failure_keeps_otp(client, session_factory, outbox):
    await create_user(session_factory, EMAIL, PASSWORD)
    outbox.fail_templates.add(email_service.OTP_TEMPLATE)

    response = await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})

    assert response.status_code == 500
    assert response.json()["message"] == "Failed to send OTP email"
    async with session_factory() as db:
        assert await db.scalar(select(func.count(LoginOtp.id))) == 1

# ==================== VERIFY OTP / SESSION ====================

@pytest.mark.asyncio
async def test_verify_otp_sets_session_cookie_only(client, session_factory, outbox):
    await create_user(session_factory, EMAIL, PASSWORD)
    await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})

    response = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": outbox.otp(EMAIL)})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logged in"}
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=")
    assert "HttpOnly" in set_cookie
    assert "samesite=strict" in set_cookie.lower()
    assert "Max-Age=86400" in set_cookie
    assert "Secure" not in set_cookie


@pytest.mark.asyncio
async def test_successful_otp_deletes_records_and_cannot_be_reused(client, session_factory, outbox):
    await create_user(session_factory, EMAIL, PASSWORD)
    await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})
    code = outbox.otp(EMAIL)

    first = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": code})
    second = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": code})

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.json()["message"] == "No OTP found. Please request a new OTP."
    async with session_factory() as db:
        assert await db.scalar(select(func.count(LoginOtp.id)).where(LoginOtp.email == EMAIL)) == 0


@pytest.mark.asyncio
async def test_verify_otp_requires_fields(client):
    response = await client.post("/auth/verify-otp", json={"email": EMAIL})
    assert response.status_code == 400
    assert response.json()["message"] == "Email and OTP are required"


@pytest.mark.asyncio
async def test_me_returns_fresh_account_flags(client, session_factory, outbox):
    user = await create_user(session_factory, EMAIL, PASSWORD)
    await login_as(client, outbox, EMAIL, PASSWORD)

    response = await client.get("/auth/me")

    assert response.status_code == 200
    assert response.json()["user"] == {
        "id": user.id,
        "email": EMAIL,
        "is_admin": False,
        "is_verified": True,
        "is_approved": True,
    }


@pytest.mark.asyncio
async def test_me_without_cookie(client):
    response = await client.get("/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "Not authenticated"


@pytest.mark.asyncio
async def test_me_with_expired_token(client, session_factory):
    user = await create_user(session_factory, EMAIL, PASSWORD)
    issued = datetime.now(timezone.utc) - timedelta(hours=24, seconds=1)
    client.cookies.set(SESSION_COOKIE_NAME, issue_session_token(user.id, user.email, False, now=issued))

    response = await client.get("/auth/me")

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_me_for_deleted_account(client, session_factory):
    client.cookies.set(SESSION_COOKIE_NAME, issue_session_token(999, "gone@x.com", False))
    response = await client.get("/auth/me")
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_logout_clears_cookie(client, session_factory, outbox):
    await create_user(session_factory, EMAIL, PASSWORD)
    await login_as(client, outbox, EMAIL, PASSWORD)

    response = await client.post("/auth/logout")

    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"
    assert f'{SESSION_COOKIE_NAME}=""' in response.headers["set-cookie"]
    assert (await client.get("/auth/me")).status_code == 401


@pytest.mark.asyncio
async def test_logout_without_session_still_succeeds(client):
    response = await client.post("/auth/logout")
    assert response.status_code == 200

# ==================== ESCENARIO COMPLETO ====================

@pytest.mark.asyncio
async def test_full_signup_to_login_scenario(client, session_factory, outbox):
    response = await client.post("/auth/sign-up", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 201

    response = await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 403
    assert "not verified" in response.json()["message"]

    token = outbox.verification_token(EMAIL)
    response = await client.get("/auth/verify-email", params={"token": token, "email": EMAIL})
    assert response.status_code == 200

    await _approve(session_factory, EMAIL)

    response = await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["message"] == "OTP sent to your email"

    code = outbox.otp(EMAIL)
    wrong = "100000" if code != "100000" else "100001"
    statuses = []
    for _ in range(5):
        response = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": wrong})
        statuses.append(response.status_code)
    assert statuses == [401, 401, 401, 401, 429]
    assert response.json()["message"] == "Too many attempts. Request new OTP."

    response = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": code})
    assert response.status_code == 429

    response = await client.post("/auth/login", json={"email": EMAIL, "password": PASSWORD})
    assert response.status_code == 200
    async with session_factory() as db:
        latest = (
            await db.execute(
                select(LoginOtp).where(LoginOtp.email == EMAIL).order_by(LoginOtp.created_at.desc(), LoginOtp.id.desc())
            )
        ).scalars().first()
    assert latest.attempts == 0

    response = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": outbox.otp(EMAIL)})
    assert response.status_code == 200
    assert (await client.get("/auth/me")).json()["user"]["email"] == EMAIL
