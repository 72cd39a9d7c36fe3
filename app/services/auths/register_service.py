import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.configs.settings import settings
from app.cores.security import generate_opaque_secret, get_password_hash, hash_secret
from app.models.notifications.admin_notification import AdminNotification
from app.models.users.user import User
from app.services.externals import email_service
from app.services.utils.non_fatal import NonFatal, run_best_effort
from app.services.validation.exception import (
    AlreadyVerified,
    BadRequest,
    Conflict,
    EmailDeliveryFailed,
    InvalidOrExpiredLink,
    NotFound,
)

logger = logging.getLogger(__name__)

SIGNUP_NOTIFICATION = "signup"


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _new_verification_token(now: datetime):
    """Devuelve (token en claro, hash, expiración). Solo el hash se persiste."""
    token = generate_opaque_secret()
    return token, hash_secret(token), now + timedelta(minutes=settings.OTP_TTL_MINUTES)


def build_verify_url(email: str, token: str) -> str:
    query = urlencode({"token": token, "email": email})
    return f"{settings.APP_URL.rstrip('/')}/auth/verify-email?{query}"


def parse_user_id(raw_id: str) -> int:
    if raw_id is None or not str(raw_id).isdigit():
        raise BadRequest("Invalid user id")
    return int(raw_id)


async def send_verification_email(email: str, token: str) -> None:
    await email_service.send_templated_email(
        email_service.VERIFICATION_TEMPLATE,
        {
            "app_name": settings.APP_NAME,
            "verify_url": build_verify_url(email, token),
            "expires_minutes": settings.OTP_TTL_MINUTES,
        },
        to=email,
        subject="Verify your email address",
    )


async def notify_admin_new_signup(email: str, signed_up_at: datetime) -> NonFatal:
    if not settings.ADMIN_EMAIL:
        logger.info("ADMIN_EMAIL not configured, skipping signup notification")
        return NonFatal(ok=True)

    return await run_best_effort(
        f"notify admin about {email}",
        lambda: email_service.send_templated_email(
            email_service.ADMIN_NEW_USER_TEMPLATE,
            {
                "app_name": settings.APP_NAME,
                "email": email,
                "signed_up_at": signed_up_at.strftime("%Y-%m-%d %H:%M UTC"),
            },
            to=settings.ADMIN_EMAIL,
            subject=f"New signup: {email}",
        ),
    )


async def register_user(
    db: AsyncSession,
    email: Optional[str],
    password: Optional[str],
    now: Optional[datetime] = None,
) -> User:
    """
    Alta de cuenta: sin verificar y sin aprobar, con token de verificación hasheado.
        - BadRequest si falta email o password.
        - Conflict si el email ya existe (lo detecta el índice único, no una consulta previa).
        - EmailDeliveryFailed si el correo de verificación no sale; la cuenta queda creada.
    """
    if not email or not password:
        raise BadRequest("Email and password required")

    current = now or datetime.now(timezone.utc)
    token, token_hash, expires_at = _new_verification_token(current)

    new_user = User(
        email=email,
        password_hash=get_password_hash(password),
        is_verified=False,
        is_approved=False,
        is_admin=False,
        verification_token_hash=token_hash,
        verification_token_expires_at=expires_at,
    )

    try:
        async with db.begin():
            db.add(new_user)
            await db.flush()
            db.add(AdminNotification(
                user_id=new_user.id,
                type=SIGNUP_NOTIFICATION,
                payload={"email": email},
            ))
    except IntegrityError:
        logger.info(f"Duplicate sign-up rejected for {email}")
        raise Conflict("User already exists")

    logger.info(f"User {new_user.id} signed up, awaiting email verification")

    try:
        await send_verification_email(email, token)
    except EmailDeliveryFailed as e:
        raise EmailDeliveryFailed("Failed to send verification email") from e

    await notify_admin_new_signup(email, current)
    return new_user


async def verify_email(
    db: AsyncSession,
    email: Optional[str],
    token: Optional[str],
    now: Optional[datetime] = None,
) -> User:
    """
    Marca la cuenta como verificada si hash(token) coincide y no ha expirado.
    El token se borra al verificar, por lo que el enlace es de un solo uso.
    """
    if not email or not token:
        raise BadRequest("Invalid verification link")

    result = await db.execute(
        select(User).where(
            User.email == email,
            User.verification_token_hash == hash_secret(token),
        )
    )
    user = result.scalar_one_or_none()
    if not user:
        raise InvalidOrExpiredLink()

    current = now or datetime.now(timezone.utc)
    expires_at = user.verification_token_expires_at
    if expires_at is None or current >= _as_utc(expires_at):
        raise InvalidOrExpiredLink("Verification link expired. Please request a new one.")

    user.is_verified = True
    user.verification_token_hash = None
    user.verification_token_expires_at = None
    await db.commit()

    logger.info(f"User {user.id} verified email")
    return user


async def resend_verification(db: AsyncSession, raw_user_id: str, now: Optional[datetime] = None) -> User:
    """
    Genera un token nuevo (reemplaza al anterior) y reenvía el correo.
    A diferencia del registro, aquí el fallo de envío sí se devuelve como error.
    """
    user_id = parse_user_id(raw_user_id)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFound("User not found")
    if user.is_verified:
        raise AlreadyVerified()

    token, token_hash, expires_at = _new_verification_token(now or datetime.now(timezone.utc))
    user.verification_token_hash = token_hash
    user.verification_token_expires_at = expires_at
    await db.commit()

    try:
        await send_verification_email(user.email, token)
    except EmailDeliveryFailed as e:
        raise EmailDeliveryFailed("Email send failed") from e

    logger.info(f"Verification email resent to user {user.id}")
    return user
