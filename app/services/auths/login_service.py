import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.configs.settings import settings
from app.cores.security import get_password_hash, verify_password
from app.cores.token import SessionClaims, issue_session_token
from app.models.users.user import User
from app.services.auths.otp_service import delete_otps, issue_otp, verify_otp
from app.services.externals import email_service
from app.services.validation.exception import (
    ApprovalPending,
    BadRequest,
    EmailDeliveryFailed,
    EmailNotVerified,
    InvalidCredentials,
    NotFound,
)

logger = logging.getLogger(__name__)

# hash de relleno para que "usuario inexistente" tarde lo mismo que "password incorrecto"
_DUMMY_PASSWORD_HASH = get_password_hash("portfolio-dummy-password")


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(db, email)

    if not user:
        verify_password(password, _DUMMY_PASSWORD_HASH)
        raise InvalidCredentials()

    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()

    return user


async def login_user(db: AsyncSession, email: Optional[str], password: Optional[str]) -> User:
    """
    Paso 1 del login: valida password, verificación y aprobación; después
    emite un OTP y lo envía por correo. El OTP queda guardado aunque el envío falle.
    """
    if not email or not password:
        raise BadRequest("Email and password required")

    user = await authenticate_user(db, email, password)

    if not user.is_verified:
        raise EmailNotVerified()
    if not user.is_approved:
        raise ApprovalPending()

    code = await issue_otp(db, user.email)

    try:
        await email_service.send_templated_email(
            email_service.OTP_TEMPLATE,
            {
                "app_name": settings.APP_NAME,
                "otp": code,
                "expires_minutes": settings.OTP_TTL_MINUTES,
            },
            to=user.email,
            subject="Your login verification code",
        )
    except EmailDeliveryFailed as e:
        raise EmailDeliveryFailed("Failed to send OTP email") from e

    logger.info(f"OTP issued for user {user.id}")
    return user


async def verify_login_otp(
    db: AsyncSession,
    email: Optional[str],
    otp: Optional[str],
    now: Optional[datetime] = None,
) -> Tuple[str, User]:
    """
    Paso 2 del login: valida el OTP y emite el token de sesión.
    Los flags de la cuenta se leen de la base de datos, no de un token previo.
    """
    if not email or not otp:
        raise BadRequest("Email and OTP are required")

    await verify_otp(db, email, otp, now=now)

    user = await get_user_by_email(db, email)
    if not user:
        raise BadRequest("User not found")

    token = issue_session_token(user.id, user.email, bool(user.is_admin), now=now)

    logger.info(f"User {user.id} logged in")

    await delete_otps(db, email)
    return token, user


async def get_current_user(db: AsyncSession, claims: SessionClaims) -> User:
    user = await get_user_by_id(db, claims.user_id)
    if not user:
        raise NotFound("User not found")
    return user
