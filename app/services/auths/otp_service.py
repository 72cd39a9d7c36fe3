import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.configs.settings import settings
from app.cores.security import generate_numeric_code, get_password_hash, verify_password
from app.models.common.login_otp import LoginOtp
from app.services.utils.non_fatal import NonFatal, run_best_effort
from app.services.validation.exception import AttemptsExceeded, Expired, InvalidCode, OtpNotFound

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite devuelve datetimes sin zona horaria
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


async def issue_otp(
    db: AsyncSession,
    email: str,
    ttl_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Genera un código de 6 dígitos, guarda su hash bcrypt con expiración y
    attempts=0, y devuelve el código en claro. No envía ningún correo.
    """
    ttl = ttl_minutes if ttl_minutes is not None else settings.OTP_TTL_MINUTES
    current = now or datetime.now(timezone.utc)
    code = generate_numeric_code()

    db.add(LoginOtp(
        email=email,
        otp_hash=get_password_hash(code),
        expires_at=current + timedelta(minutes=ttl),
        attempts=0,
        created_at=current,
    ))
    await db.commit()
    return code


async def get_latest_otp(db: AsyncSession, email: str) -> Optional[LoginOtp]:
    result = await db.execute(
        select(LoginOtp)
        .where(LoginOtp.email == email)
        .order_by(LoginOtp.created_at.desc(), LoginOtp.id.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _register_failed_attempt(db: AsyncSession, otp_id: int, max_attempts: int) -> Optional[int]:
    """
    Incremento atómico condicionado: devuelve el nuevo contador, o None si otro
    intento concurrente ya agotó el cupo.
    """
    result = await db.execute(
        update(LoginOtp)
        .where(LoginOtp.id == otp_id, LoginOtp.attempts < max_attempts)
        .values(attempts=LoginOtp.attempts + 1)
        .returning(LoginOtp.attempts)
        .execution_options(synchronize_session=False)
    )
    new_count = result.scalar_one_or_none()
    await db.commit()
    return new_count


async def verify_otp(
    db: AsyncSession,
    email: str,
    presented_code: str,
    max_attempts: Optional[int] = None,
    now: Optional[datetime] = None,
) -> LoginOtp:
    """
    Valida el código contra el OTP más reciente del email.
        - OtpNotFound si no hay ninguno.
        - Expired si now >= expires_at.
        - AttemptsExceeded si ya se agotaron los intentos (antes de comparar el código)
          o si este fallo agota el último intento.
        - InvalidCode si no coincide; el intento queda registrado.
    La limpieza de los OTP tras el éxito es responsabilidad del llamador.
    """
    limit = max_attempts if max_attempts is not None else settings.OTP_MAX_ATTEMPTS
    current = now or datetime.now(timezone.utc)

    record = await get_latest_otp(db, email)
    if record is None:
        raise OtpNotFound()

    if current >= _as_utc(record.expires_at):
        raise Expired()

    if (record.attempts or 0) >= limit:
        logger.warning(f"OTP attempts exceeded for {email}")
        raise AttemptsExceeded()

    if not verify_password(presented_code, record.otp_hash):
        new_count = await _register_failed_attempt(db, record.id, limit)
        logger.warning(f"Invalid OTP entered for {email} (attempt {new_count or limit}/{limit})")
        if new_count is None or new_count >= limit:
            raise AttemptsExceeded()
        raise InvalidCode()

    return record


async def delete_otps(db: AsyncSession, email: str) -> NonFatal:
    """Borra todos los OTP del email. Best-effort: el fallo solo se registra."""

    async def _delete():
        await db.execute(delete(LoginOtp).where(LoginOtp.email == email))
        await db.commit()

    return await run_best_effort(f"delete OTPs for {email}", _delete, on_error=db.rollback)
