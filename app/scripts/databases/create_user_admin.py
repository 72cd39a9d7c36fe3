import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

from app.configs.settings import settings
from app.cores.security import get_password_hash
from app.models.users.user import User

logger = logging.getLogger(__name__)


async def create_admin_user(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """
    Crea la cuenta administradora (verificada y aprobada) a partir de
    ADMIN_EMAIL y ADMIN_PASSWORD. No hace nada si falta alguno o si ya existe.
    """
    admin_email = settings.ADMIN_EMAIL
    password = settings.ADMIN_PASSWORD

    if not admin_email or not password:
        logger.info("ADMIN_EMAIL or ADMIN_PASSWORD not defined, skipping admin seed.")
        return

    async with session_factory() as db:
        result = await db.execute(select(User).where(User.email == admin_email))
        if result.scalar_one_or_none():
            logger.info("The administrator user already exists.")
            return

        db.add(User(
            email=admin_email,
            password_hash=get_password_hash(password),
            is_verified=True,
            is_approved=True,
            is_admin=True,
        ))
        await db.commit()
        logger.info("Administrator user created successfully.")
