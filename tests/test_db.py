from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.cores.db import Base
from app.models import AdminNotification, LoginOtp, Profile, Project, User  # noqa: F401

# Base de datos de prueba (en memoria)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def create_test_engine(url: str = TEST_DATABASE_URL):
    if url.endswith(":memory:"):
        # una sola conexión compartida para que todas las sesiones vean las mismas tablas
        return create_async_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_async_engine(url, echo=False)


def make_session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# Crea todas las tablas
async def init_test_db(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
