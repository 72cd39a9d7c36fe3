"""
Configuración de SQLAlchemy para trabajar con base de datos de forma asincrónica.
Soporta SQLite (desarrollo y pruebas) y PostgreSQL (producción) según variable de entorno.

El engine y la fábrica de sesiones no son globales: `create_app` los construye y los
guarda en `app.state`, y cada servicio recibe la sesión de forma explícita.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.configs.settings import Settings

Base = declarative_base()


def build_engine(settings: Settings) -> AsyncEngine:
    url = settings.SQLALCHEMY_DATABASE_URI

    if url.startswith("sqlite"):
        # SQLite usa su propio pool; no acepta pool_size
        return create_async_engine(url, connect_args={"check_same_thread": False}, echo=False)

    return create_async_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=0,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
        echo=False,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
