"""
Este bloque define la configuración de inicio (lifespan) y creación de la aplicación FastAPI.
Incluye tareas que deben ejecutarse al arrancar la aplicación, como la creación de tablas y la cuenta admin.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.configs.settings import Settings, settings as default_settings
from app.cores.db import Base, build_engine, build_session_factory
from app.cores.error_handlers import register_exception_handlers
from app.cores.logger import setup_logging
from app.cores.rate_limiter import limiter
from app.cores.request_logger import RequestLoggingMiddleware
from app.cores.security_headers import SecurityHeadersMiddleware

# registra las tablas en Base.metadata
from app.models import AdminNotification, LoginOtp, Profile, Project, User  # noqa: F401

from app.scripts.databases.create_user_admin import create_admin_user

from app.apis.auth_api import router as auth_router
from app.apis.admin_api import router as admin_router
from app.apis.profile_api import router as profile_router
from app.apis.projects_api import router as projects_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    - Crea todas las tablas en la base de datos si no existen.
    - Crea la cuenta administradora si está configurada.
    - Al cerrar, libera el pool de conexiones.
    """
    engine = app.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await create_admin_user(app.state.session_factory)
    logger.info("Application started")

    yield

    await engine.dispose()


"""
    Función que construye y retorna la instancia principal de la aplicación FastAPI.
    - Crea el engine y la fábrica de sesiones y los guarda en `app.state`.
    - Registra middlewares, handlers de errores y rutas.
"""
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        lifespan=lifespan
    )

    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.limiter = limiter

    register_exception_handlers(app)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.client_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix="/auth", tags=["Auth"])
    app.include_router(admin_router, prefix="/auth/admin", tags=["Admin"])
    app.include_router(profile_router, prefix="/profile", tags=["Profile"])
    app.include_router(projects_router, prefix="/projects", tags=["Projects"])

    return app
