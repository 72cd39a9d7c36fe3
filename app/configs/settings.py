from typing import List

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

"""
Se carga automáticamente desde el archivo `.env` o las variables de entorno del sistema.
    - Base de datos y tamaño del pool.
    - Secreto de sesión, TTL y número máximo de intentos del OTP.
    - Correo (SMTP), almacenamiento de medios (MinIO) y datos públicos del sitio.
"""
class Settings(BaseSettings):
    SQLALCHEMY_DATABASE_URI: str
    DB_POOL_SIZE: int = 5
    DB_POOL_TIMEOUT: int = 10
    DB_POOL_RECYCLE: int = 30

    SECRET_KEY: str
    OTP_TTL_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 5

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_ENABLED: bool = True

    APP_NAME: str = "Portfolio"
    APP_URL: str = "http://localhost:8000"
    SUPPORT_EMAIL: str = ""
    CLIENT_ORIGINS: str = "http://localhost:5173"

    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str = "no-reply@example.com"
    MAIL_PORT: int = 587
    MAIL_SERVER: str = "localhost"
    MAIL_STARTTLS: bool = True
    MAIL_SSL_TLS: bool = False
    MAIL_SUPPRESS_SEND: bool = False
    MAIL_TIMEOUT_SECONDS: float = 15

    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = ""
    MINIO_SECRET_KEY: str = ""
    MINIO_SECURE: bool = False
    MINIO_BUCKET: str = "portfolio"
    MINIO_PUBLIC_BASE_URL: str = "http://localhost:9000"
    MEDIA_ROOT_FOLDER: str = "portfolio"
    MEDIA_TIMEOUT_SECONDS: float = 60

    model_config = ConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def client_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CLIENT_ORIGINS.split(",") if origin.strip()]


settings = Settings()
