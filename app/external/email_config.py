"""
Configuración para enviar correos electrónicos usando FastAPI-Mail.
Las plantillas HTML (Jinja2) viven en app/templates/mail.
"""

from pathlib import Path

from fastapi_mail import ConnectionConfig

from app.configs.settings import settings

TEMPLATE_FOLDER = Path(__file__).resolve().parent.parent / "templates" / "mail"

conf = ConnectionConfig(
    MAIL_USERNAME=settings.MAIL_USERNAME,
    MAIL_PASSWORD=settings.MAIL_PASSWORD,
    MAIL_FROM=settings.MAIL_FROM,
    MAIL_FROM_NAME=settings.APP_NAME,
    MAIL_PORT=settings.MAIL_PORT,
    MAIL_SERVER=settings.MAIL_SERVER,
    MAIL_STARTTLS=settings.MAIL_STARTTLS,
    MAIL_SSL_TLS=settings.MAIL_SSL_TLS,
    USE_CREDENTIALS=bool(settings.MAIL_USERNAME),
    VALIDATE_CERTS=True,
    SUPPRESS_SEND=1 if settings.MAIL_SUPPRESS_SEND else 0,
    TEMPLATE_FOLDER=TEMPLATE_FOLDER,
)
