import asyncio
import logging
from typing import Any, Dict

from fastapi_mail import FastMail, MessageSchema, MessageType

from app.configs.settings import settings
from app.external.email_config import conf
from app.services.validation.exception import EmailDeliveryFailed, Unavailable

logger = logging.getLogger(__name__)

VERIFICATION_TEMPLATE = "user_verification_email.html"
OTP_TEMPLATE = "user_password_email.html"
ADMIN_NEW_USER_TEMPLATE = "admin_notify_new_user.html"
APPROVED_TEMPLATE = "user_approved_email.html"


async def send_templated_email(template: str, data: Dict[str, Any], to: str, subject: str) -> None:
    """
    Renderiza la plantilla `template` con `data` y la envía a `to`.
    Lanza EmailDeliveryFailed si el envío falla y Unavailable si excede el timeout.
    """
    message = MessageSchema(
        subject=subject,
        recipients=[to],
        template_body=data,
        subtype=MessageType.html,
    )
    fm = FastMail(conf)
    try:
        await asyncio.wait_for(
            fm.send_message(message, template_name=template),
            timeout=settings.MAIL_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error(f"Timeout sending '{template}' to {to}")
        raise Unavailable("Email service timed out. Please try again later.") from None
    except Exception as e:
        logger.error(f"Error sending '{template}' to {to}: {e}")
        raise EmailDeliveryFailed() from e

    logger.info(f"Email '{template}' sent to {to}")
