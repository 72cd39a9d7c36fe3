import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.configs.settings import settings
from app.models.notifications.admin_notification import AdminNotification
from app.models.projects.project import Project
from app.models.users.user import User
from app.services.auths.register_service import parse_user_id
from app.services.externals import email_service
from app.services.utils.non_fatal import NonFatal, run_best_effort
from app.services.validation.exception import NotFound, PreconditionFailed

logger = logging.getLogger(__name__)

NOTIFICATIONS_LIMIT = 50


async def list_pending_users(db: AsyncSession) -> Dict[str, List]:
    """
    Solo lectura:
        - pending: cuentas sin aprobar, las más antiguas primero.
        - approved: verificadas, aprobadas y no admin, las más recientes primero.
        - notifications: hasta 50 notificaciones sin leer, las más recientes primero.
    """
    pending = await db.execute(
        select(User)
        .where(User.is_approved.is_(False))
        .order_by(User.created_at.asc(), User.id.asc())
    )
    approved = await db.execute(
        select(User)
        .where(
            User.is_verified.is_(True),
            User.is_approved.is_(True),
            User.is_admin.is_(False),
        )
        .order_by(User.created_at.desc(), User.id.desc())
    )
    notifications = await db.execute(
        select(AdminNotification)
        .where(AdminNotification.read.is_(False))
        .order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc())
        .limit(NOTIFICATIONS_LIMIT)
    )

    return {
        "pending": list(pending.scalars().all()),
        "approved": list(approved.scalars().all()),
        "notifications": list(notifications.scalars().all()),
    }


async def mark_notifications_read(db: AsyncSession, user_id: int) -> NonFatal:
    async def _mark():
        await db.execute(
            update(AdminNotification)
            .where(AdminNotification.user_id == user_id, AdminNotification.read.is_(False))
            .values(read=True)
        )
        await db.commit()

    return await run_best_effort(f"mark notifications read for user {user_id}", _mark, on_error=db.rollback)


async def send_approval_email(email: str) -> NonFatal:
    return await run_best_effort(
        f"send approval email to {email}",
        lambda: email_service.send_templated_email(
            email_service.APPROVED_TEMPLATE,
            {
                "app_name": settings.APP_NAME,
                "login_url": f"{settings.APP_URL.rstrip('/')}/login",
                "support_email": settings.SUPPORT_EMAIL,
            },
            to=email,
            subject="Your Account Has Been Approved",
        ),
    )


async def approve_user(db: AsyncSession, raw_user_id: str, now: Optional[datetime] = None) -> User:
    """
    Aprueba una cuenta verificada. Aprobar dos veces es un error, no un no-op.
    Marcar notificaciones y enviar el correo son acciones best-effort posteriores al commit.
    """
    user_id = parse_user_id(raw_user_id)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFound("User not found")
    if not user.is_verified:
        raise PreconditionFailed("User email not verified")
    if user.is_approved:
        raise PreconditionFailed("User is already approved")

    user.is_approved = True
    user.updated_at = now or datetime.now(timezone.utc)
    await db.commit()
    logger.info(f"User {user.id} approved")

    marked = await mark_notifications_read(db, user.id)
    if not marked.ok:
        # el rollback expira la instancia
        await db.refresh(user)
    await send_approval_email(user.email)
    return user


async def get_stats(db: AsyncSession) -> Dict[str, int]:
    total_projects = await db.scalar(select(func.count(Project.id)))
    pending_users = await db.scalar(select(func.count(User.id)).where(User.is_approved.is_(False)))
    approved_users = await db.scalar(
        select(func.count(User.id)).where(User.is_approved.is_(True), User.is_admin.is_(False))
    )
    return {
        "total_projects": total_projects or 0,
        "pending_users": pending_users or 0,
        "approved_users": approved_users or 0,
    }
