import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.cores.file_validator import ValidatedFile
from app.models.projects.project import Project
from app.models.users.profile import Profile
from app.schemas.user.profile_schema import ProfileCreateRequest, ProfileUpdateRequest
from app.services.externals import media_service
from app.services.externals.media_service import UploadedAsset
from app.services.utils.diff_service import diff_objects, snapshot
from app.services.validation.exception import Conflict, NotFound

logger = logging.getLogger(__name__)

PROFILES_FOLDER = "profiles"
RESUMES_FOLDER = "resumes"
AUDITED_FIELDS = ("name", "gmail", "about", "tech_stack", "skills", "roles", "urls", "profile_picture_url", "pdf_url")

# ==================== CONSULTAS ====================

async def get_profile_by_user_id(db: AsyncSession, user_id: int) -> Optional[Profile]:
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_owner_profile(db: AsyncSession) -> Optional[Profile]:
    """El perfil público del portfolio es el primero que se creó."""
    result = await db.execute(select(Profile).order_by(Profile.id.asc()).limit(1))
    return result.scalar_one_or_none()


async def get_public_profile(db: AsyncSession) -> Profile:
    profile = await get_owner_profile(db)
    if not profile:
        raise NotFound("Profile not found")
    return profile


async def _get_existing_profile_or_404(db: AsyncSession, user_id: int) -> Profile:
    profile = await get_profile_by_user_id(db, user_id)
    if not profile:
        raise NotFound("Profile not found")
    return profile

# ==================== FUNCIONES PRINCIPALES ====================

async def create_profile(
    db: AsyncSession,
    user_id: int,
    data: ProfileCreateRequest,
    picture: Optional[ValidatedFile] = None,
    resume: Optional[ValidatedFile] = None,
) -> Profile:
    if await get_profile_by_user_id(db, user_id):
        raise Conflict("Profile already exists")
    # no retener la conexión del pool durante la subida
    await db.commit()

    uploaded: List[UploadedAsset] = []
    try:
        picture_asset = await media_service.upload_validated(picture, PROFILES_FOLDER, "image", uploaded)
        resume_asset = await media_service.upload_validated(resume, RESUMES_FOLDER, "raw", uploaded)

        profile = Profile(
            user_id=user_id,
            name=data.name,
            gmail=data.gmail,
            about=data.about,
            tech_stack=data.tech_stack,
            skills=data.skills,
            roles=data.roles,
            urls=data.urls,
            profile_picture_url=picture_asset.secure_url if picture_asset else None,
            profile_picture_public_id=picture_asset.public_id if picture_asset else None,
            pdf_url=resume_asset.secure_url if resume_asset else None,
            pdf_public_id=resume_asset.public_id if resume_asset else None,
        )
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
    except IntegrityError:
        await db.rollback()
        await media_service.cleanup_uploads(uploaded)
        raise Conflict("Profile already exists")
    except Exception:
        await db.rollback()
        await media_service.cleanup_uploads(uploaded)
        raise

    logger.info(f"Profile {profile.id} created for user {user_id}")
    return profile


async def update_profile(
    db: AsyncSession,
    user_id: int,
    data: ProfileUpdateRequest,
    picture: Optional[ValidatedFile] = None,
    resume: Optional[ValidatedFile] = None,
) -> Profile:
    """
    Actualización parcial: solo cambian los campos enviados.
    Los archivos reemplazados se borran después del commit (best-effort).
    """
    profile = await _get_existing_profile_or_404(db, user_id)
    before = snapshot(profile, AUDITED_FIELDS)
    await db.commit()
    replaced: List[Optional[str]] = []

    uploaded: List[UploadedAsset] = []
    try:
        picture_asset = await media_service.upload_validated(picture, PROFILES_FOLDER, "image", uploaded)
        resume_asset = await media_service.upload_validated(resume, RESUMES_FOLDER, "raw", uploaded)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)

        if picture_asset:
            replaced.append(profile.profile_picture_public_id)
            profile.profile_picture_url = picture_asset.secure_url
            profile.profile_picture_public_id = picture_asset.public_id
        if resume_asset:
            replaced.append(profile.pdf_public_id)
            profile.pdf_url = resume_asset.secure_url
            profile.pdf_public_id = resume_asset.public_id

        profile.updated_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(profile)
    except Exception:
        await db.rollback()
        await media_service.cleanup_uploads(uploaded)
        raise

    for public_id in replaced:
        await media_service.delete_asset(public_id)

    changes = diff_objects(before, snapshot(profile, AUDITED_FIELDS))
    logger.info(f"Profile {profile.id} updated by user {user_id}: {changes}")
    return profile


async def delete_profile(db: AsyncSession, user_id: int) -> None:
    """Borra el perfil, sus proyectos y después sus archivos (best-effort)."""
    profile = await _get_existing_profile_or_404(db, user_id)

    projects = (await db.execute(select(Project).where(Project.profile_id == profile.id))).scalars().all()
    asset_ids = [profile.profile_picture_public_id, profile.pdf_public_id]
    for project in projects:
        asset_ids.extend([project.image_public_id, project.video_public_id])

    await db.execute(delete(Project).where(Project.profile_id == profile.id))
    await db.delete(profile)
    await db.commit()
    logger.info(f"Profile {profile.id} deleted by user {user_id}")

    for public_id in asset_ids:
        await media_service.delete_asset(public_id)
