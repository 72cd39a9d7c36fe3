import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.cores.file_validator import ValidatedFile
from app.models.projects.project import Project
from app.schemas.projects.project_schema import ProjectCreateRequest, ProjectUpdateRequest
from app.services.externals import media_service
from app.services.externals.media_service import UploadedAsset
from app.services.user.profile_service import get_owner_profile, get_profile_by_user_id
from app.services.utils.diff_service import diff_objects, snapshot
from app.services.validation.exception import BadRequest, NotFound

logger = logging.getLogger(__name__)

PROJECT_IMAGES_FOLDER = "projects/images"
PROJECT_VIDEOS_FOLDER = "projects/videos"
AUDITED_FIELDS = ("name", "tools", "description", "live_link", "github_url", "image_url", "video_url")


def parse_project_id(raw_id: str) -> int:
    if raw_id is None or not str(raw_id).isdigit():
        raise BadRequest("Invalid project id")
    return int(raw_id)


async def list_projects(db: AsyncSession) -> List[Project]:
    """Proyectos del perfil público, los más recientes primero."""
    profile = await get_owner_profile(db)
    if not profile:
        return []
    result = await db.execute(
        select(Project)
        .where(Project.profile_id == profile.id)
        .order_by(Project.created_at.desc(), Project.id.desc())
    )
    return list(result.scalars().all())


async def get_project(db: AsyncSession, raw_id: str) -> Project:
    project_id = parse_project_id(raw_id)
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()
    if not project:
        raise NotFound("Project not found")
    return project


async def _get_owned_project_or_404(db: AsyncSession, user_id: int, raw_id: str) -> Project:
    project_id = parse_project_id(raw_id)
    result = await db.execute(
        select(Project).where(Project.id == project_id, Project.user_id == user_id)
    )
    project = result.scalar_one_or_none()
    if not project:
        raise NotFound("Project not found")
    return project


async def create_project(
    db: AsyncSession,
    user_id: int,
    data: ProjectCreateRequest,
    image: Optional[ValidatedFile] = None,
    video: Optional[ValidatedFile] = None,
) -> Project:
    profile = await get_profile_by_user_id(db, user_id)
    if not profile:
        raise BadRequest("Create a profile first")
    # no retener la conexión del pool durante la subida
    await db.commit()

    uploaded: List[UploadedAsset] = []
    try:
        image_asset = await media_service.upload_validated(image, PROJECT_IMAGES_FOLDER, "image", uploaded)
        video_asset = await media_service.upload_validated(video, PROJECT_VIDEOS_FOLDER, "video", uploaded)

        project = Project(
            profile_id=profile.id,
            user_id=user_id,
            name=data.name,
            tools=data.tools,
            description=data.description,
            live_link=data.live_link,
            github_url=data.github_url,
            image_url=image_asset.secure_url if image_asset else None,
            image_public_id=image_asset.public_id if image_asset else None,
            video_url=video_asset.secure_url if video_asset else None,
            video_public_id=video_asset.public_id if video_asset else None,
        )
        db.add(project)
        await db.commit()
        await db.refresh(project)
    except Exception:
        # si el insert falla no deben quedar archivos huérfanos
        await db.rollback()
        await media_service.cleanup_uploads(uploaded)
        raise

    logger.info(f"Project {project.id} created by user {user_id}")
    return project


async def update_project(
    db: AsyncSession,
    user_id: int,
    raw_id: str,
    data: ProjectUpdateRequest,
    image: Optional[ValidatedFile] = None,
    video: Optional[ValidatedFile] = None,
) -> Project:
    project = await _get_owned_project_or_404(db, user_id, raw_id)
    before = snapshot(project, AUDITED_FIELDS)
    await db.commit()
    replaced: List[Optional[str]] = []

    uploaded: List[UploadedAsset] = []
    try:
        image_asset = await media_service.upload_validated(image, PROJECT_IMAGES_FOLDER, "image", uploaded)
        video_asset = await media_service.upload_validated(video, PROJECT_VIDEOS_FOLDER, "video", uploaded)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(project, field, value)

        if image_asset:
            replaced.append(project.image_public_id)
            project.image_url = image_asset.secure_url
            project.image_public_id = image_asset.public_id
        if video_asset:
            replaced.append(project.video_public_id)
            project.video_url = video_asset.secure_url
            project.video_public_id = video_asset.public_id

        project.updated_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(project)
    except Exception:
        await db.rollback()
        await media_service.cleanup_uploads(uploaded)
        raise

    for public_id in replaced:
        await media_service.delete_asset(public_id)

    changes = diff_objects(before, snapshot(project, AUDITED_FIELDS))
    logger.info(f"Project {project.id} updated by user {user_id}: {changes}")
    return project


async def delete_project(db: AsyncSession, user_id: int, raw_id: str) -> Project:
    project = await _get_owned_project_or_404(db, user_id, raw_id)

    await db.delete(project)
    await db.commit()
    logger.info(f"Project {project.id} deleted by user {user_id}")

    await media_service.delete_asset(project.image_public_id)
    await media_service.delete_asset(project.video_public_id)
    return project
