from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import get_db, public_access, require_auth
from app.cores.file_validator import FileValidator
from app.cores.token import SessionClaims
from app.schemas.projects.project_schema import (
    ProjectCreateRequest,
    ProjectDeleteResponse,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdateRequest,
)
from app.schemas.user.profile_schema import parse_form
from app.services.projects.project_service import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    update_project,
)

router = APIRouter()


@router.get("", response_model=ProjectListResponse, dependencies=[Depends(public_access)])
async def list_projects_route(db: AsyncSession = Depends(get_db)):
    projects = await list_projects(db)
    return {"success": True, "projects": projects}


@router.get("/{project_id}", response_model=ProjectResponse, dependencies=[Depends(public_access)])
async def get_project_route(project_id: str, db: AsyncSession = Depends(get_db)):
    project = await get_project(db, project_id)
    return {"success": True, "project": project}


"""
Crea un proyecto en el perfil del usuario autenticado.
    - Multipart: `image` (jpeg/png/webp) y `video` (mp4/webm/mov/mkv) opcionales.
    - Si el insert falla, los archivos subidos se borran.
"""
@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProjectResponse)
async def create_project_route(
    name: Optional[str] = Form(None),
    tools: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    live_link: Optional[str] = Form(None, alias="liveLink"),
    github_url: Optional[str] = Form(None, alias="githubUrl"),
    image: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    claims: SessionClaims = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    data = parse_form(ProjectCreateRequest, {
        "name": name,
        "tools": tools,
        "description": description,
        "live_link": live_link,
        "github_url": github_url,
    })
    image_file = await FileValidator.validate_file(image, "image", "image")
    video_file = await FileValidator.validate_file(video, "video", "video")

    project = await create_project(db, claims.user_id, data, image_file, video_file)
    return {"success": True, "project": project}


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project_route(
    project_id: str,
    name: Optional[str] = Form(None),
    tools: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    live_link: Optional[str] = Form(None, alias="liveLink"),
    github_url: Optional[str] = Form(None, alias="githubUrl"),
    image: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    claims: SessionClaims = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    data = parse_form(ProjectUpdateRequest, {
        "name": name,
        "tools": tools,
        "description": description,
        "live_link": live_link,
        "github_url": github_url,
    })
    image_file = await FileValidator.validate_file(image, "image", "image")
    video_file = await FileValidator.validate_file(video, "video", "video")

    project = await update_project(db, claims.user_id, project_id, data, image_file, video_file)
    return {"success": True, "project": project}


@router.delete("/{project_id}", response_model=ProjectDeleteResponse)
async def delete_project_route(
    project_id: str,
    claims: SessionClaims = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    project = await delete_project(db, claims.user_id, project_id)
    return {"success": True, "message": "Deleted", "project": project}
