from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import get_db, public_access, require_auth
from app.cores.file_validator import FileValidator
from app.cores.token import SessionClaims
from app.schemas.user.profile_schema import (
    ProfileCreateRequest,
    ProfileDeleteResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    parse_form,
)
from app.services.user.profile_service import create_profile, delete_profile, get_public_profile, update_profile

router = APIRouter()


"""
Perfil público del portfolio. No requiere sesión.
"""
@router.get("", response_model=ProfileResponse, dependencies=[Depends(public_access)])
async def get_profile_route(db: AsyncSession = Depends(get_db)):
    profile = await get_public_profile(db)
    return {"success": True, "profile": profile}


"""
Crea el perfil del usuario autenticado.
    - Multipart: campos de texto, `profilePicture` (imagen) y `resume` (PDF).
    - 409 si el usuario ya tiene perfil.
"""
@router.post("", status_code=status.HTTP_201_CREATED, response_model=ProfileResponse)
async def create_profile_route(
    name: Optional[str] = Form(None),
    gmail: Optional[str] = Form(None),
    about: Optional[str] = Form(None),
    tech_stack: Optional[str] = Form(None, alias="techStack"),
    skills: Optional[str] = Form(None),
    roles: Optional[str] = Form(None),
    urls: Optional[str] = Form(None),
    profile_picture: Optional[UploadFile] = File(None, alias="profilePicture"),
    resume: Optional[UploadFile] = File(None),
    claims: SessionClaims = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    data = parse_form(ProfileCreateRequest, {
        "name": name,
        "gmail": gmail,
        "about": about,
        "tech_stack": tech_stack,
        "skills": skills,
        "roles": roles,
        "urls": urls,
    })
    picture = await FileValidator.validate_file(profile_picture, "image", "profilePicture")
    pdf = await FileValidator.validate_file(resume, "pdf", "resume")

    profile = await create_profile(db, claims.user_id, data, picture, pdf)
    return {"success": True, "profile": profile}


"""
Actualiza solo los campos enviados. Un archivo nuevo reemplaza al anterior.
"""
@router.put("", response_model=ProfileResponse)
async def update_profile_route(
    name: Optional[str] = Form(None),
    gmail: Optional[str] = Form(None),
    about: Optional[str] = Form(None),
    tech_stack: Optional[str] = Form(None, alias="techStack"),
    skills: Optional[str] = Form(None),
    roles: Optional[str] = Form(None),
    urls: Optional[str] = Form(None),
    profile_picture: Optional[UploadFile] = File(None, alias="profilePicture"),
    resume: Optional[UploadFile] = File(None),
    claims: SessionClaims = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    data = parse_form(ProfileUpdateRequest, {
        "name": name,
        "gmail": gmail,
        "about": about,
        "tech_stack": tech_stack,
        "skills": skills,
        "roles": roles,
        "urls": urls,
    })
    picture = await FileValidator.validate_file(profile_picture, "image", "profilePicture")
    pdf = await FileValidator.validate_file(resume, "pdf", "resume")

    profile = await update_profile(db, claims.user_id, data, picture, pdf)
    return {"success": True, "profile": profile}


@router.delete("", response_model=ProfileDeleteResponse)
async def delete_profile_route(
    claims: SessionClaims = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await delete_profile(db, claims.user_id)
    return {"success": True, "message": "Profile deleted"}
