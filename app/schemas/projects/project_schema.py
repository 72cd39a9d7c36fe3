from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.cores.html_sanitizer import HTMLSanitizer
from app.schemas.user.profile_schema import check_url, parse_list_field


def _parse_link(value):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return check_url(str(value))


def _sanitize(value):
    return HTMLSanitizer.sanitize_strict(value) if isinstance(value, str) else value


class ProjectCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    tools: List[str] = []
    description: str = Field(min_length=1, max_length=2000)
    live_link: Optional[str] = None
    github_url: Optional[str] = None

    parse_tools = field_validator("tools", mode="before")(parse_list_field)
    parse_links = field_validator("live_link", "github_url", mode="before")(_parse_link)
    sanitize_text = field_validator("name", "description", mode="before")(_sanitize)


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    tools: Optional[List[str]] = None
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    live_link: Optional[str] = None
    github_url: Optional[str] = None

    parse_tools = field_validator("tools", mode="before")(parse_list_field)
    parse_links = field_validator("live_link", "github_url", mode="before")(_parse_link)
    sanitize_text = field_validator("name", "description", mode="before")(_sanitize)


class ProjectData(BaseModel):
    id: int
    profile_id: int
    name: str
    tools: List[str] = []
    description: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    live_link: Optional[str] = None
    github_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProjectResponse(BaseModel):
    success: bool
    project: ProjectData


class ProjectListResponse(BaseModel):
    success: bool
    projects: List[ProjectData]


class ProjectDeleteResponse(BaseModel):
    success: bool
    message: str
    project: ProjectData
