import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator
from fastapi.exceptions import RequestValidationError

from app.cores.html_sanitizer import HTMLSanitizer

"""
Modelos de entrada y salida de las APIs de perfil y proyectos.
Los datos llegan como multipart, así que las listas y el diccionario de URLs
pueden venir como texto JSON o separados por comas.
"""


def parse_list_field(value: Any) -> Any:
    if value is None or isinstance(value, list):
        return value
    if not isinstance(value, str):
        raise ValueError("must be a list of strings")

    text = value.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError:
            raise ValueError("must be a valid JSON array")
        if not isinstance(items, list):
            raise ValueError("must be a JSON array")
    else:
        items = text.split(",")

    return [HTMLSanitizer.sanitize_strict(str(item)) for item in items if str(item).strip()]


def check_url(value: str) -> str:
    value = value.strip()
    if not (value.startswith("http://") or value.startswith("https://")) or " " in value:
        raise ValueError(f"'{value}' is not a valid URL")
    return value


def parse_urls_field(value: Any) -> Any:
    if value is None:
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return {}
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            raise ValueError("must be a valid JSON object")
    if not isinstance(value, dict):
        raise ValueError("must be an object of name to URL")
    return {str(name): check_url(str(url)) for name, url in value.items()}


def parse_form(model, data: Dict[str, Any]):
    """Construye el modelo con los campos enviados; los errores salen como 400 de validación."""
    try:
        return model(**{key: value for key, value in data.items() if value is not None})
    except ValidationError as e:
        raise RequestValidationError(e.errors())


class ProfileCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    gmail: EmailStr
    about: str = Field(min_length=10, max_length=5000)
    tech_stack: List[str] = []
    skills: List[str] = []
    roles: List[str] = []
    urls: Dict[str, str] = {}

    parse_lists = field_validator("tech_stack", "skills", "roles", mode="before")(parse_list_field)
    parse_urls = field_validator("urls", mode="before")(parse_urls_field)

    @field_validator("name", "about", mode="before")
    @classmethod
    def sanitize_text(cls, value):
        return HTMLSanitizer.sanitize_strict(value) if isinstance(value, str) else value


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    gmail: Optional[EmailStr] = None
    about: Optional[str] = Field(None, min_length=10, max_length=5000)
    tech_stack: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    roles: Optional[List[str]] = None
    urls: Optional[Dict[str, str]] = None

    parse_lists = field_validator("tech_stack", "skills", "roles", mode="before")(parse_list_field)
    parse_urls = field_validator("urls", mode="before")(parse_urls_field)

    @field_validator("name", "about", mode="before")
    @classmethod
    def sanitize_text(cls, value):
        return HTMLSanitizer.sanitize_strict(value) if isinstance(value, str) else value


class ProfileData(BaseModel):
    id: int
    user_id: int
    name: str
    gmail: str
    about: str
    profile_picture_url: Optional[str] = None
    pdf_url: Optional[str] = None
    tech_stack: List[str] = []
    skills: List[str] = []
    roles: List[str] = []
    urls: Dict[str, str] = {}
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    success: bool
    profile: ProfileData


class ProfileDeleteResponse(BaseModel):
    success: bool
    message: str
