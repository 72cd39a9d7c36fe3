from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.services.validation.exception import BadRequest


@dataclass
class ValidatedFile:
    content: bytes
    content_type: str
    filename: str


class FileValidator:
    """Validador de archivos subidos: tipo MIME declarado, extensión y tamaño."""

    ALLOWED_MIME_TYPES = {
        "image": ["image/jpeg", "image/png", "image/webp"],
        "video": ["video/mp4", "video/webm", "video/quicktime", "video/x-matroska"],
        "pdf": ["application/pdf"],
    }

    ALLOWED_EXTENSIONS = {
        "image": [".jpg", ".jpeg", ".png", ".webp"],
        "video": [".mp4", ".webm", ".mov", ".mkv"],
        "pdf": [".pdf"],
    }

    MAX_FILE_SIZES = {
        "image": 5 * 1024 * 1024,
        "video": 100 * 1024 * 1024,
        "pdf": 10 * 1024 * 1024,
    }

    @staticmethod
    async def validate_file(file: Optional[UploadFile], file_type: str, field: str) -> Optional[ValidatedFile]:
        """
        Devuelve el contenido validado, o None si el campo no se envió.
        Lanza BadRequest con el nombre del campo si algo no cuadra.
        """
        if file is None or not file.filename:
            return None

        content_type = (file.content_type or "").lower()
        if content_type not in FileValidator.ALLOWED_MIME_TYPES[file_type]:
            raise BadRequest(f"Invalid file type for {field}: {content_type or 'unknown'}")

        ext = Path(file.filename).suffix.lower()
        if ext and ext not in FileValidator.ALLOWED_EXTENSIONS[file_type]:
            raise BadRequest(f"Invalid file extension for {field}: {ext}")

        content = await file.read()
        if not content:
            raise BadRequest(f"{field} is empty")

        max_allowed = FileValidator.MAX_FILE_SIZES[file_type]
        if len(content) > max_allowed:
            raise BadRequest(f"{field} is too large. Max size: {max_allowed / (1024 * 1024):.0f} MB")

        return ValidatedFile(content=content, content_type=content_type, filename=file.filename)
