import asyncio
import logging
import uuid
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import List, Optional

from app.configs.settings import settings
from app.external.minio_client import ensure_bucket, get_minio
from app.services.utils.non_fatal import NonFatal, run_best_effort
from app.services.validation.exception import MediaUploadFailed, Unavailable

logger = logging.getLogger(__name__)

EXTENSIONS_BY_TYPE = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
    "video/x-matroska": ".mkv",
    "application/pdf": ".pdf",
}


@dataclass
class UploadedAsset:
    secure_url: str
    public_id: str


def _public_url(object_name: str) -> str:
    return f"{settings.MINIO_PUBLIC_BASE_URL.rstrip('/')}/{settings.MINIO_BUCKET}/{object_name}"


def _put_object(object_name: str, data: bytes, content_type: str) -> None:
    client = get_minio()
    ensure_bucket(client, settings.MINIO_BUCKET)
    client.put_object(
        bucket_name=settings.MINIO_BUCKET,
        object_name=object_name,
        data=BytesIO(data),
        length=len(data),
        content_type=content_type,
    )


def _remove_object(object_name: str) -> None:
    get_minio().remove_object(bucket_name=settings.MINIO_BUCKET, object_name=object_name)


async def upload_buffer(
    data: bytes,
    folder: str,
    resource_type: str,
    content_type: str,
    filename: Optional[str] = None,
) -> UploadedAsset:
    """
    Sube un buffer a `{MEDIA_ROOT_FOLDER}/{folder}` y devuelve su URL pública y su id.
    El SDK de MinIO es síncrono, así que la subida corre en un hilo con timeout.
    """
    ext = EXTENSIONS_BY_TYPE.get(content_type) or (Path(filename).suffix.lower() if filename else "")
    public_id = f"{settings.MEDIA_ROOT_FOLDER}/{folder}/{resource_type}-{uuid.uuid4().hex}{ext}"

    try:
        await asyncio.wait_for(
            asyncio.to_thread(_put_object, public_id, data, content_type),
            timeout=settings.MEDIA_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.error(f"Timeout uploading {resource_type} to {folder}")
        raise Unavailable("Media service timed out. Please try again later.") from None
    except Exception as e:
        logger.error(f"Error uploading {resource_type} to {folder}: {e}")
        raise MediaUploadFailed() from e

    logger.info(f"Uploaded {resource_type} as {public_id}")
    return UploadedAsset(secure_url=_public_url(public_id), public_id=public_id)


async def delete_asset(public_id: Optional[str]) -> NonFatal:
    """Borra un objeto por id. Best-effort: el fallo solo se registra."""
    if not public_id:
        return NonFatal(ok=True)

    async def _delete():
        await asyncio.wait_for(
            asyncio.to_thread(_remove_object, public_id),
            timeout=settings.MEDIA_TIMEOUT_SECONDS,
        )

    return await run_best_effort(f"delete asset {public_id}", _delete)


async def upload_validated(file, folder: str, resource_type: str, uploaded: List[UploadedAsset]) -> Optional[UploadedAsset]:
    """
    Sube un ValidatedFile opcional y lo agrega a `uploaded` para poder
    limpiarlo si un paso posterior falla.
    """
    if file is None:
        return None
    asset = await upload_buffer(
        file.content,
        folder=folder,
        resource_type=resource_type,
        content_type=file.content_type,
        filename=file.filename,
    )
    uploaded.append(asset)
    return asset


async def cleanup_uploads(assets: List[UploadedAsset]) -> None:
    for asset in assets:
        await delete_asset(asset.public_id)
