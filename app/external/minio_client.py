"""
Cliente de MinIO (almacenamiento de objetos compatible con S3) para imágenes, vídeos y PDFs.
"""

from minio import Minio

from app.configs.settings import settings


def get_minio() -> Minio:
    return Minio(
        endpoint=settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_SECURE,
    )


def ensure_bucket(client: Minio, bucket: str) -> None:
    if not client.bucket_exists(bucket_name=bucket):
        client.make_bucket(bucket_name=bucket)
