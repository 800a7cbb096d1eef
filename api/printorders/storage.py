from typing import Optional, Tuple
from urllib.parse import quote
from minio import Minio
from minio.error import S3Error
from .config import MINIO_ENDPOINT, MINIO_ACCESS_KEY, MINIO_SECRET_KEY, MINIO_BUCKET, MINIO_SECURE, PUBLIC_BASE_URL
from .errors import NotFoundError
import io

MISSING_CODES = ("NoSuchKey", "NoSuchBucket", "NoSuchObject")

_client = Minio(
    MINIO_ENDPOINT,
    access_key=MINIO_ACCESS_KEY,
    secret_key=MINIO_SECRET_KEY,
    secure=MINIO_SECURE
)

def ensure_bucket():
    if not _client.bucket_exists(MINIO_BUCKET):
        _client.make_bucket(MINIO_BUCKET)

def put_bytes(key: str, data: bytes, content_type: str = "application/octet-stream"):
    ensure_bucket()
    _client.put_object(MINIO_BUCKET, key, io.BytesIO(data), length=len(data), content_type=content_type)

def get_blob(key: str) -> Tuple[bytes, Optional[str]]:
    try:
        resp = _client.get_object(MINIO_BUCKET, key)
    except S3Error as exc:
        if exc.code in MISSING_CODES:
            raise NotFoundError("File not found") from exc
        raise
    try:
        data = resp.read()
        content_type = resp.headers.get("Content-Type")
    finally:
        resp.close()
        resp.release_conn()
    return data, content_type

def delete_object(key: str):
    _client.remove_object(MINIO_BUCKET, key)

def public_url(key: str) -> str:
    return f"{PUBLIC_BASE_URL}/files/{quote(key)}"
