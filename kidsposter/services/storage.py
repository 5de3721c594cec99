"""S3-compatible storage for generated posters (R2, Supabase Storage, AWS)."""
from __future__ import annotations

import logging
import uuid
from functools import lru_cache

import boto3
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from kidsposter.config import StorageConfig
from kidsposter.errors import ConfigurationError, StorageResolutionError, StorageWriteError
from kidsposter.schemas import StoredPosterRef

logger = logging.getLogger(__name__)

POSTER_FOLDER = "posters"
POSTER_CONTENT_TYPE = "image/png"


@lru_cache(maxsize=1)
def _session() -> boto3.session.Session:
    return boto3.session.Session()


@lru_cache(maxsize=4)
def _client(config: StorageConfig) -> BaseClient:
    if not config.is_configured:
        raise ConfigurationError("Missing storage configuration")
    return _session().client(
        "s3",
        endpoint_url=config.endpoint,
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        region_name=config.region,
    )


def get_client(config: StorageConfig) -> BaseClient:
    """Return the cached boto3 client for *config*."""

    return _client(config)


def make_poster_key() -> str:
    return f"{POSTER_FOLDER}/{uuid.uuid4().hex}.png"


def public_url_for(key: str, config: StorageConfig) -> str | None:
    base = config.public_base
    if not base:
        return None
    return f"{base.rstrip('/')}/{key.lstrip('/')}"


def put_bytes(key: str, data: bytes, config: StorageConfig, *, content_type: str) -> None:
    """Write *data* under *key*; an existing object with the same key is replaced."""

    client = get_client(config)
    try:
        client.put_object(
            Bucket=config.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
    except (ClientError, BotoCoreError) as exc:
        logger.warning(
            "storage put failed: bucket=%s key=%s err=%s", config.bucket, key, exc
        )
        raise StorageWriteError(f"Storage upload failed: {exc}") from exc


def publish_poster(data: bytes, config: StorageConfig) -> StoredPosterRef:
    """Upload a generated poster and resolve its public URL."""

    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("poster payload must be bytes")

    key = make_poster_key()
    put_bytes(key, bytes(data), config, content_type=POSTER_CONTENT_TYPE)

    url = public_url_for(key, config)
    if not url:
        raise StorageResolutionError("Could not resolve a public URL for the stored poster")

    logger.info(
        "poster stored",
        extra={"bucket": config.bucket, "key": key, "url": url, "size_bytes": len(data)},
    )
    return StoredPosterRef(storage_key=key, public_url=url)


__all__ = [
    "POSTER_FOLDER",
    "POSTER_CONTENT_TYPE",
    "get_client",
    "make_poster_key",
    "public_url_for",
    "put_bytes",
    "publish_poster",
]
