from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from kidsposter.config import get_settings

_ENV_VARS = (
    "ENVIRONMENT",
    "ALLOWED_ORIGINS",
    "VERCEL",
    "SERVERLESS",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_IMAGE_MODEL",
    "OPENAI_PROXY",
    "S3_ENDPOINT",
    "S3_ACCESS_KEY",
    "S3_SECRET_KEY",
    "S3_REGION",
    "S3_BUCKET",
    "S3_PUBLIC_BASE",
    "SUPABASE_URL",
    "NEXT_PUBLIC_SUPABASE_URL",
    "SUPABASE_BUCKET",
    "UPLOAD_MAX_BYTES",
)


def make_image_bytes(
    size: tuple[int, int] = (64, 64),
    color: tuple[int, ...] = (255, 0, 0),
    *,
    mode: str = "RGB",
    fmt: str = "PNG",
) -> bytes:
    image = Image.new(mode, size, color)
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture()
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture()
def configured_env(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-test")
    clean_env.setenv("S3_ENDPOINT", "https://storage.example.com")
    clean_env.setenv("S3_ACCESS_KEY", "access")
    clean_env.setenv("S3_SECRET_KEY", "secret")
    clean_env.setenv("S3_BUCKET", "kids-posters")
    clean_env.setenv("S3_PUBLIC_BASE", "https://cdn.example.com/kids-posters")
    get_settings.cache_clear()
    return clean_env


@pytest.fixture()
def image_bytes():
    """Factory building encoded test images."""

    return make_image_bytes
