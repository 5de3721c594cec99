from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple
from urllib.parse import urlparse

DEFAULT_BUCKET = "kids-posters"
DEFAULT_IMAGE_MODEL = "gpt-image-1"
DEFAULT_UPLOAD_MAX_BYTES = 20_000_000


def _as_bool(value: str | None, default: bool) -> bool:
    """Interpret common truthy / falsy strings while providing a default."""

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value is None:
            continue
        text = value.strip()
        if text:
            return text
    return None


def _parse_allowed_origins(raw: str | None) -> Tuple[str, ...]:
    """Normalise comma-separated origins into values accepted by CORSMiddleware."""

    if not raw:
        return ("*",)

    cleaned: list[str] = []
    for origin in raw.split(","):
        value = origin.strip()
        if not value:
            continue
        if value == "*":
            return ("*",)

        parsed = urlparse(value)
        if parsed.scheme and parsed.netloc:
            normalised = f"{parsed.scheme}://{parsed.netloc}"
        else:
            normalised = value.rstrip("/")

        if normalised not in cleaned:
            cleaned.append(normalised)

    return tuple(cleaned) or ("*",)


@dataclass(frozen=True)
class OpenAIConfig:
    api_key: str | None = None
    base_url: str | None = None
    model: str = DEFAULT_IMAGE_MODEL
    proxy: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class StorageConfig:
    endpoint: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    region: str = "auto"
    bucket: str = DEFAULT_BUCKET
    public_base: str | None = None

    @property
    def is_configured(self) -> bool:
        # No endpoint means AWS S3 itself.
        return bool(self.access_key and self.secret_key and self.bucket)

    @classmethod
    def from_env(cls) -> "StorageConfig":
        bucket = _env("S3_BUCKET", "SUPABASE_BUCKET") or DEFAULT_BUCKET
        endpoint = _env("S3_ENDPOINT")
        public_base = _env("S3_PUBLIC_BASE")

        # Supabase Storage speaks S3; derive both URLs from the project URL.
        supabase_url = _env("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
        if supabase_url:
            root = supabase_url.rstrip("/")
            endpoint = endpoint or f"{root}/storage/v1/s3"
            public_base = public_base or f"{root}/storage/v1/object/public/{bucket}"

        return cls(
            endpoint=endpoint,
            access_key=_env("S3_ACCESS_KEY"),
            secret_key=_env("S3_SECRET_KEY"),
            region=_env("S3_REGION") or ("auto" if endpoint else "us-east-1"),
            bucket=bucket,
            public_base=public_base,
        )


@dataclass(frozen=True)
class GuardConfig:
    max_body_bytes: int

    @classmethod
    def from_env(cls) -> "GuardConfig":
        raw_max = os.getenv("UPLOAD_MAX_BYTES", str(DEFAULT_UPLOAD_MAX_BYTES))
        try:
            max_bytes = max(int(raw_max), 0)
        except (TypeError, ValueError):
            max_bytes = DEFAULT_UPLOAD_MAX_BYTES
        return cls(max_body_bytes=max_bytes)


@dataclass(frozen=True)
class Settings:
    environment: str
    allowed_origins: Tuple[str, ...]
    serverless: bool
    openai: OpenAIConfig
    storage: StorageConfig
    guard: GuardConfig


@lru_cache()
def get_settings() -> Settings:
    """Read the process configuration once; call ``cache_clear`` to reload."""

    openai_cfg = OpenAIConfig(
        api_key=_env("OPENAI_API_KEY"),
        base_url=_env("OPENAI_BASE_URL"),
        model=_env("OPENAI_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
        proxy=_env("OPENAI_PROXY"),
    )

    # Hosted serverless runtimes cap request time, so they get the fast profile.
    serverless = bool(_env("VERCEL")) or _as_bool(_env("SERVERLESS"), False)

    return Settings(
        environment=_env("ENVIRONMENT") or "development",
        allowed_origins=_parse_allowed_origins(_env("ALLOWED_ORIGINS")),
        serverless=serverless,
        openai=openai_cfg,
        storage=StorageConfig.from_env(),
        guard=GuardConfig.from_env(),
    )
