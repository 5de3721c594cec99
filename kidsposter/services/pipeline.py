"""Request orchestration: configuration check, prompt, image edit, publish."""
from __future__ import annotations

import logging
import time

from starlette.concurrency import run_in_threadpool

from kidsposter.config import Settings
from kidsposter.errors import ConfigurationError, InputValidationError
from kidsposter.schemas import (
    DEFAULT_ACCENT,
    DEFAULT_STYLE,
    GenerationProfile,
    GenerationRequest,
    StoredPosterRef,
)
from kidsposter.services.openai_image import edit_image
from kidsposter.services.prompt import build_prompt
from kidsposter.services.storage import publish_poster

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image uploaded"


def ensure_configured(settings: Settings) -> None:
    """Fail before any external work when credentials or storage are missing."""

    if not settings.openai.is_configured:
        raise ConfigurationError("Missing OPENAI_API_KEY")
    if not settings.storage.is_configured:
        raise ConfigurationError("Missing storage configuration")


def _form_flag(value: str | None) -> bool:
    return (value or "").strip() == "true"


def build_request(
    image_bytes: bytes | None,
    *,
    filename: str | None = None,
    content_type: str | None = None,
    style: str | None = None,
    palette_accent: str | None = None,
    allow_shapes: str | None = None,
    ai_text: str | None = None,
    title_text: str | None = None,
) -> GenerationRequest:
    """Turn raw form values into a :class:`GenerationRequest`."""

    if not image_bytes:
        raise InputValidationError(NO_IMAGE_MESSAGE)

    return GenerationRequest(
        image_bytes=image_bytes,
        image_filename=filename or "input.jpg",
        image_content_type=content_type or "image/jpeg",
        style=style or DEFAULT_STYLE,
        accent_color=palette_accent or DEFAULT_ACCENT,
        allow_shapes=_form_flag(allow_shapes),
        ai_text=_form_flag(ai_text),
        title_text=title_text or "",
    )


async def run_generation(
    request: GenerationRequest,
    profile: GenerationProfile,
    settings: Settings,
    *,
    trace_id: str | None = None,
) -> StoredPosterRef:
    prompt = build_prompt(request)
    started = time.monotonic()
    image = await edit_image(request, prompt, profile, settings.openai, trace_id=trace_id)
    logger.info(
        "poster generated",
        extra={
            "trace": trace_id,
            "profile": profile.name,
            "result_bytes": len(image),
            "dur_ms": int((time.monotonic() - started) * 1000),
        },
    )

    # boto3 blocks; keep it off the event loop.
    return await run_in_threadpool(publish_poster, image, settings.storage)


__all__ = ["NO_IMAGE_MESSAGE", "ensure_configured", "build_request", "run_generation"]
