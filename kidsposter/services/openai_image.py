# -*- coding: utf-8 -*-
"""
OpenAI image-edit helper used by the poster pipeline.
- Builds an AsyncOpenAI client with retries disabled (one attempt per request).
- A proxy, when configured, goes into an injected httpx.AsyncClient.
- The whole call runs under the profile deadline and is cancelled on expiry.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from typing import Any, Optional

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from kidsposter.config import OpenAIConfig
from kidsposter.errors import (
    ConfigurationError,
    GenerationTimeoutError,
    UpstreamProtocolError,
    UpstreamTransportError,
)
from kidsposter.schemas import GenerationProfile, GenerationRequest

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "OpenAI returned no image"


def _build_openai_client(config: OpenAIConfig, timeout: float) -> AsyncOpenAI:
    """
    Build the SDK client for one request.
      - max_retries=0: failures surface immediately
      - proxy goes only into httpx.AsyncClient(proxy=...), handed over as http_client
      - closing the SDK client also closes the injected http_client
    """
    if not config.api_key:
        raise ConfigurationError("Missing OPENAI_API_KEY")

    kw: dict[str, Any] = {"api_key": config.api_key, "max_retries": 0, "timeout": timeout}
    if config.base_url:
        kw["base_url"] = config.base_url
    if config.proxy:
        kw["http_client"] = httpx.AsyncClient(
            proxy=config.proxy,
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
        )

    return AsyncOpenAI(**kw)


def _extract_image_bytes(response: Any) -> bytes:
    data = getattr(response, "data", None) or []
    b64_png: Optional[str] = getattr(data[0], "b64_json", None) if data else None
    if not b64_png:
        raise UpstreamProtocolError(NO_IMAGE_MESSAGE)
    try:
        return base64.b64decode(b64_png, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise UpstreamProtocolError(NO_IMAGE_MESSAGE) from exc


async def edit_image(
    request: GenerationRequest,
    prompt: str,
    profile: GenerationProfile,
    config: OpenAIConfig,
    *,
    trace_id: str | None = None,
) -> bytes:
    """Send the drawing and prompt to ``/images/edits``; return the PNG bytes."""

    client = _build_openai_client(config, profile.timeout_seconds)
    image_part = (request.image_filename, request.image_bytes, request.image_content_type)

    logger.info(
        "openai edit request",
        extra={
            "trace": trace_id,
            "model": config.model,
            "size": profile.size,
            "profile": profile.name,
            "timeout_s": profile.timeout_seconds,
            "image_bytes": len(request.image_bytes),
            "prompt_len": len(prompt),
        },
    )
    try:
        response = await asyncio.wait_for(
            client.images.edit(
                model=config.model,
                image=image_part,
                prompt=prompt,
                size=profile.size,
            ),
            timeout=profile.timeout_seconds,
        )
    except (asyncio.TimeoutError, APITimeoutError) as exc:
        logger.warning(
            "openai edit timed out",
            extra={"trace": trace_id, "timeout_s": profile.timeout_seconds},
        )
        raise GenerationTimeoutError() from exc
    except APIStatusError as exc:
        body = exc.response.text if exc.response is not None else str(exc)
        logger.warning(
            "openai edit rejected",
            extra={"trace": trace_id, "status": exc.status_code},
        )
        raise UpstreamProtocolError(f"OpenAI error {exc.status_code}: {body}") from exc
    except APIConnectionError as exc:
        logger.warning("openai edit unreachable", extra={"trace": trace_id, "error": str(exc)})
        raise UpstreamTransportError(f"OpenAI request failed: {exc}") from exc
    finally:
        await client.close()

    return _extract_image_bytes(response)


__all__ = ["NO_IMAGE_MESSAGE", "edit_image"]
