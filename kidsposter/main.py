from __future__ import annotations

import logging
import os
import uuid
from typing import Any, Optional

from fastapi import FastAPI, File, Form, Query, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kidsposter import __version__
from kidsposter.config import get_settings
from kidsposter.errors import PosterServiceError, UnknownError
from kidsposter.middlewares import UploadGuardMiddleware
from kidsposter.schemas import ErrorResponse, GeneratePosterResponse
from kidsposter.services.pipeline import build_request, ensure_configured, run_generation
from kidsposter.services.profiles import resolve_profile

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Align uvicorn loggers with the service level.
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("uvicorn").setLevel(LOG_LEVEL)
logging.getLogger("uvicorn.error").setLevel(LOG_LEVEL)
logging.getLogger("uvicorn.access").setLevel(LOG_LEVEL)
logging.getLogger("kids-poster").setLevel(LOG_LEVEL)

logger = logging.getLogger("kids-poster")

settings = get_settings()

app = FastAPI(title="Kids Poster API", version=__version__)

app.add_middleware(UploadGuardMiddleware, max_body_bytes=settings.guard.max_body_bytes)
logger.info("UploadGuardMiddleware ready", extra={"max_body_bytes": settings.guard.max_body_bytes})

cors_allow_origins = list(settings.allowed_origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins,
    allow_credentials="*" not in cors_allow_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)


@app.exception_handler(PosterServiceError)
async def poster_error_handler(request: Request, exc: PosterServiceError) -> JSONResponse:
    logger.warning(
        "request failed",
        extra={
            "trace": getattr(request.state, "trace_id", None),
            "kind": exc.kind.value,
            "status": exc.status_code,
            "error": exc.message,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=exc.message).model_dump())


@app.exception_handler(RequestValidationError)
async def form_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


@app.get("/", include_in_schema=False)
def root() -> dict[str, Any]:
    return {"service": "kids-poster", "ok": True, "version": __version__}


@app.head("/", include_in_schema=False)
def root_head() -> Response:
    return Response(status_code=200)


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


def _ensure_trace_id(request: Request) -> str:
    trace = getattr(request.state, "trace_id", None)
    if not trace:
        trace = uuid.uuid4().hex[:8]
        request.state.trace_id = trace
    return trace


@app.post(
    "/api/generate",
    response_model=GeneratePosterResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def generate_poster(
    request: Request,
    fast: Optional[str] = Query(None, description="1 forces the fast profile"),
    image: Optional[UploadFile] = File(None),
    style: Optional[str] = Form(None),
    paletteAccent: Optional[str] = Form(None),
    allowShapes: Optional[str] = Form(None),
    aiText: Optional[str] = Form(None),
    titleText: Optional[str] = Form(None),
) -> JSONResponse:
    trace = _ensure_trace_id(request)
    current = get_settings()

    try:
        ensure_configured(current)

        image_bytes = await image.read() if image is not None else None
        generation_request = build_request(
            image_bytes,
            filename=image.filename if image is not None else None,
            content_type=image.content_type if image is not None else None,
            style=style,
            palette_accent=paletteAccent,
            allow_shapes=allowShapes,
            ai_text=aiText,
            title_text=titleText,
        )
        profile = resolve_profile(fast_requested=fast == "1", serverless=current.serverless)

        logger.info(
            "generate request received",
            extra={
                "trace": trace,
                "image_bytes": len(generation_request.image_bytes),
                "style": generation_request.style,
                "accent": generation_request.accent_color,
                "allow_shapes": generation_request.allow_shapes,
                "ai_text": generation_request.ai_text,
                "has_title": bool(generation_request.title_text.strip()),
                "profile": profile.name,
            },
        )

        stored = await run_generation(generation_request, profile, current, trace_id=trace)
    except PosterServiceError:
        raise
    except Exception as exc:
        logger.exception("generate request crashed", extra={"trace": trace})
        raise UnknownError.from_exception(exc) from exc

    logger.info(
        "generate request completed",
        extra={"trace": trace, "key": stored.storage_key, "url": stored.public_url},
    )
    payload = GeneratePosterResponse(poster_url=stored.public_url)
    return JSONResponse(content=payload.model_dump(by_alias=True))


__all__ = ["app"]
