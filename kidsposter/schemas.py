"""Pydantic models shared by the HTTP layer, the pipeline and the CLI."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_STYLE = "Cut-out modern poster"
DEFAULT_ACCENT = "#E63946"

# Styles offered by the client; the server accepts any label.
STYLE_OPTIONS = ("Matisse-esque", "Bauhaus", "Mid-century", "Minimalist")


class GenerationRequest(BaseModel):
    """One upload plus the options that shape its prompt."""

    model_config = ConfigDict(frozen=True)

    image_bytes: bytes = Field(..., repr=False, description="Source drawing")
    image_filename: str = Field("input.jpg", description="Filename sent to the image API")
    image_content_type: str = Field("image/jpeg", description="MIME type of the source drawing")
    style: str = Field(DEFAULT_STYLE, description="Style label injected into the prompt")
    accent_color: str = Field(DEFAULT_ACCENT, description="Palette accent, usually hex")
    allow_shapes: bool = Field(False, description="Permit subtle abstract cut-out shapes")
    ai_text: bool = Field(False, description="Ask the model to render the title")
    title_text: str = Field("", description="Poster title")


class GenerationProfile(BaseModel):
    """Output size and deadline for the image API call."""

    model_config = ConfigDict(frozen=True)

    name: Literal["fast", "standard"]
    size: str = Field(..., description="Requested output size, WIDTHxHEIGHT")
    timeout_seconds: float = Field(..., gt=0, description="Deadline for the edit call")


class StoredPosterRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    storage_key: str = Field(..., description="Object key inside the bucket")
    public_url: str = Field(..., description="Caller-resolvable URL of the poster")


class GeneratePosterResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    poster_url: str = Field(..., alias="posterUrl")


class ErrorResponse(BaseModel):
    error: str


class TitleLayout(BaseModel):
    """Geometry of the locally rendered title band."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    band_height: int
    font_size: int
    text_x: float
    text_y: float


__all__ = [
    "DEFAULT_STYLE",
    "DEFAULT_ACCENT",
    "STYLE_OPTIONS",
    "GenerationRequest",
    "GenerationProfile",
    "StoredPosterRef",
    "GeneratePosterResponse",
    "ErrorResponse",
    "TitleLayout",
]
