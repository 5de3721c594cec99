"""Local image helpers: upload downscaling and the title band overlay."""
from __future__ import annotations

from io import BytesIO

from PIL import Image, ImageDraw, ImageFont, ImageOps

from kidsposter.schemas import TitleLayout

MAX_UPLOAD_SIDE = 1024
JPEG_QUALITY = 80

TITLE_BAND_HEIGHT = 140
TITLE_MIN_FONT_SIZE = 20
TITLE_FONT_RATIO = 0.035
TITLE_COLOR = "#111827"
BAND_COLOR = "#ffffff"
TITLE_FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")


def _flatten(image: Image.Image) -> Image.Image:
    """Drop alpha onto white so the result can be saved as JPEG."""

    if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, BAND_COLOR)
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return image.convert("RGB")


def downscale_image(data: bytes, max_side: int = MAX_UPLOAD_SIDE, quality: int = JPEG_QUALITY) -> bytes:
    """Shrink *data* so its longer side is at most *max_side*.

    Images already within bounds are returned as-is (the same object, never
    re-encoded).  Larger images are resized proportionally and re-encoded as
    JPEG with any EXIF rotation applied to the pixels.
    """

    with Image.open(BytesIO(data)) as source:
        # Phone photos store rotation in EXIF; measure the upright image.
        image = ImageOps.exif_transpose(source)
        width, height = image.size
        scale = min(1.0, max_side / max(width, height))
        if scale >= 1:
            return data

        target = (max(1, round(width * scale)), max(1, round(height * scale)))
        resized = _flatten(image).resize(target, Image.Resampling.LANCZOS)

    buffer = BytesIO()
    resized.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def title_layout(width: int, height: int) -> TitleLayout:
    font_size = max(TITLE_MIN_FONT_SIZE, round(width * TITLE_FONT_RATIO))
    return TitleLayout(
        width=width,
        height=height + TITLE_BAND_HEIGHT,
        band_height=TITLE_BAND_HEIGHT,
        font_size=font_size,
        text_x=width / 2,
        text_y=height + TITLE_BAND_HEIGHT / 2,
    )


def _load_font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    for candidate in TITLE_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def overlay_title(poster: bytes, title: str) -> bytes:
    """Add a white band under *poster* with *title* centred in it.

    A blank title returns *poster* unchanged.  Otherwise the result is a new
    PNG whose geometry comes from :func:`title_layout`.
    """

    text = title.strip()
    if not text:
        return poster

    with Image.open(BytesIO(poster)) as source:
        source.load()
        layout = title_layout(*source.size)
        canvas = Image.new("RGB", (layout.width, layout.height), BAND_COLOR)
        if source.mode in ("RGBA", "LA"):
            rgba = source.convert("RGBA")
            canvas.paste(rgba, (0, 0), mask=rgba.split()[-1])
        else:
            canvas.paste(source.convert("RGB"), (0, 0))

    draw = ImageDraw.Draw(canvas)
    font = _load_font(layout.font_size)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    origin = (
        layout.text_x - (right - left) / 2 - left,
        layout.text_y - (bottom - top) / 2 - top,
    )
    draw.text(origin, text, fill=TITLE_COLOR, font=font)

    buffer = BytesIO()
    canvas.save(buffer, format="PNG")
    return buffer.getvalue()


__all__ = [
    "MAX_UPLOAD_SIDE",
    "TITLE_BAND_HEIGHT",
    "downscale_image",
    "title_layout",
    "overlay_title",
]
