"""Command-line client for the poster service.

Mirrors the upload form:

1. Pick a drawing and shrink it so uploads stay small.
2. Submit it with the style options to ``POST /api/generate``.
3. Download the poster and, optionally, add a clean title band locally.

Example usage::

    kids-poster drawing.jpg --style Bauhaus --title "Our Garden" --output garden.png
    kids-poster drawing.png --fast --no-overlay --ai-text --title "Rocket"
"""
from __future__ import annotations

import argparse
import mimetypes
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import httpx
from PIL import Image, UnidentifiedImageError

from kidsposter.schemas import DEFAULT_ACCENT, STYLE_OPTIONS
from kidsposter.services.imaging import MAX_UPLOAD_SIDE, downscale_image, overlay_title

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_OUTPUT = Path("kids-poster.png")
REQUEST_TIMEOUT = httpx.Timeout(90.0, connect=10.0)


class GenerationFailed(RuntimeError):
    """The service answered with an error payload."""


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Turn a child's drawing into a living-room poster")
    parser.add_argument("drawing", type=Path, help="PNG or JPG drawing to upload")
    parser.add_argument("--api-url", default=DEFAULT_API_URL, help="Base URL of the poster service")
    parser.add_argument(
        "--style",
        default=STYLE_OPTIONS[0],
        help=f"Poster style, e.g. {', '.join(STYLE_OPTIONS)}",
    )
    parser.add_argument("--accent", default=DEFAULT_ACCENT, help="Palette accent colour (hex)")
    parser.add_argument(
        "--shapes",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Allow a few subtle abstract cut-out shapes",
    )
    parser.add_argument("--ai-text", action="store_true", help="Ask the model to render the title")
    parser.add_argument("--title", default="", help="Poster title")
    parser.add_argument(
        "--overlay",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Draw the title locally under the poster",
    )
    parser.add_argument("--fast", action="store_true", help="Use the fast, square profile")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT, help="Where to save the poster")
    return parser.parse_args(argv)


def prepare_upload(path: Path) -> tuple[str, bytes, str]:
    """Return ``(filename, bytes, content_type)`` ready for the multipart form."""

    content_type, _ = mimetypes.guess_type(path.name)
    if not content_type or not content_type.startswith("image/"):
        raise ValueError("Please choose a PNG or JPG image.")

    raw = path.read_bytes()
    try:
        data = downscale_image(raw, MAX_UPLOAD_SIDE)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
        # Formats Pillow cannot read (HEIC, truncated files) go up unchanged.
        return path.name, raw, content_type
    if data is raw:
        return path.name, data, content_type
    return f"{path.stem}.jpg", data, "image/jpeg"


def build_form(args: argparse.Namespace) -> Dict[str, str]:
    return {
        "style": args.style,
        "paletteAccent": args.accent,
        "allowShapes": "true" if args.shapes else "false",
        "aiText": "true" if args.ai_text else "false",
        "titleText": args.title,
    }


def request_poster(
    client: httpx.Client,
    api_url: str,
    upload: tuple[str, bytes, str],
    form: Dict[str, str],
    *,
    fast: bool = False,
) -> str:
    """Call the service and return the poster URL."""

    params = {"fast": "1"} if fast else None
    response = client.post(
        f"{api_url.rstrip('/')}/api/generate",
        params=params,
        data=form,
        files={"image": upload},
    )
    try:
        payload: Any = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    if response.is_error:
        raise GenerationFailed(payload.get("error") or f"Server error {response.status_code}")
    poster_url = payload.get("posterUrl")
    if not poster_url:
        raise GenerationFailed("No posterUrl in response")
    return poster_url


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    try:
        upload = prepare_upload(args.drawing)
    except (OSError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1
    print(f"Selected: {args.drawing.name} → sending {round(len(upload[1]) / 1024)} KB")
    print("Generating…")

    try:
        with httpx.Client(timeout=REQUEST_TIMEOUT) as client:
            poster_url = request_poster(client, args.api_url, upload, build_form(args), fast=args.fast)
            download = client.get(poster_url)
            download.raise_for_status()
    except (GenerationFailed, httpx.HTTPError) as exc:
        print(f"Generation failed: {exc}", file=sys.stderr)
        return 1

    poster = download.content
    if args.overlay and args.title.strip():
        poster = overlay_title(poster, args.title)

    args.output.write_bytes(poster)
    print(f"Poster URL: {poster_url}")
    print(f"Done! Poster generated. Saved to {args.output}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
