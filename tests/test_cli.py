from __future__ import annotations

from io import BytesIO

import httpx
import pytest
from PIL import Image

from kidsposter import cli
from kidsposter.services.imaging import TITLE_BAND_HEIGHT

API_URL = "http://poster.test"
POSTER_URL = "https://cdn.example.com/kids-posters/posters/abc.png"


def _install_transport(monkeypatch, handler) -> list[httpx.Request]:
    seen: list[httpx.Request] = []
    real_client = httpx.Client

    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(recording)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(cli.httpx, "Client", factory)
    return seen


def test_prepare_upload_rejects_non_images(tmp_path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("hello")

    with pytest.raises(ValueError, match="PNG or JPG"):
        cli.prepare_upload(path)


def test_prepare_upload_keeps_small_drawings(tmp_path, image_bytes) -> None:
    path = tmp_path / "drawing.png"
    path.write_bytes(image_bytes((100, 80)))

    filename, data, content_type = cli.prepare_upload(path)

    assert (filename, content_type) == ("drawing.png", "image/png")
    assert data == path.read_bytes()


def test_prepare_upload_downscales_large_drawings_to_jpeg(tmp_path, image_bytes) -> None:
    path = tmp_path / "big.png"
    path.write_bytes(image_bytes((3000, 1500)))

    filename, data, content_type = cli.prepare_upload(path)

    assert (filename, content_type) == ("big.jpg", "image/jpeg")
    assert Image.open(BytesIO(data)).size == (1024, 512)


def test_prepare_upload_sends_unreadable_images_unchanged(tmp_path) -> None:
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\x00\x00\x00\x18ftypheic not something Pillow decodes")

    filename, data, content_type = cli.prepare_upload(path)

    assert (filename, content_type) == ("photo.jpg", "image/jpeg")
    assert data == path.read_bytes()


def test_main_uploads_undecodable_drawing_as_is(monkeypatch, tmp_path, image_bytes) -> None:
    drawing = tmp_path / "photo.jpg"
    drawing.write_bytes(b"not really a jpeg")
    output = tmp_path / "poster.png"

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json={"posterUrl": POSTER_URL})
        return httpx.Response(200, content=image_bytes((32, 32)))

    seen = _install_transport(monkeypatch, handler)

    code = cli.main([str(drawing), "--api-url", API_URL, "--output", str(output)])

    assert code == 0
    assert b'name="image"; filename="photo.jpg"' in seen[0].content
    assert b"not really a jpeg" in seen[0].content


def test_build_form_matches_server_field_names() -> None:
    args = cli.parse_args(["d.png", "--no-shapes", "--ai-text", "--title", "Sun", "--style", "Bauhaus"])

    assert cli.build_form(args) == {
        "style": "Bauhaus",
        "paletteAccent": "#E63946",
        "allowShapes": "false",
        "aiText": "true",
        "titleText": "Sun",
    }


def test_defaults_mirror_the_upload_form() -> None:
    args = cli.parse_args(["d.png"])

    assert args.style == "Matisse-esque"
    assert args.shapes is True
    assert args.ai_text is False
    assert args.overlay is True
    assert args.fast is False


def test_main_generates_downloads_and_overlays(monkeypatch, tmp_path, image_bytes, capsys) -> None:
    drawing = tmp_path / "drawing.png"
    drawing.write_bytes(image_bytes((64, 64)))
    poster = image_bytes((200, 300), (10, 120, 200))
    output = tmp_path / "poster.png"

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json={"posterUrl": POSTER_URL})
        return httpx.Response(200, content=poster)

    seen = _install_transport(monkeypatch, handler)

    code = cli.main([str(drawing), "--api-url", API_URL, "--title", "Our Garden", "--fast", "--output", str(output)])

    assert code == 0
    post, get = seen
    assert str(post.url) == f"{API_URL}/api/generate?fast=1"
    assert b'name="allowShapes"' in post.content
    assert b'name="image"; filename="drawing.png"' in post.content
    assert str(get.url) == POSTER_URL
    assert Image.open(output).size == (200, 300 + TITLE_BAND_HEIGHT)
    assert "Done! Poster generated." in capsys.readouterr().out


def test_main_without_overlay_saves_poster_as_is(monkeypatch, tmp_path, image_bytes) -> None:
    drawing = tmp_path / "drawing.png"
    drawing.write_bytes(image_bytes((64, 64)))
    poster = image_bytes((200, 300))
    output = tmp_path / "poster.png"

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json={"posterUrl": POSTER_URL})
        return httpx.Response(200, content=poster)

    _install_transport(monkeypatch, handler)

    code = cli.main([str(drawing), "--api-url", API_URL, "--title", "Sun", "--no-overlay", "--output", str(output)])

    assert code == 0
    assert output.read_bytes() == poster


def test_main_reports_server_error_and_keeps_previous_output(monkeypatch, tmp_path, image_bytes, capsys) -> None:
    drawing = tmp_path / "drawing.png"
    drawing.write_bytes(image_bytes((64, 64)))
    output = tmp_path / "poster.png"
    output.write_bytes(b"previous poster")

    _install_transport(
        monkeypatch,
        lambda request: httpx.Response(502, json={"error": "OpenAI returned no image"}),
    )

    code = cli.main([str(drawing), "--api-url", API_URL, "--output", str(output)])

    assert code == 1
    assert "Generation failed: OpenAI returned no image" in capsys.readouterr().err
    assert output.read_bytes() == b"previous poster"


def test_request_poster_requires_poster_url() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))

    with httpx.Client(transport=transport) as client:
        with pytest.raises(cli.GenerationFailed, match="No posterUrl"):
            cli.request_poster(client, API_URL, ("d.png", b"x", "image/png"), {})


def test_request_poster_falls_back_to_status_for_non_json_errors() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="<html>oops</html>"))

    with httpx.Client(transport=transport) as client:
        with pytest.raises(cli.GenerationFailed, match="Server error 500"):
            cli.request_poster(client, API_URL, ("d.png", b"x", "image/png"), {})
