"""ASGI middlewares for the poster service."""
from __future__ import annotations

from kidsposter.middlewares.upload_guard import UploadGuardMiddleware

__all__ = ["UploadGuardMiddleware"]
