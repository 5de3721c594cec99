"""Fast and standard generation profiles."""
from __future__ import annotations

from kidsposter.schemas import GenerationProfile

FAST_PROFILE = GenerationProfile(name="fast", size="1024x1024", timeout_seconds=9.0)
STANDARD_PROFILE = GenerationProfile(name="standard", size="1024x1536", timeout_seconds=45.0)


def resolve_profile(*, fast_requested: bool, serverless: bool) -> GenerationProfile:
    """Pick the profile before the call: short square output on serverless or on request."""

    if fast_requested or serverless:
        return FAST_PROFILE
    return STANDARD_PROFILE


__all__ = ["FAST_PROFILE", "STANDARD_PROFILE", "resolve_profile"]
