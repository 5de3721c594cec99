import pytest

from kidsposter.services.profiles import FAST_PROFILE, STANDARD_PROFILE, resolve_profile


@pytest.mark.parametrize(
    "fast_requested,serverless",
    [(True, False), (False, True), (True, True)],
)
def test_fast_profile_is_square_and_short(fast_requested: bool, serverless: bool) -> None:
    profile = resolve_profile(fast_requested=fast_requested, serverless=serverless)

    assert profile is FAST_PROFILE
    assert profile.size == "1024x1024"
    assert profile.timeout_seconds == 9.0


def test_standard_profile_is_portrait_and_long() -> None:
    profile = resolve_profile(fast_requested=False, serverless=False)

    assert profile is STANDARD_PROFILE
    assert profile.size == "1024x1536"
    assert profile.timeout_seconds == 45.0
