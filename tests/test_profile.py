import pytest

from leptosbuild.profile import Profile


def test_debug_profile_adds_no_args():
    profile = Profile.new(False, None, None)
    assert str(profile) == "debug"
    assert profile.cargo_args() == []


def test_release_profile_adds_release_flag():
    profile = Profile.new(True, None, None)
    assert str(profile) == "release"
    assert profile.cargo_args() == ["--release"]


@pytest.mark.parametrize(
    "is_release, release, debug, expected",
    [
        (True, "fast", "slow", "fast"),
        (False, "fast", "slow", "slow"),
    ],
)
def test_named_profile_is_selected(is_release, release, debug, expected):
    profile = Profile.new(is_release, release, debug)
    assert str(profile) == expected
    assert profile.cargo_args() == [f"--profile={expected}"]


def test_custom_profile_named_release_uses_profile_flag():
    profile = Profile.new(True, "release", None)
    assert profile.cargo_args() == ["--profile=release"]


def test_release_name_ignored_when_not_release():
    profile = Profile.new(False, "fast", None)
    assert profile == Profile("debug")