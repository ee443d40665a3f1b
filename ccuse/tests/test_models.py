"""Tests for profile and store document schemas."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ccuse.models.schemas import (
    LaunchPlan,
    Permissions,
    Profile,
    ProfileSource,
    ProfileStoreDocument,
    validate_profile_name,
)


class TestProfile:
    """Test suite for the Profile model."""

    def test_defaults(self):
        """Test that optional fields default to empty or unset."""
        profile = Profile(name="work")

        assert profile.executable_path is None
        assert profile.extra_args == []
        assert profile.env == {}
        assert profile.permissions == Permissions()
        assert profile.permissions.enabled is False
        assert profile.enabled_plugins == set()
        assert profile.always_thinking_enabled is None
        assert profile.api_timeout_ms is None
        assert profile.is_default is False
        assert profile.source is None

    def test_is_default_not_serialized(self):
        """Test that the derived default flag never reaches the document."""
        profile = Profile(name="work", is_default=True)

        assert "is_default" not in profile.model_dump()
        assert "is_default" not in profile.model_dump(mode="json")

    def test_sets_serialize_sorted(self):
        """Test that set fields serialize as sorted lists."""
        profile = Profile(
            name="work",
            enabled_plugins={"zeta", "alpha"},
            permissions=Permissions(mcp={"b", "a"}, command={"ls", "cat"}),
        )

        data = profile.model_dump(mode="json")
        assert data["enabled_plugins"] == ["alpha", "zeta"]
        assert data["permissions"]["mcp"] == ["a", "b"]
        assert data["permissions"]["command"] == ["cat", "ls"]

    def test_source_stored_as_value(self):
        profile = Profile(name="work", source=ProfileSource.CC_SWITCH)
        assert profile.source == "cc-switch"

    @pytest.mark.parametrize(
        "name", ["", "   ", ".", "..", ".hidden", "a/b", "a\\b", "a\nb"]
    )
    def test_invalid_names_rejected(self, name):
        """Test that names unusable as a directory segment are rejected."""
        with pytest.raises(ValidationError):
            Profile(name=name)

    def test_name_with_spaces_allowed(self):
        assert validate_profile_name("my work") == "my work"

    def test_api_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Profile(name="work", api_timeout_ms=0)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            Profile(name="work", colour="blue")

    def test_label_falls_back_to_name(self):
        assert Profile(name="work").label == "work"
        assert Profile(name="my_work", display_name="my work").label == "my work"


class TestProfileStoreDocument:
    """Test suite for the store document model."""

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate profile name"):
            ProfileStoreDocument(profiles=[Profile(name="a"), Profile(name="a")])

    def test_default_must_exist(self):
        with pytest.raises(ValidationError, match="does not exist"):
            ProfileStoreDocument(default="missing", profiles=[Profile(name="a")])

    @pytest.mark.parametrize("flag", [True, False])
    def test_per_profile_default_flag_rejected(self, flag):
        """Test that a stored profile cannot carry its own default flag."""
        data = {"version": 1, "profiles": [{"name": "a", "is_default": flag}]}

        with pytest.raises(ValidationError, match="has 'is_default'"):
            ProfileStoreDocument.model_validate(data)

    def test_profile_objects_with_default_flag_accepted(self):
        document = ProfileStoreDocument(
            default="a", profiles=[Profile(name="a", is_default=True)]
        )

        assert "is_default" not in document.to_json_dict()["profiles"][0]

    def test_json_dict(self):
        """Test the persisted shape of the document."""
        document = ProfileStoreDocument(default="a", profiles=[Profile(name="a")])

        data = document.to_json_dict()
        assert data["version"] == 1
        assert data["default"] == "a"
        assert [p["name"] for p in data["profiles"]] == ["a"]
        assert "is_default" not in data["profiles"][0]


class TestLaunchPlan:
    """Test suite for LaunchPlan argv assembly."""

    def test_argv_with_settings_and_args(self):
        plan = LaunchPlan(
            executable="claude",
            args=["--foo", "--bar"],
            env={},
            settings_path=Path("/cfg/work/settings.json"),
            profile_name="work",
        )

        assert plan.argv == [
            "claude",
            "--settings",
            "/cfg/work/settings.json",
            "--foo",
            "--bar",
        ]

    def test_argv_with_bypass(self):
        plan = LaunchPlan(
            executable="claude",
            args=["--foo"],
            env={},
            settings_path=Path("/cfg/work/settings.json"),
            profile_name="work",
            bypass_permissions=True,
        )

        assert plan.argv == [
            "claude",
            "--settings",
            "/cfg/work/settings.json",
            "--dangerously-skip-permissions",
            "--foo",
        ]
