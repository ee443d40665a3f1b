"""Tests for the cc-switch importer and additive merge."""

import json
import sqlite3
from datetime import datetime, timezone

import pytest

from ccuse.exceptions import SourceNotFoundError, SourceReadError
from ccuse.importers import (
    CandidateProfile,
    CcSwitchSource,
    import_from,
    merge,
    settings_to_fields,
)
from ccuse.models.schemas import Profile, ProfileSource

WORK_SETTINGS = {
    "env": {"ANTHROPIC_API_KEY": "sk-work", "ANTHROPIC_BASE_URL": "https://api.example"},
    "permissions": {
        "enabled": True,
        "mcp": ["fs", {"name": "github", "enabled": True}, {"name": "old", "enabled": False}],
        "command": ["ls"],
    },
    "enabledPlugins": {"docs": True, "retired": False},
    "alwaysThinkingEnabled": True,
    "apiTimeoutMs": 300000,
}

# 2023-11-14T22:13:20Z
CREATED_AT_MS = 1700000000000


def _rows():
    return [
        ("p1", "claude", "My Work", json.dumps(WORK_SETTINGS), CREATED_AT_MS),
        ("p2", "codex", "Codex", json.dumps({"env": {}}), CREATED_AT_MS),
        ("p3", "claude", "Broken", "{not json", CREATED_AT_MS),
        ("p4", "claude", "Personal", json.dumps({"env": {"K": "v"}}), None),
    ]


class TestCcSwitchSource:
    """Test suite for reading the cc-switch database."""

    def test_scan_maps_claude_providers(self, make_ccswitch_db):
        source = CcSwitchSource(make_ccswitch_db(_rows()))

        result = source.scan()

        assert [c.name for c in result] == ["My_Work", "Personal"]
        assert len(result) == 2

        work = result.candidates[0]
        assert work.original_name == "My Work"
        assert work.source_id == "p1"
        assert work.created_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert result.candidates[1].created_at is None

    def test_scan_reports_unsupported_and_unparsable(self, make_ccswitch_db):
        """Test that bad rows are skipped and reported, not fatal."""
        result = CcSwitchSource(make_ccswitch_db(_rows())).scan()

        skipped = {entry.identifier: entry.reason for entry in result.skipped}
        assert set(skipped) == {"p2", "p3"}
        assert "unsupported app_type" in skipped["p2"]
        assert "not valid JSON" in skipped["p3"]

    def test_non_object_settings_skipped(self, make_ccswitch_db):
        result = CcSwitchSource(
            make_ccswitch_db([("p1", "claude", "List", "[1, 2]", None)])
        ).scan()

        assert len(result) == 0
        assert "not a JSON object" in result.skipped[0].reason

    def test_missing_database(self, tmp_path):
        source = CcSwitchSource(tmp_path / "absent.db")

        assert source.exists() is False
        with pytest.raises(SourceNotFoundError):
            source.scan()

    def test_unreadable_database(self, tmp_path):
        """Test that a database without the providers table is a read error."""
        path = tmp_path / "other.db"
        connection = sqlite3.connect(path)
        connection.execute("CREATE TABLE settings (key TEXT, value TEXT)")
        connection.commit()
        connection.close()

        with pytest.raises(SourceReadError):
            CcSwitchSource(path).scan()

    def test_scan_does_not_modify_database(self, make_ccswitch_db):
        path = make_ccswitch_db(_rows())
        before = path.read_bytes()

        CcSwitchSource(path).scan()

        assert path.read_bytes() == before


class TestCandidateProfile:
    """Test suite for deriving profiles from candidates."""

    def test_to_profile(self):
        created = datetime(2023, 11, 14, tzinfo=timezone.utc)
        candidate = CandidateProfile(
            source_id="p1",
            original_name="My Work",
            settings=WORK_SETTINGS,
            created_at=created,
        )

        profile = candidate.to_profile()

        assert profile.name == "My_Work"
        assert profile.display_name == "My Work"
        assert profile.env == WORK_SETTINGS["env"]
        assert profile.permissions.enabled is True
        assert profile.permissions.mcp == {"fs", "github"}
        assert profile.permissions.command == {"ls"}
        assert profile.enabled_plugins == {"docs"}
        assert profile.always_thinking_enabled is True
        assert profile.api_timeout_ms == 300000
        assert profile.source == ProfileSource.CC_SWITCH
        assert profile.created_at == created
        assert profile.updated_at == created

    def test_invalid_env_rejected(self):
        candidate = CandidateProfile("p1", "bad", {"env": ["not", "a", "map"]})

        with pytest.raises(ValueError, match="'env' must be an object"):
            candidate.to_profile()

    @pytest.mark.parametrize(
        "settings",
        [
            {"permissions": {"command": "git status"}},
            {"permissions": {"mcp": "github"}},
            {"permissions": {"command": ["ls", 3]}},
            {"permissions": {"enabled": "false"}},
            {"permissions": {"enabled": 1}},
            {"permissions": {"mcp": [{"name": "fs", "enabled": "no"}]}},
            {"permissions": {"mcp": [{"name": 7}]}},
            {"enabledPlugins": {"docs": "true"}},
            {"enabledPlugins": ["docs", None]},
        ],
    )
    def test_malformed_settings_rejected(self, settings):
        """Test that wrongly shaped values are rejected instead of coerced."""
        with pytest.raises(ValueError):
            settings_to_fields(settings)

    def test_null_permission_values_default(self):
        fields = settings_to_fields(
            {"permissions": {"enabled": None, "mcp": None, "command": None}}
        )

        assert fields["permissions"].enabled is False
        assert fields["permissions"].mcp == set()
        assert fields["permissions"].command == set()

    def test_plugin_list_accepted(self):
        fields = settings_to_fields({"enabledPlugins": ["a", "b"]})

        assert fields["enabled_plugins"] == {"a", "b"}
        assert "always_thinking_enabled" not in fields
        assert "api_timeout_ms" not in fields


class TestMerge:
    """Test suite for merging candidates into the store."""

    def test_merge_adds_candidates(self, store):
        candidates = [
            CandidateProfile("p1", "My Work", WORK_SETTINGS),
            CandidateProfile("p2", "Personal", {"env": {"K": "v"}}),
        ]

        report = merge(candidates, store)

        assert report.added == ["My_Work", "Personal"]
        assert report.skipped == []
        assert report.rejected == []
        assert report.changed is True
        assert store.default_name == "My_Work"
        assert store.persistence.profile_settings_path("Personal").exists()

    def test_merge_never_overwrites_existing(self, store):
        """Test that an existing profile wins over an imported one."""
        store.add(Profile(name="My_Work", env={"K": "manual"}))
        before = store.get("My_Work")

        report = merge([CandidateProfile("p1", "My Work", WORK_SETTINGS)], store)

        assert report.added == []
        assert report.skipped == ["My_Work"]
        assert store.get("My_Work") == before

    def test_merge_skips_names_repeated_in_batch(self, store):
        candidates = [
            CandidateProfile("p1", "x y", {"env": {"K": "first"}}),
            CandidateProfile("p2", "x_y", {"env": {"K": "second"}}),
        ]

        report = merge(candidates, store)

        assert report.added == ["x_y"]
        assert report.skipped == ["x_y"]
        assert store.get("x_y").env == {"K": "first"}

    def test_merge_skips_names_differing_only_in_case(self, store):
        store.add(Profile(name="work"))
        candidates = [
            CandidateProfile("p1", "WORK", {}),
            CandidateProfile("p2", "Dev", {}),
            CandidateProfile("p3", "dev", {}),
        ]

        report = merge(candidates, store)

        assert report.added == ["Dev"]
        assert report.skipped == ["WORK", "dev"]
        assert store.names() == ["work", "Dev"]

    def test_merge_rejects_invalid_candidates(self, store):
        candidates = [
            CandidateProfile("p1", "a/b", {}),
            CandidateProfile("p2", "bad-timeout", {"apiTimeoutMs": 0}),
            CandidateProfile("p3", "ok", {}),
        ]

        report = merge(candidates, store)

        assert report.added == ["ok"]
        assert [entry.identifier for entry in report.rejected] == ["p1", "p2"]
        assert store.names() == ["ok"]

    def test_merge_rejects_malformed_permissions(self, store):
        candidates = [
            CandidateProfile(
                "p1", "string-command", {"permissions": {"command": "git status"}}
            ),
            CandidateProfile(
                "p2", "string-enabled", {"permissions": {"enabled": "false"}}
            ),
        ]

        report = merge(candidates, store)

        assert report.added == []
        assert [entry.identifier for entry in report.rejected] == ["p1", "p2"]
        assert "must be a list" in report.rejected[0].reason
        assert "must be a boolean" in report.rejected[1].reason
        assert store.names() == []

    def test_merge_persists_once(self, store, monkeypatch):
        calls = []
        original = store.persistence.save_document

        def counting_save(data):
            calls.append(data)
            return original(data)

        monkeypatch.setattr(store.persistence, "save_document", counting_save)

        merge(
            [CandidateProfile("p1", "a", {}), CandidateProfile("p2", "b", {})], store
        )

        assert len(calls) == 1

    def test_merge_nothing_does_not_write(self, store):
        report = merge([], store)

        assert report.changed is False
        assert not store.persistence.store_exists()


class TestImportFrom:
    """Test suite for scanning and merging in one step."""

    def test_import_reports_all_outcomes(self, store, make_ccswitch_db):
        source = CcSwitchSource(make_ccswitch_db(_rows()))

        report = import_from(source, store)

        assert report.added == ["My_Work", "Personal"]
        assert {entry.identifier for entry in report.rejected} == {"p2", "p3"}

        work = store.get("My_Work")
        assert work.display_name == "My Work"
        assert work.source == "cc-switch"

    def test_import_is_idempotent(self, store, make_ccswitch_db):
        """Test that a second run skips everything already imported."""
        source = CcSwitchSource(make_ccswitch_db(_rows()))
        import_from(source, store)
        before = store.list()

        report = import_from(source, store)

        assert report.added == []
        assert report.skipped == ["My_Work", "Personal"]
        assert store.list() == before

    def test_import_missing_source(self, store, tmp_path):
        with pytest.raises(SourceNotFoundError):
            import_from(CcSwitchSource(tmp_path / "absent.db"), store)

        assert not store.persistence.store_exists()
