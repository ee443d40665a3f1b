"""Shared fixtures for ccuse tests."""

import logging
import sqlite3
from pathlib import Path

import pytest

from ccuse.config import ENV_VARS, AppConfig
from ccuse.profiles import ProfileStore
from ccuse.storage import StorePersistence
from ccuse.synthesis import SettingsSynthesizer

PROVIDERS_DDL = """
CREATE TABLE providers (
    id TEXT NOT NULL,
    app_type TEXT NOT NULL,
    name TEXT NOT NULL,
    settings_config TEXT NOT NULL,
    created_at INTEGER
)
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from the developer's ccuse environment variables."""
    for key in ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("CLAUDECODE", raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    ccuse_level = logging.getLogger("ccuse").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("ccuse").setLevel(ccuse_level)


@pytest.fixture
def config_dir(tmp_path) -> Path:
    return tmp_path / "config"


@pytest.fixture
def persistence(config_dir) -> StorePersistence:
    return StorePersistence(config_dir)


@pytest.fixture
def synthesizer(persistence) -> SettingsSynthesizer:
    return SettingsSynthesizer(persistence)


@pytest.fixture
def store(persistence, synthesizer) -> ProfileStore:
    return ProfileStore(persistence, synthesizer).load()


@pytest.fixture
def app_config(config_dir, tmp_path) -> AppConfig:
    return AppConfig(config_dir=config_dir, ccswitch_db_path=tmp_path / "cc-switch.db")


@pytest.fixture
def make_ccswitch_db(tmp_path):
    """Factory creating a cc-switch style database with provider rows.

    Rows are ``(id, app_type, name, settings_config, created_at)``.
    """

    def _make(rows: list[tuple], filename: str = "cc-switch.db") -> Path:
        path = tmp_path / filename
        connection = sqlite3.connect(path)
        try:
            connection.execute(PROVIDERS_DDL)
            connection.executemany(
                "INSERT INTO providers "
                "(id, app_type, name, settings_config, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                rows,
            )
            connection.commit()
        finally:
            connection.close()
        return path

    return _make
