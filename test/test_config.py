from pathlib import Path

import pytest

from invtrack.config import AppPaths, load_settings


@pytest.fixture
def paths(tmp_path: Path) -> AppPaths:
    return AppPaths(base_dir=tmp_path, db_path=tmp_path / "inventory.db", logs_dir=tmp_path / "logs")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "INVTRACK_DB_PATH",
        "INVTRACK_SECRET_KEY",
        "INVTRACK_SESSION_TTL_HOURS",
        "INVTRACK_DB_POOL_SIZE",
        "INVTRACK_DB_POOL_TIMEOUT",
        "INVTRACK_HOST",
        "INVTRACK_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults(paths):
    s = load_settings(paths)
    assert s.db_path == paths.db_path
    assert s.secret_key is None
    assert s.session_ttl_hours == 24.0
    assert (s.db_pool_size, s.db_pool_timeout) == (10, 5.0)
    assert (s.host, s.port) == ("127.0.0.1", 3000)


def test_environment_overrides(paths, monkeypatch, tmp_path):
    monkeypatch.setenv("INVTRACK_DB_PATH", str(tmp_path / "other.db"))
    monkeypatch.setenv("INVTRACK_SECRET_KEY", "s3cret")
    monkeypatch.setenv("INVTRACK_SESSION_TTL_HOURS", "1.5")
    monkeypatch.setenv("INVTRACK_DB_POOL_SIZE", "3")
    monkeypatch.setenv("INVTRACK_PORT", "8080")

    s = load_settings(paths)

    assert s.db_path == tmp_path / "other.db"
    assert s.secret_key == "s3cret"
    assert s.session_ttl_hours == 1.5
    assert s.db_pool_size == 3
    assert s.port == 8080


def test_malformed_numbers_are_rejected(paths, monkeypatch):
    monkeypatch.setenv("INVTRACK_PORT", "http")
    with pytest.raises(ValueError, match="INVTRACK_PORT"):
        load_settings(paths)
