from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import sys


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class Settings:
    db_path: Path
    logs_dir: Path
    secret_key: str | None = None
    session_ttl_hours: float = 24.0
    db_pool_size: int = 10
    db_pool_timeout: float = 5.0
    host: str = "127.0.0.1"
    port: int = 3000


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "InventoryTracker") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "inventory.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(paths: AppPaths | None = None) -> Settings:
    paths = paths or get_app_paths()

    db_override = os.environ.get("INVTRACK_DB_PATH", "").strip()
    db_path = Path(db_override) if db_override else paths.db_path

    return Settings(
        db_path=db_path,
        logs_dir=paths.logs_dir,
        secret_key=os.environ.get("INVTRACK_SECRET_KEY", "").strip() or None,
        session_ttl_hours=_env_float("INVTRACK_SESSION_TTL_HOURS", 24.0),
        db_pool_size=_env_int("INVTRACK_DB_POOL_SIZE", 10),
        db_pool_timeout=_env_float("INVTRACK_DB_POOL_TIMEOUT", 5.0),
        host=os.environ.get("INVTRACK_HOST", "").strip() or "127.0.0.1",
        port=_env_int("INVTRACK_PORT", 3000),
    )
