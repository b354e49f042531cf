from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from invtrack.repositories.sqlite_repo import SqliteRepository
from invtrack.services.auth_service import AuthService
from invtrack.services.material_service import MaterialService
from invtrack.services.reporting_service import ReportingService
from invtrack.services.session_store import SessionStore
from invtrack.services.user_service import UserService


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    sessions: SessionStore
    auth: AuthService
    materials: MaterialService
    users: UserService
    reporting: ReportingService


def build_container(
    db_path: Path | str,
    *,
    session_ttl_hours: float = 24.0,
    pool_size: int = 10,
    pool_timeout: float = 5.0,
    sessions: SessionStore | None = None,
) -> AppContainer:
    repo = SqliteRepository(db_path, pool_size=pool_size, pool_timeout=pool_timeout)
    repo.init_db()

    if sessions is None:
        sessions = SessionStore(ttl_seconds=session_ttl_hours * 60 * 60)
    auth = AuthService(repo, sessions)
    materials = MaterialService(repo)
    users = UserService(repo, sessions)
    reporting = ReportingService(repo)

    return AppContainer(
        repo=repo,
        sessions=sessions,
        auth=auth,
        materials=materials,
        users=users,
        reporting=reporting,
    )
