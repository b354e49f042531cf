import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


ADMIN_PASSWORD = "Admin#1234"


def set_admin_password(repo, password: str = ADMIN_PASSWORD) -> str:
    admin = repo.get_user_by_username("admin")
    repo.set_user_password(admin.id, password)
    return password


def make_user(repo, username: str, role, password: str = "Passw0rd1", full_name: str = ""):
    from invtrack.domain.roles import Role

    uid = repo.create_user(username, password, full_name or username.title(), Role.parse(role))
    return repo.get_user(uid)


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def repo(tmp_path: Path):
    from invtrack.repositories.sqlite_repo import SqliteRepository

    r = SqliteRepository(tmp_path / "inventory.db")
    r.init_db()
    yield r
    r.close()


@pytest.fixture
def container(tmp_path: Path):
    from invtrack.application.container import build_container

    c = build_container(tmp_path / "app.db")
    yield c
    c.repo.close()


@pytest.fixture
def client(container):
    from invtrack.web.app import create_app

    app = create_app(container, secret_key="test-secret")
    app.config["TESTING"] = True
    return app.test_client()
