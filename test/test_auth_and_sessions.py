import pytest
from conftest import ADMIN_PASSWORD, FakeClock, make_user, set_admin_password

from invtrack.domain.errors import AuthenticationError, ValidationError
from invtrack.domain.roles import Role
from invtrack.services.auth_service import AuthService, validate_password_strength
from invtrack.services.session_store import SessionStore


def test_stored_passwords_are_hashed(repo):
    make_user(repo, "alice", "employee", password="p1")
    with repo.connection() as conn:
        stored = str(conn.execute("SELECT password FROM users WHERE username='alice'").fetchone()[0])
    assert stored.startswith("pbkdf2_sha256$")
    assert "p1" not in stored.split("$")[-1]


def test_login_issues_session_with_principal(repo):
    auth = AuthService(repo, SessionStore())
    set_admin_password(repo)

    session = auth.login("admin", ADMIN_PASSWORD)

    assert session.principal.username == "admin"
    assert session.principal.role is Role.ADMIN
    assert auth.resolve(session.token) == session.principal


def test_wrong_password_and_unknown_user_are_indistinguishable(repo):
    auth = AuthService(repo, SessionStore())
    make_user(repo, "alice", "employee", password="right-one1")

    with pytest.raises(AuthenticationError) as wrong_password:
        auth.login("alice", "wrong")
    with pytest.raises(AuthenticationError) as unknown_user:
        auth.login("nobody", "wrong")

    assert type(wrong_password.value) is type(unknown_user.value)
    assert str(wrong_password.value) == str(unknown_user.value) == "Invalid username or password."


def test_blank_credentials_fail_the_same_way(repo):
    auth = AuthService(repo, SessionStore())
    with pytest.raises(AuthenticationError, match="Invalid username or password"):
        auth.login("   ", "x")
    with pytest.raises(AuthenticationError, match="Invalid username or password"):
        auth.login("admin", "")


def test_legacy_plain_password_is_upgraded_to_hash_on_login(repo):
    with repo.connection() as conn:
        conn.execute(
            "INSERT INTO users (username, password, full_name, role) VALUES ('old', 'plain123', 'Old', 'employee')"
        )
        conn.commit()

    auth = AuthService(repo, SessionStore())
    auth.login("old", "plain123")

    with repo.connection() as conn:
        upgraded = str(conn.execute("SELECT password FROM users WHERE username='old'").fetchone()[0])
    assert upgraded.startswith("pbkdf2_sha256$")
    assert auth.login("old", "plain123").principal.username == "old"


def test_session_expires_after_fixed_ttl_regardless_of_activity(repo):
    clock = FakeClock()
    auth = AuthService(repo, SessionStore(ttl_seconds=24 * 3600, clock=clock))
    set_admin_password(repo)
    token = auth.login("admin", ADMIN_PASSWORD).token

    clock.advance(23 * 3600)
    assert auth.resolve(token) is not None  # activity does not extend the session

    clock.advance(3600)
    assert auth.resolve(token) is None
    with pytest.raises(AuthenticationError):
        auth.require_principal(token)


def test_logout_destroys_only_that_session(repo):
    auth = AuthService(repo, SessionStore())
    set_admin_password(repo)
    first = auth.login("admin", ADMIN_PASSWORD).token
    second = auth.login("admin", ADMIN_PASSWORD).token

    auth.logout(first)
    auth.logout(first)

    assert auth.resolve(first) is None
    assert auth.resolve(second) is not None


def test_expired_sessions_are_purged_on_login(repo):
    clock = FakeClock()
    sessions = SessionStore(ttl_seconds=60, clock=clock)
    auth = AuthService(repo, sessions)
    set_admin_password(repo)
    auth.login("admin", ADMIN_PASSWORD)
    auth.login("admin", ADMIN_PASSWORD)

    clock.advance(120)
    auth.login("admin", ADMIN_PASSWORD)

    assert len(sessions) == 1


def test_change_password(repo):
    auth = AuthService(repo, SessionStore())
    set_admin_password(repo)
    admin = auth.login("admin", ADMIN_PASSWORD).principal

    auth.change_password(admin, ADMIN_PASSWORD, "NewPass123", "NewPass123")

    with pytest.raises(AuthenticationError):
        auth.login("admin", ADMIN_PASSWORD)
    assert auth.login("admin", "NewPass123").principal.id == admin.id


def test_change_password_validations(repo):
    auth = AuthService(repo, SessionStore())
    set_admin_password(repo)
    admin = auth.login("admin", ADMIN_PASSWORD).principal

    with pytest.raises(ValidationError, match="incorrect"):
        auth.change_password(admin, "bad-current", "NewPass123", "NewPass123")
    with pytest.raises(ValidationError, match="does not match"):
        auth.change_password(admin, ADMIN_PASSWORD, "NewPass123", "NewPass124")
    with pytest.raises(ValidationError, match="different"):
        auth.change_password(admin, "SamePass1", "SamePass1", "SamePass1")


def test_password_strength_rules():
    with pytest.raises(ValidationError, match="at least"):
        validate_password_strength("a1")
    with pytest.raises(ValidationError, match="letter"):
        validate_password_strength("12345678")
    with pytest.raises(ValidationError, match="number"):
        validate_password_strength("OnlyLetters")
    validate_password_strength("Mật khẩu 2024")


def test_change_password_signs_out_other_sessions(repo):
    sessions = SessionStore()
    auth = AuthService(repo, sessions)
    set_admin_password(repo)
    here = auth.login("admin", ADMIN_PASSWORD)
    elsewhere = auth.login("admin", ADMIN_PASSWORD)

    auth.change_password(here.principal, ADMIN_PASSWORD, "NewPass123", "NewPass123", current_token=here.token)

    assert auth.resolve(here.token) is not None
    assert auth.resolve(elsewhere.token) is None


def test_failed_change_password_keeps_sessions(repo):
    auth = AuthService(repo, SessionStore())
    set_admin_password(repo)
    here = auth.login("admin", ADMIN_PASSWORD)
    elsewhere = auth.login("admin", ADMIN_PASSWORD)

    with pytest.raises(ValidationError):
        auth.change_password(here.principal, "wrong-one1", "NewPass123", "NewPass123", current_token=here.token)

    assert auth.resolve(elsewhere.token) is not None
