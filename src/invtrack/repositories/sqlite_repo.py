from __future__ import annotations

import sqlite3
import hashlib
import hmac
import logging
import os
import secrets
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from invtrack.domain.errors import ValidationError
from invtrack.domain.models import Material, MaterialFields, User, SupplierTotals
from invtrack.domain.roles import Role
from invtrack.repositories.pool import ConnectionPool

log = logging.getLogger(__name__)

_HASH_PREFIX = "pbkdf2_sha256$"

_MATERIAL_COLUMNS = (
    "id, packet_no, part_name, length, width, height, quantity, supplier, updated_by, last_updated, created_at"
)
_USER_COLUMNS = "id, username, full_name, role, phone, created_at"


class SqliteRepository:
    def __init__(self, db_path: Path | str, pool_size: int = 10, pool_timeout: float = 5.0):
        self.db_path = str(db_path)
        self.pool = ConnectionPool(self.db_path, size=pool_size, timeout=pool_timeout)
        self._dummy_hash = self._hash_password(secrets.token_hex(8))

    def connection(self):
        return self.pool.connection()

    def close(self) -> None:
        self.pool.close()

    def init_db(self) -> None:
        self.run_migrations()
        self._ensure_bootstrap_admin()

    def run_migrations(self) -> None:
        self.pool.close()
        conn = self.pool.connect()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_canonical_roles),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
                log.info("migration_applied version=%s db=%s", version, self.db_path)
            conn.commit()
        except Exception as exc:
            conn.rollback()
            conn.close()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        else:
            conn.close()
            if backup_path is not None:
                backup_path.unlink(missing_ok=True)

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)
        log.warning("migration_rolled_back restored_from=%s", backup_path.name)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            full_name TEXT NOT NULL DEFAULT '',
            role TEXT NOT NULL DEFAULT 'employee',
            phone TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS materials (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            packet_no INTEGER NOT NULL,
            part_name TEXT NOT NULL,
            length INTEGER NOT NULL DEFAULT 0,
            width INTEGER NOT NULL DEFAULT 0,
            height INTEGER NOT NULL DEFAULT 0,
            quantity INTEGER NOT NULL DEFAULT 0,
            supplier TEXT NOT NULL DEFAULT '',
            updated_by TEXT NOT NULL,
            last_updated TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
        """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_materials_created_at ON materials(created_at)")

    def _migration_v2_canonical_roles(self, cur: sqlite3.Cursor) -> None:
        # Legacy rows carry bilingual free-text roles; store only canonical values from here on.
        cur.execute("SELECT id, role FROM users")
        for user_id, raw_role in cur.fetchall():
            try:
                role = Role.parse(raw_role)
            except ValidationError:
                log.warning("unknown_role_downgraded user_id=%s role=%r", user_id, raw_role)
                role = Role.EMPLOYEE
            if raw_role != role.value:
                cur.execute("UPDATE users SET role=? WHERE id=?", (role.value, int(user_id)))
        self._rebuild_users_with_constraints(cur)

    def _rebuild_users_with_constraints(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS users_new (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                password TEXT NOT NULL,
                full_name TEXT NOT NULL DEFAULT '',
                role TEXT NOT NULL DEFAULT 'employee' CHECK(role IN ('employee','manager','admin')),
                phone TEXT,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )
        cur.execute(
            """
            INSERT OR IGNORE INTO users_new (id, username, password, full_name, role, phone, created_at)
            SELECT id, username, password, COALESCE(full_name, ''), role, phone, created_at
            FROM users
            """
        )
        cur.execute("DROP TABLE users")
        cur.execute("ALTER TABLE users_new RENAME TO users")

    def _ensure_bootstrap_admin(self) -> None:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM users")
            if int(cur.fetchone()[0]) > 0:
                return

            bootstrap_password = (
                os.environ.get("INVTRACK_BOOTSTRAP_ADMIN_PASSWORD", "").strip() or secrets.token_urlsafe(12)
            )
            cur.execute(
                """
                INSERT INTO users (username, password, full_name, role)
                VALUES ('admin', ?, 'Administrator', 'admin')
                """,
                (self._hash_password(bootstrap_password),),
            )
            conn.commit()

        # one-time onboarding channel, readable by the owner only
        password_file = Path(self.db_path).parent / ".admin_bootstrap_password"
        password_file.write_text(bootstrap_password + "\n", encoding="utf-8")
        try:
            password_file.chmod(0o600)
        except OSError:
            log.warning("bootstrap_password_chmod_failed path=%s", password_file)
        log.warning("bootstrap_admin_created password_file=%s", password_file)

    def integrity_check(self) -> str:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute("PRAGMA integrity_check")
            return str(cur.fetchone()[0])

    # ---------- Users ----------
    @staticmethod
    def _row_to_user(r) -> User:
        return User(
            id=int(r[0]),
            username=str(r[1]),
            full_name=str(r[2] or ""),
            role=Role.parse_lenient(r[3]),
            phone=(str(r[4]) if r[4] is not None else None),
            created_at=str(r[5]),
        )

    def list_users(self) -> list[User]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY id")
            rows = cur.fetchall()
        return [self._row_to_user(r) for r in rows]

    def count_users(self) -> int:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM users")
            return int(cur.fetchone()[0])

    def get_user(self, user_id: int) -> Optional[User]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id=?", (int(user_id),))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE username=?", (username,))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def authenticate_user(self, username: str, password: str) -> Optional[User]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_USER_COLUMNS}, password FROM users WHERE username=?", (username,))
            row = cur.fetchone()
            if not row:
                # same amount of hashing work as a real miss
                self._verify_password(self._dummy_hash, password)
                return None
            stored = str(row[6])
            if not self._verify_password(stored, password):
                return None
            # transparent upgrade from legacy plain-text passwords
            if not stored.startswith(_HASH_PREFIX):
                cur.execute("UPDATE users SET password=? WHERE id=?", (self._hash_password(password), int(row[0])))
                conn.commit()
                log.info("legacy_password_upgraded user_id=%s", row[0])
        return self._row_to_user(row)

    def verify_user_password(self, user_id: int, password: str) -> bool:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT password FROM users WHERE id=?", (int(user_id),))
            row = cur.fetchone()
        if not row:
            return False
        return self._verify_password(str(row[0]), password)

    def create_user(
        self, username: str, password: str, full_name: str, role: Role, phone: Optional[str] = None
    ) -> int:
        with self.connection() as conn:
            cur = conn.cursor()
            try:
                cur.execute(
                    """
                    INSERT INTO users (username, password, full_name, role, phone)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (username, self._hash_password(password), full_name, role.value, phone),
                )
            except sqlite3.IntegrityError as exc:
                raise ValidationError(f"Username '{username}' is already taken.") from exc
            uid = int(cur.lastrowid)
            conn.commit()
        return uid

    def update_user(
        self,
        user_id: int,
        username: str,
        full_name: str,
        role: Role,
        phone: Optional[str],
        password: Optional[str] = None,
    ) -> bool:
        with self.connection() as conn:
            cur = conn.cursor()
            try:
                if password:
                    cur.execute(
                        """
                        UPDATE users
                        SET username=?, full_name=?, role=?, phone=?, password=?
                        WHERE id=?
                        """,
                        (username, full_name, role.value, phone, self._hash_password(password), int(user_id)),
                    )
                else:
                    cur.execute(
                        """
                        UPDATE users
                        SET username=?, full_name=?, role=?, phone=?
                        WHERE id=?
                        """,
                        (username, full_name, role.value, phone, int(user_id)),
                    )
            except sqlite3.IntegrityError as exc:
                raise ValidationError(f"Username '{username}' is already taken.") from exc
            updated = cur.rowcount > 0
            conn.commit()
        return updated

    def set_user_password(self, user_id: int, password: str) -> bool:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute("UPDATE users SET password=? WHERE id=?", (self._hash_password(password), int(user_id)))
            updated = cur.rowcount > 0
            conn.commit()
        return updated

    def delete_user(self, user_id: int) -> bool:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM users WHERE id=?", (int(user_id),))
            removed = cur.rowcount > 0
            conn.commit()
        return removed

    # ---------- Materials ----------
    @staticmethod
    def _row_to_material(r) -> Material:
        return Material(
            id=int(r[0]),
            packet_no=int(r[1]),
            part_name=str(r[2]),
            length=int(r[3]),
            width=int(r[4]),
            height=int(r[5]),
            quantity=int(r[6]),
            supplier=str(r[7] or ""),
            updated_by=str(r[8]),
            last_updated=str(r[9]),
            created_at=str(r[10]),
        )

    def list_materials(self) -> list[Material]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_MATERIAL_COLUMNS} FROM materials ORDER BY created_at DESC, id DESC")
            rows = cur.fetchall()
        return [self._row_to_material(r) for r in rows]

    def get_material(self, material_id: int) -> Optional[Material]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_MATERIAL_COLUMNS} FROM materials WHERE id=?", (int(material_id),))
            row = cur.fetchone()
        return self._row_to_material(row) if row else None

    def add_material(self, fields: MaterialFields, updated_by: str, last_updated: str) -> int:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO materials
                    (packet_no, part_name, length, width, height, quantity, supplier, updated_by, last_updated)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    fields.packet_no, fields.part_name, fields.length, fields.width, fields.height,
                    fields.quantity, fields.supplier, updated_by, last_updated,
                ),
            )
            mid = int(cur.lastrowid)
            conn.commit()
        return mid

    def update_material(self, material_id: int, fields: MaterialFields, updated_by: str, last_updated: str) -> bool:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE materials
                SET packet_no=?, part_name=?, length=?, width=?, height=?,
                    quantity=?, supplier=?, updated_by=?, last_updated=?
                WHERE id=?
                """,
                (
                    fields.packet_no, fields.part_name, fields.length, fields.width, fields.height,
                    fields.quantity, fields.supplier, updated_by, last_updated, int(material_id),
                ),
            )
            updated = cur.rowcount > 0
            conn.commit()
        return updated

    def delete_material(self, material_id: int) -> bool:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM materials WHERE id=?", (int(material_id),))
            removed = cur.rowcount > 0
            conn.commit()
        return removed

    def delete_materials(self, material_ids: Iterable[int]) -> int:
        ids = [int(i) for i in material_ids]
        if not ids:
            return 0
        placeholders = ",".join("?" for _ in ids)
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(f"DELETE FROM materials WHERE id IN ({placeholders})", ids)
            removed = cur.rowcount
            conn.commit()
        return int(removed)

    # ---------- Reporting ----------
    def material_totals(self) -> tuple[int, int, int]:
        """(materials, distinct non-empty suppliers, total quantity)"""
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT COUNT(*),
                       COUNT(DISTINCT NULLIF(TRIM(supplier), '')),
                       COALESCE(SUM(quantity), 0)
                FROM materials
                """
            )
            c, suppliers, qty = cur.fetchone()
        return int(c), int(suppliers), int(qty)

    def recent_materials(self, limit: int = 5) -> list[Material]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT {_MATERIAL_COLUMNS} FROM materials ORDER BY id DESC LIMIT ?", (int(limit),))
            rows = cur.fetchall()
        return [self._row_to_material(r) for r in rows]

    def material_type_counts(self) -> list[tuple[str, int]]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT part_name, COUNT(*) AS n
                FROM materials
                GROUP BY part_name
                ORDER BY n DESC, part_name ASC
                """
            )
            rows = cur.fetchall()
        return [(str(r[0]), int(r[1])) for r in rows]

    def supplier_totals(self) -> list[SupplierTotals]:
        with self.connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT TRIM(supplier) AS s, COUNT(*), COALESCE(SUM(quantity), 0)
                FROM materials
                GROUP BY s
                ORDER BY s
                """
            )
            rows = cur.fetchall()
        return [SupplierTotals(supplier=str(r[0] or ""), materials=int(r[1]), quantity=int(r[2])) for r in rows]

    @staticmethod
    def _hash_password(password: str, *, rounds: int = 200_000, salt: str | None = None) -> str:
        salt = salt or secrets.token_hex(16)
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds).hex()
        return f"pbkdf2_sha256${rounds}${salt}${digest}"

    @staticmethod
    def _verify_password(stored: str, provided: str) -> bool:
        if stored.startswith(_HASH_PREFIX):
            try:
                _algo, rounds_s, salt, digest = stored.split("$", 3)
                rounds = int(rounds_s)
                candidate = hashlib.pbkdf2_hmac(
                    "sha256",
                    provided.encode("utf-8"),
                    bytes.fromhex(salt),
                    rounds,
                ).hex()
                return hmac.compare_digest(candidate, digest)
            except ValueError:
                return False
        return hmac.compare_digest(stored.encode("utf-8"), provided.encode("utf-8"))
