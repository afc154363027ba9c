"""
PostgreSQL repository adapters - Implement the repository protocols.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency notes:
- Uniqueness (account email, company code, verification token,
  membership pair) is enforced by unique indexes; create methods use
  ON CONFLICT DO NOTHING and report a conflict through their return value.
- increment_attempts and mark_used are single UPDATE statements, so
  concurrent failed attempts are never lost. increment_attempts only
  counts while the record is unused and below max_attempts.
- No row is locked across a whole verification. Two concurrent
  successful verifications of one token both mark it used; the
  account converges to ACTIVE.
- Account writes are column-scoped. update() covers profile fields only,
  and activate() is the one write that touches status; its WHERE clause
  refuses SUSPENDED rows.
"""

import logging
from datetime import datetime
from pathlib import Path

from psycopg_pool import ConnectionPool

from account_engine.domain.models import (
    Account,
    AccountStatus,
    Company,
    Gender,
    VerificationRecord,
    VerificationType,
)

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = (
    "id, email, password_hash, name, phone, gender, avatar_key, status, "
    "email_verified_at, last_login_at, created_at, updated_at, deleted_at"
)

_VERIFICATION_COLUMNS = (
    "id, account_id, type, token, otp_code, email, attempts_used, "
    "max_attempts, is_used, expires_at, created_at"
)

_COMPANY_COLUMNS = "id, name, code, address, created_at, updated_at, deleted_at"


def _account_from_row(row: tuple) -> Account:
    return Account(
        id=row[0],
        email=row[1],
        password_hash=row[2],
        name=row[3],
        phone=row[4],
        gender=Gender(row[5]) if row[5] is not None else None,
        avatar_key=row[6],
        status=AccountStatus(row[7]),
        email_verified_at=row[8],
        last_login_at=row[9],
        created_at=row[10],
        updated_at=row[11],
        deleted_at=row[12],
    )


def _verification_from_row(row: tuple) -> VerificationRecord:
    return VerificationRecord(
        id=row[0],
        account_id=row[1],
        type=VerificationType(row[2]),
        token=row[3],
        otp_code=row[4],
        email=row[5],
        attempts_used=row[6],
        max_attempts=row[7],
        is_used=row[8],
        expires_at=row[9],
        created_at=row[10],
    )


def _company_from_row(row: tuple) -> Company:
    return Company(
        id=row[0],
        name=row[1],
        code=row[2],
        address=row[3],
        created_at=row[4],
        updated_at=row[5],
        deleted_at=row[6],
    )


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create(self, account: Account) -> bool:
        """
        Insert a new account.

        The unique index on email covers soft-deleted rows too, so a
        deleted account's email cannot be claimed again.

        Returns:
            True if inserted, False if the email is already taken
        """
        sql = """
            INSERT INTO accounts (id, email, password_hash, name, status, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, COALESCE(%s, NOW()), COALESCE(%s, NOW()))
            ON CONFLICT (email) DO NOTHING
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql,
                (
                    account.id,
                    account.email,
                    account.password_hash,
                    account.name,
                    account.status.value,
                    account.created_at,
                    account.updated_at,
                ),
            )
            conn.commit()
            return cursor.rowcount == 1

    def find_by_id(self, account_id: int) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s AND deleted_at IS NULL"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id,))
            row = cursor.fetchone()
        return _account_from_row(row) if row is not None else None

    def find_by_email(self, email: str) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s AND deleted_at IS NULL"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _account_from_row(row) if row is not None else None

    def update(self, account: Account) -> None:
        sql = """
            UPDATE accounts
            SET name = %s,
                phone = %s,
                gender = %s,
                updated_at = COALESCE(%s, NOW())
            WHERE id = %s AND deleted_at IS NULL
        """
        gender = account.gender.value if account.gender is not None else None
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql,
                (account.name, account.phone, gender, account.updated_at, account.id),
            )
            conn.commit()

    def set_password(self, account_id: int, password_hash: str, at: datetime) -> None:
        sql = """
            UPDATE accounts SET password_hash = %s, updated_at = %s
            WHERE id = %s AND deleted_at IS NULL
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (password_hash, at, account_id))
            conn.commit()

    def activate(self, account_id: int, at: datetime) -> bool:
        """
        Move the account to ACTIVE unless it is SUSPENDED.

        The status guard lives in the WHERE clause, so a suspension that
        lands after the caller's read is never overwritten.

        Returns:
            True if the row was updated
        """
        sql = """
            UPDATE accounts
            SET status = 'ACTIVE',
                email_verified_at = COALESCE(email_verified_at, %s),
                updated_at = %s
            WHERE id = %s AND deleted_at IS NULL AND status <> 'SUSPENDED'
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (at, at, account_id))
            conn.commit()
            return cursor.rowcount == 1

    def record_login(self, account_id: int, at: datetime) -> None:
        sql = "UPDATE accounts SET last_login_at = %s WHERE id = %s AND deleted_at IS NULL"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (at, account_id))
            conn.commit()

    def delete(self, account_id: int) -> bool:
        sql = "UPDATE accounts SET deleted_at = NOW() WHERE id = %s AND deleted_at IS NULL"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id,))
            conn.commit()
            return cursor.rowcount == 1

    def list(self, limit: int, offset: int) -> list[Account]:
        sql = f"""
            SELECT {_ACCOUNT_COLUMNS} FROM accounts
            WHERE deleted_at IS NULL
            ORDER BY id
            LIMIT %s OFFSET %s
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (limit, offset))
            rows = cursor.fetchall()
        return [_account_from_row(row) for row in rows]


class PostgresVerificationRepository:
    """Implements VerificationRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def create(self, record: VerificationRecord) -> None:
        sql = """
            INSERT INTO verification_records
                (id, account_id, type, token, otp_code, email,
                 attempts_used, max_attempts, is_used, expires_at, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, NOW()))
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql,
                (
                    record.id,
                    record.account_id,
                    record.type.value,
                    record.token,
                    record.otp_code,
                    record.email,
                    record.attempts_used,
                    record.max_attempts,
                    record.is_used,
                    record.expires_at,
                    record.created_at,
                ),
            )
            conn.commit()

    def find_by_token(self, token: str) -> VerificationRecord | None:
        sql = f"SELECT {_VERIFICATION_COLUMNS} FROM verification_records WHERE token = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token,))
            row = cursor.fetchone()
        return _verification_from_row(row) if row is not None else None

    def find_active_by_account_and_type(
        self, account_id: int, verification_type: VerificationType, now: datetime
    ) -> VerificationRecord | None:
        sql = f"""
            SELECT {_VERIFICATION_COLUMNS} FROM verification_records
            WHERE account_id = %s
              AND type = %s
              AND is_used = FALSE
              AND expires_at >= %s
            ORDER BY created_at DESC, id DESC
            LIMIT 1
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id, verification_type.value, now))
            row = cursor.fetchone()
        return _verification_from_row(row) if row is not None else None

    def mark_used(self, record_id: int) -> None:
        sql = "UPDATE verification_records SET is_used = TRUE WHERE id = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (record_id,))
            conn.commit()

    def increment_attempts(self, record_id: int) -> bool:
        # attempts_used never exceeds max_attempts, even under concurrent guesses
        sql = """
            UPDATE verification_records
            SET attempts_used = attempts_used + 1
            WHERE id = %s AND is_used = FALSE AND attempts_used < max_attempts
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (record_id,))
            conn.commit()
            return cursor.rowcount == 1

    def invalidate_all_active_by_account_and_type(
        self, account_id: int, verification_type: VerificationType
    ) -> int:
        sql = """
            UPDATE verification_records
            SET is_used = TRUE
            WHERE account_id = %s AND type = %s AND is_used = FALSE
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id, verification_type.value))
            conn.commit()
            return cursor.rowcount


class PostgresCompanyRepository:
    """Implements CompanyRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def create(self, company: Company) -> bool:
        sql = """
            INSERT INTO companies (id, name, code, address, created_at, updated_at)
            VALUES (%s, %s, %s, %s, COALESCE(%s, NOW()), COALESCE(%s, NOW()))
            ON CONFLICT (code) DO NOTHING
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                sql,
                (
                    company.id,
                    company.name,
                    company.code,
                    company.address,
                    company.created_at,
                    company.updated_at,
                ),
            )
            conn.commit()
            return cursor.rowcount == 1

    def find_by_id(self, company_id: int) -> Company | None:
        sql = f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE id = %s AND deleted_at IS NULL"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (company_id,))
            row = cursor.fetchone()
        return _company_from_row(row) if row is not None else None

    def find_by_code(self, code: str) -> Company | None:
        sql = f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE code = %s AND deleted_at IS NULL"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (code,))
            row = cursor.fetchone()
        return _company_from_row(row) if row is not None else None

    def update(self, company: Company) -> None:
        sql = """
            UPDATE companies
            SET name = %s, address = %s, updated_at = COALESCE(%s, NOW())
            WHERE id = %s AND deleted_at IS NULL
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (company.name, company.address, company.updated_at, company.id))
            conn.commit()

    def delete(self, company_id: int) -> bool:
        sql = "UPDATE companies SET deleted_at = NOW() WHERE id = %s AND deleted_at IS NULL"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (company_id,))
            conn.commit()
            return cursor.rowcount == 1

    def list(self, limit: int, offset: int) -> list[Company]:
        sql = f"""
            SELECT {_COMPANY_COLUMNS} FROM companies
            WHERE deleted_at IS NULL
            ORDER BY id
            LIMIT %s OFFSET %s
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (limit, offset))
            rows = cursor.fetchall()
        return [_company_from_row(row) for row in rows]


class PostgresMembershipRepository:
    """Implements MembershipRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def add(self, account_id: int, company_id: int, joined_at: datetime) -> bool:
        sql = """
            INSERT INTO account_companies (account_id, company_id, joined_at)
            VALUES (%s, %s, %s)
            ON CONFLICT (account_id, company_id) DO NOTHING
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id, company_id, joined_at))
            conn.commit()
            return cursor.rowcount == 1

    def remove(self, account_id: int, company_id: int) -> bool:
        sql = "DELETE FROM account_companies WHERE account_id = %s AND company_id = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id, company_id))
            conn.commit()
            return cursor.rowcount == 1

    def companies_for(self, account_id: int) -> list[Company]:
        columns = ", ".join(f"c.{column.strip()}" for column in _COMPANY_COLUMNS.split(","))
        sql = f"""
            SELECT {columns}
            FROM companies c
            JOIN account_companies ac ON ac.company_id = c.id
            WHERE ac.account_id = %s AND c.deleted_at IS NULL
            ORDER BY ac.joined_at
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (account_id,))
            rows = cursor.fetchall()
        return [_company_from_row(row) for row in rows]


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: account_engine/adapters/repository/postgres.py -> account_engine/migrations/
    migrations_dir = Path(__file__).parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
