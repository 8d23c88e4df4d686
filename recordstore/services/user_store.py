"""Credential store: asyncpg repository for user records."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from recordstore.database import get_pool
from recordstore.exceptions import DuplicateKeyError
from recordstore.models.user import Role, User
from recordstore.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

# pg_advisory_xact_lock key held by registration transactions
REGISTRATION_LOCK_KEY = 7_310_001

USER_COLUMNS = """
    id, name, username, email, password_hash, role,
    reset_token, reset_token_expires_at, created_at, updated_at
"""

# Unique index name -> column reported in DuplicateKeyError
UNIQUE_CONSTRAINT_FIELDS = {
    "users_email_key": "email",
    "users_username_key": "username",
    "users_reset_token_key": "reset_token",
}


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        reset_token=row["reset_token"],
        reset_token_expires_at=row["reset_token_expires_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _duplicate_key(exc: asyncpg.exceptions.UniqueViolationError) -> DuplicateKeyError:
    constraint = getattr(exc, "constraint_name", None) or ""
    return DuplicateKeyError(UNIQUE_CONSTRAINT_FIELDS.get(constraint, constraint or "unknown"))


class UserStore:
    """Repository for user CRUD and password reset state.

    Methods that take a ``conn`` argument run on that connection when one is
    given (so they join a transaction opened with transaction()), and on a
    fresh pooled connection otherwise.
    """

    def __init__(self, auth_service: Optional[AuthService] = None):
        self.auth_service = auth_service or AuthService()

    @asynccontextmanager
    async def _connection(
        self, conn: Optional[asyncpg.Connection] = None
    ) -> AsyncIterator[asyncpg.Connection]:
        if conn is not None:
            yield conn
            return
        pool = await get_pool()
        async with pool.acquire() as acquired:
            yield acquired

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Open a registration transaction and yield its connection.

        Holds a transaction-scoped advisory lock so concurrent registrations
        run one at a time; the first-registrant check and the email
        pre-check therefore see every committed user. Commits on normal
        exit and rolls back on any exception, which is re-raised. The
        connection goes back to the pool either way.
        """
        pool = await get_pool()
        async with pool.acquire() as conn:
            tx = conn.transaction()
            await tx.start()
            try:
                await conn.execute("SELECT pg_advisory_xact_lock($1)", REGISTRATION_LOCK_KEY)
                yield conn
            except BaseException as e:
                try:
                    await tx.rollback()
                except Exception as rollback_error:
                    logger.error(
                        "transaction_rollback_failed",
                        error_type=type(e).__name__,
                        rollback_error=str(rollback_error),
                    )
                else:
                    logger.warning("transaction_aborted", error_type=type(e).__name__)
                raise
            else:
                await tx.commit()
                logger.debug("transaction_committed")

    async def find_by_email(
        self, email: str, conn: Optional[asyncpg.Connection] = None
    ) -> Optional[User]:
        """Get a user by email (case-insensitive).

        Args:
            email: Email address to look up
            conn: Optional connection to run on

        Returns:
            User model or None if not found
        """
        async with self._connection(conn) as c:
            row = await c.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE LOWER(email) = LOWER($1)",
                email,
            )

        return _row_to_user(row) if row is not None else None

    async def find_by_id(self, user_id: UUID) -> Optional[User]:
        async with self._connection() as c:
            row = await c.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        return _row_to_user(row) if row is not None else None

    async def find_by_reset_token(self, token: str) -> Optional[User]:
        """Get the user holding an exact reset token.

        Expired tokens are returned too; the caller checks the expiry.
        """
        async with self._connection() as c:
            row = await c.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE reset_token = $1",
                token,
            )

        return _row_to_user(row) if row is not None else None

    async def count_users(self, conn: Optional[asyncpg.Connection] = None) -> int:
        """Count total number of users.

        Returns:
            Total user count
        """
        async with self._connection(conn) as c:
            count = await c.fetchval("SELECT COUNT(*) FROM users")

        return count

    async def list_users(self) -> list[User]:
        """Return all users ordered by creation date."""
        async with self._connection() as c:
            rows = await c.fetch(
                f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at ASC"
            )

        return [_row_to_user(row) for row in rows]

    async def create_user(
        self,
        name: str,
        username: str,
        email: str,
        password: str,
        role: Role = Role.USER,
        conn: Optional[asyncpg.Connection] = None,
    ) -> User:
        """Create a new user with a hashed password.

        Args:
            name: Display name
            username: Unique username
            email: Unique email address
            password: Plain-text password (will be hashed)
            role: Account role
            conn: Optional connection (pass the transaction's connection)

        Returns:
            Created User model

        Raises:
            DuplicateKeyError: If email or username is already taken
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)
        password_hash = self.auth_service.hash_password(password)

        try:
            async with self._connection(conn) as c:
                await c.execute(
                    """
                    INSERT INTO users (id, name, username, email, password_hash, role, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    """,
                    user_id,
                    name,
                    username,
                    email,
                    password_hash,
                    role.value,
                    now,
                    now,
                )
        except asyncpg.exceptions.UniqueViolationError as e:
            raise _duplicate_key(e) from e

        logger.info(
            "user_created",
            user_id=str(user_id),
            username=username,
            role=role.value,
        )

        return User(
            id=user_id,
            name=name,
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
            created_at=now,
            updated_at=now,
        )

    async def save(self, user: User, conn: Optional[asyncpg.Connection] = None) -> bool:
        """Persist the profile fields of an existing user.

        Only name, username, email and role are written. The password hash
        and the reset pair change through consume_reset_token() and
        set_reset_token() alone, so a stale copy cannot revert them.

        Args:
            user: User model carrying the new field values
            conn: Optional connection to run on

        Returns:
            True if the row was updated, False if the user no longer exists

        Raises:
            DuplicateKeyError: If the new email or username collides
        """
        now = datetime.now(timezone.utc)

        try:
            async with self._connection(conn) as c:
                result = await c.execute(
                    """
                    UPDATE users
                    SET name = $1, username = $2, email = $3, role = $4, updated_at = $5
                    WHERE id = $6
                    """,
                    user.name,
                    user.username,
                    user.email,
                    user.role.value,
                    now,
                    user.id,
                )
        except asyncpg.exceptions.UniqueViolationError as e:
            raise _duplicate_key(e) from e

        saved = result == "UPDATE 1"
        if not saved:
            logger.warning("user_save_not_found", user_id=str(user.id))
        return saved

    async def set_reset_token(
        self, user_id: UUID, token: str, expires_at: datetime
    ) -> bool:
        """Store a new reset token and expiry, replacing any earlier pair.

        Returns:
            True if the row was updated, False if the user no longer exists

        Raises:
            DuplicateKeyError: If another user already holds ``token``
        """
        now = datetime.now(timezone.utc)

        try:
            async with self._connection() as c:
                result = await c.execute(
                    """
                    UPDATE users
                    SET reset_token = $1, reset_token_expires_at = $2, updated_at = $3
                    WHERE id = $4
                    """,
                    token,
                    expires_at,
                    now,
                    user_id,
                )
        except asyncpg.exceptions.UniqueViolationError as e:
            raise _duplicate_key(e) from e

        return result == "UPDATE 1"

    async def consume_reset_token(self, user_id: UUID, token: str, password: str) -> bool:
        """Set a new password and clear the reset token in one statement.

        The update only applies while the row still holds ``token``, so of
        two concurrent consumers of the same token only the first wins.

        Args:
            user_id: Owner of the token
            token: Raw reset token being consumed
            password: New plain-text password (will be hashed)

        Returns:
            True if the password was changed, False if the token was already gone
        """
        now = datetime.now(timezone.utc)
        password_hash = self.auth_service.hash_password(password)

        async with self._connection() as c:
            result = await c.execute(
                """
                UPDATE users
                SET password_hash = $1, reset_token = NULL,
                    reset_token_expires_at = NULL, updated_at = $2
                WHERE id = $3 AND reset_token = $4
                """,
                password_hash,
                now,
                user_id,
                token,
            )

        consumed = result == "UPDATE 1"
        if consumed:
            logger.info("reset_token_consumed", user_id=str(user_id))
        return consumed
