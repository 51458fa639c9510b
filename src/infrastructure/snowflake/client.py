"""
Snowflake database connection management.

Provides connection factory, transaction helper and context manager for
Snowflake operations. Includes mock mode with in-memory storage for local
development and tests.

Using the repository pattern means most code never touches this module
directly - it goes through the repositories, which handle the translation
between domain models and database rows.
"""

import base64
import copy
import logging
import re
import threading
from contextlib import contextmanager
from datetime import date, datetime, time
from typing import Generator, Iterator, Optional

from src.core.gym.models import SEAT_HOLDING_STATUSES

from .repositories.sessions import SnowflakeConfig, SnowflakeConnection

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(Exception):
    """Raised when Snowflake connection fails."""
    pass


def _serialize_private_key(pem_bytes: bytes) -> bytes:
    """
    Convert a PEM private key into the DER bytes Snowflake expects.

    Snowflake requires the private key as a bytes object, not a file path.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    private_key = serialization.load_pem_private_key(
        pem_bytes,
        password=None,  # No password on the key
        backend=default_backend()
    )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


def _load_private_key(config: SnowflakeConfig) -> Optional[bytes]:
    """Load the key-pair private key from base64 env value or file, if configured."""
    if config.private_key_base64:
        return _serialize_private_key(base64.b64decode(config.private_key_base64))

    if config.private_key_path:
        with open(config.private_key_path, 'rb') as key_file:
            return _serialize_private_key(key_file.read())

    return None


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide Snowflake connection with automatic cleanup.

    Supports both password and key-pair authentication:
    - If a private key (base64 or path) is set, uses key-pair auth
    - Otherwise, uses password auth

    Using a context manager ensures connections are always closed,
    even if an exception occurs.

    Usage:
        with get_snowflake_connection(config) as conn:
            cursor = conn.cursor()
            # do work
            conn.commit()
    """
    import snowflake.connector

    conn = None
    try:
        connect_params = {
            'account': config.account,
            'user': config.user,
            'database': config.database,
            'schema': config.schema,
            'warehouse': config.warehouse,
            'role': config.role,
            'client_session_keep_alive': True,
        }

        private_key = _load_private_key(config)
        if private_key:
            logger.info("Using key-pair authentication for Snowflake")
            connect_params['private_key'] = private_key
        elif config.password:
            logger.info("Using password authentication for Snowflake")
            connect_params['password'] = config.password
        else:
            raise SnowflakeConnectionError(
                "Either password or a private key must be provided"
            )

        conn = snowflake.connector.connect(**connect_params)

        logger.debug(
            "Established Snowflake connection",
            extra={
                "account": config.account,
                "database": config.database,
                "schema": config.schema,
            }
        )

    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}")

    try:
        yield conn
    finally:
        try:
            conn.close()
            logger.debug("Closed Snowflake connection")
        except Exception as e:
            logger.warning(
                "Error closing Snowflake connection",
                extra={"error": str(e)}
            )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

class SnowflakeTransactionManager:
    """
    Explicit transactions on one connection.

    Snowflake runs each statement in its own transaction unless one is
    opened with BEGIN. Everything inside transaction() commits together
    or not at all.
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    @contextmanager
    def transaction(self) -> Iterator[None]:
        cursor = self._conn.cursor()
        try:
            cursor.execute("BEGIN TRANSACTION")
        finally:
            cursor.close()

        try:
            yield
        except Exception:
            self._conn.rollback()
            logger.debug("Transaction rolled back")
            raise

        self._conn.commit()


# ---------------------------------------------------------------------------
# Mock Connection for Local Development
# ---------------------------------------------------------------------------

_SEAT_HOLDING = tuple(status.value for status in SEAT_HOLDING_STATUSES)
_INSERT_PATTERN = re.compile(r"INSERT INTO (\w+) \(([^)]*)\) VALUES", re.IGNORECASE)


class MockSnowflakeCursor:
    """
    Mock Snowflake cursor for testing.

    Implements just enough of the cursor interface to support the gym
    repositories without a real database. Queries are recognised by
    pattern matching on their normalised text, so this only understands
    the statements the repositories actually issue.
    """

    def __init__(self, connection: 'MockSnowflakeConnection') -> None:
        self._connection = connection
        self._storage = connection._storage
        self._results: list = []
        self._rowcount: int = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        """Execute a query against mock storage."""
        normalized = " ".join(query.split())
        query_upper = normalized.upper()
        params = tuple(params or ())

        logger.debug(
            "Mock cursor execute",
            extra={"query": normalized[:100], "params": params}
        )

        self._results = []
        self._rowcount = 0

        if query_upper.startswith('BEGIN'):
            self._connection._begin()
        elif query_upper.startswith('INSERT INTO'):
            self._handle_insert(normalized, params)
        elif query_upper.startswith('UPDATE'):
            self._handle_update(query_upper, params)
        elif query_upper.startswith('SELECT'):
            self._handle_select(query_upper, params)

        return self

    # -----------------------------------------------------------------------
    # INSERT
    # -----------------------------------------------------------------------

    def _handle_insert(self, query: str, params: tuple) -> None:
        match = _INSERT_PATTERN.search(query)
        if not match:
            return

        table = match.group(1).lower()
        columns = [c.strip().lower() for c in match.group(2).split(",")]
        row = dict(zip(columns, params))

        if table == 'gym_sessions':
            self._storage[table][row['session_id']] = row
        elif table == 'bookings':
            self._storage[table][row['booking_id']] = row
        elif table == 'gym_users':
            self._storage[table][row['user_id']] = row
        elif table == 'user_achievements':
            self._storage[table][(row['user_id'], row['achievement_id'])] = row
        else:
            return

        self._rowcount = 1

    # -----------------------------------------------------------------------
    # UPDATE
    # -----------------------------------------------------------------------

    def _handle_update(self, query: str, params: tuple) -> None:
        now = datetime.utcnow()

        if query.startswith('UPDATE GYM_SESSIONS'):
            session = self._storage['gym_sessions'].get(params[0])
            if session and session.get('is_active'):
                session['updated_at'] = now
                self._rowcount = 1

        elif query.startswith('UPDATE BOOKINGS'):
            new_status, updated_at, booking_id, previous = params
            booking = self._storage['bookings'].get(booking_id)
            if booking and booking['status'] == previous:
                booking['status'] = new_status
                booking['updated_at'] = updated_at
                self._rowcount = 1

        elif query.startswith('UPDATE GYM_USERS SET POINTS = POINTS +'):
            points, user_id = params
            user = self._storage['gym_users'].get(user_id)
            if user:
                user['points'] = (user.get('points') or 0) + points
                user['updated_at'] = now
                self._rowcount = 1

        elif query.startswith('UPDATE GYM_USERS SET STATUS'):
            status, user_id = params
            user = self._storage['gym_users'].get(user_id)
            if user:
                user['status'] = status
                user['updated_at'] = now
                self._rowcount = 1

        elif query.startswith('UPDATE GYM_USERS'):
            user = self._storage['gym_users'].get(params[0])
            if user:
                user['updated_at'] = now
                self._rowcount = 1

    # -----------------------------------------------------------------------
    # SELECT
    # -----------------------------------------------------------------------

    def _handle_select(self, query: str, params: tuple) -> None:
        if query == 'SELECT 1':
            self._results = [(1,)]

        elif query.startswith('SELECT S.SESSION_ID'):
            self._select_sessions(query, params)

        elif query.startswith('SELECT B.BOOKING_ID'):
            self._select_bookings(query, params)

        elif query.startswith('SELECT COUNT(*) FROM BOOKINGS'):
            user_id, session_id = params
            count = sum(
                1 for b in self._storage['bookings'].values()
                if b['user_id'] == user_id
                and b['session_id'] == session_id
                and b['status'] == 'confirmed'
            )
            self._results = [(count,)]

        elif query.startswith('SELECT COUNT(*) FROM GYM_USERS'):
            email = params[0]
            count = sum(
                1 for u in self._storage['gym_users'].values()
                if u['email'] == email
            )
            self._results = [(count,)]

        elif query.startswith('SELECT COUNT(*) FROM USER_ACHIEVEMENTS'):
            count = 1 if tuple(params) in self._storage['user_achievements'] else 0
            self._results = [(count,)]

        elif 'FROM GYM_USERS' in query:
            user = self._storage['gym_users'].get(params[0])
            self._results = [self._member_row(user)] if user else []

        elif 'FROM USER_ACHIEVEMENTS' in query:
            rows = [
                a for a in self._storage['user_achievements'].values()
                if a['user_id'] == params[0]
            ]
            rows.sort(key=lambda a: a['earned_at'])
            self._results = [
                (a['user_id'], a['achievement_id'], a['points_awarded'], a['earned_at'])
                for a in rows
            ]

    def _select_sessions(self, query: str, params: tuple) -> None:
        sessions = self._storage['gym_sessions']

        if 'WHERE S.SESSION_ID = %S' in query:
            session = sessions.get(params[0])
            self._results = [self._session_row(session)] if session else []
            return

        start_date, end_date = params
        active_only = 'S.IS_ACTIVE = TRUE' in query
        matching = [
            s for s in sessions.values()
            if start_date <= s['session_date'] <= end_date
            and (s['is_active'] or not active_only)
        ]
        matching.sort(key=lambda s: (s['session_date'], s['start_time']))
        self._results = [self._session_row(s) for s in matching]

    def _select_bookings(self, query: str, params: tuple) -> None:
        bookings = self._storage['bookings']

        if 'WHERE B.BOOKING_ID = %S' in query:
            booking = bookings.get(params[0])
            self._results = [self._booking_row(booking)] if booking else []
            return

        user_id = params[0]
        status = params[1] if len(params) > 1 else None
        rows = [
            self._booking_row(b) for b in bookings.values()
            if b['user_id'] == user_id and (status is None or b['status'] == status)
        ]
        rows.sort(key=lambda r: (r[6] or date.min, r[7] or time.min), reverse=True)
        self._results = rows

    def _session_row(self, session: dict) -> tuple:
        """Row in the column order GymSessionRepository selects."""
        current_bookings = sum(
            1 for b in self._storage['bookings'].values()
            if b['session_id'] == session['session_id'] and b['status'] in _SEAT_HOLDING
        )
        return (
            session['session_id'],
            session['session_date'],
            session['start_time'],
            session['end_time'],
            session['capacity'],
            session['session_type'],
            session.get('instructor'),
            session.get('description'),
            session['is_active'],
            session.get('created_at'),
            current_bookings,
        )

    def _booking_row(self, booking: dict) -> tuple:
        """Row in the column order BookingRepository selects (joined to its session)."""
        session = self._storage['gym_sessions'].get(booking['session_id']) or {}
        return (
            booking['booking_id'],
            booking['user_id'],
            booking['session_id'],
            booking['status'],
            booking['booked_at'],
            booking['updated_at'],
            session.get('session_date'),
            session.get('start_time'),
        )

    @staticmethod
    def _member_row(user: dict) -> tuple:
        return (
            user['user_id'],
            user['email'],
            user.get('first_name'),
            user.get('last_name'),
            user.get('role'),
            user.get('membership_type'),
            user.get('status'),
            user.get('points'),
            user.get('created_at'),
        )

    def fetchone(self):
        """Fetch one row from results."""
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        """Fetch all rows from results."""
        return self._results

    def close(self) -> None:
        """Close cursor (no-op for mock)."""
        pass

    @property
    def rowcount(self) -> int:
        """Return number of rows affected."""
        return self._rowcount


class MockSnowflakeConnection:
    """
    Mock Snowflake connection for local development.

    Stores data in memory using a simple dictionary structure.
    This enables testing the full API without a real database.

    Transactions are real enough to test against: BEGIN takes a
    connection-wide lock so transactions from different threads run one
    after another, and rollback restores the data as it was at BEGIN.
    """

    def __init__(self) -> None:
        # In-memory storage: {table_name: {key: row_dict}}
        self._storage: dict[str, dict] = {
            'gym_sessions': {},
            'bookings': {},
            'gym_users': {},
            'user_achievements': {},
        }
        self._lock = threading.RLock()
        self._tx_owner: Optional[int] = None
        self._tx_depth = 0
        self._snapshot: Optional[dict] = None

        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        """Create a mock cursor."""
        return MockSnowflakeCursor(self)

    def _begin(self) -> None:
        self._lock.acquire()
        if self._tx_depth == 0:
            self._tx_owner = threading.get_ident()
            self._snapshot = copy.deepcopy(self._storage)
        self._tx_depth += 1

    def _end(self) -> bool:
        """Release one level of transaction. True if this closed the outermost one."""
        if self._tx_owner != threading.get_ident():
            return False

        self._tx_depth -= 1
        outermost = self._tx_depth == 0
        if outermost:
            self._tx_owner = None
        self._lock.release()
        return outermost

    def commit(self) -> None:
        """Commit the open transaction, if this thread has one."""
        if self._end():
            self._snapshot = None
        logger.debug("Mock connection commit")

    def rollback(self) -> None:
        """Restore the data to how it was when the transaction began."""
        if self._tx_owner == threading.get_ident() and self._tx_depth == 1:
            for table, rows in self._snapshot.items():
                self._storage[table].clear()
                self._storage[table].update(rows)
            self._snapshot = None
        self._end()
        logger.debug("Mock connection rollback")

    def close(self) -> None:
        """Close connection (no-op for mock)."""
        logger.debug("Mock connection close")

    # Helper methods for testing
    def _table(self, name: str) -> dict:
        """Raw rows of one table (for test assertions)."""
        return self._storage[name]

    def _clear(self) -> None:
        """Clear all mock storage (for test cleanup)."""
        for table in self._storage.values():
            table.clear()


@contextmanager
def get_mock_snowflake_connection() -> Generator[MockSnowflakeConnection, None, None]:
    """
    Provide mock Snowflake connection for local development.

    Returns a connection that stores data in memory. Perfect for
    testing and local development without provisioning Snowflake.
    """
    conn = MockSnowflakeConnection()
    try:
        yield conn
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

@contextmanager
def create_snowflake_connection(
    config: Optional[SnowflakeConfig] = None,
    mock_mode: bool = False,
) -> Generator[SnowflakeConnection, None, None]:
    """
    Create Snowflake connection based on configuration.

    Factory function that returns either a real or mock connection
    depending on mock_mode flag.

    Args:
        config: Snowflake configuration (required if not mock_mode)
        mock_mode: If True, return mock connection for testing

    Yields:
        SnowflakeConnection implementation (real or mock)
    """
    if mock_mode:
        with get_mock_snowflake_connection() as conn:
            yield conn
    else:
        if config is None:
            raise ValueError("config is required when not in mock mode")

        with get_snowflake_connection(config) as conn:
            yield conn
