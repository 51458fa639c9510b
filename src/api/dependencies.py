"""
FastAPI dependency injection.

Dependencies provide instances of services, repositories, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- Configuration is centralized
- Resource lifecycle (connections) is managed properly

FastAPI caches a dependency within one request, so every repository and
service built for a request shares the same database connection. That
matters: the transaction opened by a service has to cover the
repositories it calls.
"""

import logging
from datetime import date, datetime
from typing import Annotated, Generator
from zoneinfo import ZoneInfo

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.gym.achievements import AchievementService
from ..core.gym.booking import BookingService
from ..core.gym.members import MemberService
from ..infrastructure.snowflake.client import (
    MockSnowflakeConnection,
    SnowflakeTransactionManager,
    create_snowflake_connection,
)
from ..infrastructure.snowflake.repositories import (
    AchievementRepository,
    BookingRepository,
    GymSessionRepository,
    MemberRepository,
    SnowflakeConfig,
)
from ..infrastructure.snowflake.repositories.sessions import SnowflakeConnection

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Global mock connection (shared across requests so data persists in mock mode)
_mock_snowflake_connection = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Admin keys are accepted everywhere a normal key is.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list and api_key not in settings.admin_api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8] if api_key else ""}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


async def get_is_admin(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: Annotated[str, Depends(verify_api_key)],
) -> bool:
    """Whether the caller's key carries the admin role."""
    return api_key in settings.admin_api_keys_list


async def require_admin(
    is_admin: Annotated[bool, Depends(get_is_admin)],
) -> None:
    """Reject the request with 403 unless the caller is an admin."""
    if not is_admin:
        logger.warning("Admin endpoint called without admin key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

def get_today(
    settings: Annotated[Settings, Depends(get_settings)],
) -> date:
    """
    Today's date at the gym.

    Weeks, months and streaks are all calendar-based, so "today" has to be
    the gym's local date rather than the server's UTC date.
    """
    return datetime.now(ZoneInfo(settings.gym_timezone)).date()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

def get_connection(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide a database connection for the request.

    This is a generator function (yields instead of returns) because
    we need to manage the connection lifecycle:
    1. Create connection
    2. Yield it (FastAPI injects it)
    3. Close connection (cleanup after request)

    In mock mode, we reuse the same connection across requests
    so that data persists during the testing session.
    """
    global _mock_snowflake_connection

    if settings.snowflake_mock_mode:
        if _mock_snowflake_connection is None:
            _mock_snowflake_connection = MockSnowflakeConnection()
            logger.info("Created shared mock Snowflake connection")

        logger.debug("Using shared mock Snowflake connection")
        yield _mock_snowflake_connection
    else:
        config = SnowflakeConfig(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            private_key_base64=settings.snowflake_private_key_base64,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )

        with create_snowflake_connection(config=config) as conn:
            logger.debug("Opened Snowflake connection for request")
            yield conn


def reset_mock_connection() -> None:
    """Drop the shared mock connection so the next request starts empty."""
    global _mock_snowflake_connection
    _mock_snowflake_connection = None


ConnectionDep = Annotated[SnowflakeConnection, Depends(get_connection)]


def get_session_repository(conn: ConnectionDep) -> GymSessionRepository:
    return GymSessionRepository(conn)


def get_booking_repository(conn: ConnectionDep) -> BookingRepository:
    return BookingRepository(conn)


def get_member_repository(conn: ConnectionDep) -> MemberRepository:
    return MemberRepository(conn)


def get_achievement_repository(conn: ConnectionDep) -> AchievementRepository:
    return AchievementRepository(conn)


def get_transaction_manager(conn: ConnectionDep) -> SnowflakeTransactionManager:
    return SnowflakeTransactionManager(conn)


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_booking_service(
    sessions: Annotated[GymSessionRepository, Depends(get_session_repository)],
    bookings: Annotated[BookingRepository, Depends(get_booking_repository)],
    transactions: Annotated[SnowflakeTransactionManager, Depends(get_transaction_manager)],
) -> BookingService:
    """
    Provide BookingService wired to the request's repositories.

    The service is stateless, so we create a new instance per request.
    """
    return BookingService(sessions=sessions, bookings=bookings, transactions=transactions)


def get_achievement_service(
    achievements: Annotated[AchievementRepository, Depends(get_achievement_repository)],
    bookings: Annotated[BookingRepository, Depends(get_booking_repository)],
    members: Annotated[MemberRepository, Depends(get_member_repository)],
    transactions: Annotated[SnowflakeTransactionManager, Depends(get_transaction_manager)],
) -> AchievementService:
    return AchievementService(
        achievements=achievements,
        bookings=bookings,
        members=members,
        transactions=transactions,
    )


def get_member_service(
    settings: Annotated[Settings, Depends(get_settings)],
    members: Annotated[MemberRepository, Depends(get_member_repository)],
    bookings: Annotated[BookingRepository, Depends(get_booking_repository)],
    achievements: Annotated[AchievementRepository, Depends(get_achievement_repository)],
    transactions: Annotated[SnowflakeTransactionManager, Depends(get_transaction_manager)],
) -> MemberService:
    return MemberService(
        members=members,
        bookings=bookings,
        achievements=achievements,
        transactions=transactions,
        email_domain=settings.member_email_domain,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
IsAdmin = Annotated[bool, Depends(get_is_admin)]
AdminOnly = Annotated[None, Depends(require_admin)]
Today = Annotated[date, Depends(get_today)]
SessionRepositoryDep = Annotated[GymSessionRepository, Depends(get_session_repository)]
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
AchievementServiceDep = Annotated[AchievementService, Depends(get_achievement_service)]
MemberServiceDep = Annotated[MemberService, Depends(get_member_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
