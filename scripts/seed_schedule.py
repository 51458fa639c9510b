#!/usr/bin/env python3
"""
Create the gym tables in Snowflake and seed a weekly timetable.

Every day in the range gets the standard open-gym slots; weekday
evenings also get a class.

Usage:
    python scripts/seed_schedule.py --create-tables
    python scripts/seed_schedule.py --start 2025-03-03 --weeks 4
    python scripts/seed_schedule.py --dry-run

Requires:
    - .env file with Snowflake credentials
"""

import argparse
import sys
from datetime import date, datetime, time, timedelta
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.config.settings import get_settings
from src.core.gym.models import GymSession, SessionType
from src.infrastructure.snowflake.client import (
    SnowflakeConnectionError,
    create_snowflake_connection,
)
from src.infrastructure.snowflake.repositories import GymSessionRepository, SnowflakeConfig


TABLE_DDL = [
    """
    CREATE TABLE IF NOT EXISTS gym_sessions (
        session_id VARCHAR(36) PRIMARY KEY,
        session_date DATE NOT NULL,
        start_time TIME NOT NULL,
        end_time TIME NOT NULL,
        capacity INTEGER NOT NULL,
        session_type VARCHAR(32) DEFAULT 'general',
        instructor VARCHAR(200),
        description VARCHAR(2000),
        is_active BOOLEAN DEFAULT TRUE,
        created_at TIMESTAMP_NTZ NOT NULL,
        updated_at TIMESTAMP_NTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS gym_users (
        user_id VARCHAR(100) PRIMARY KEY,
        email VARCHAR(254) NOT NULL UNIQUE,
        first_name VARCHAR(100),
        last_name VARCHAR(100),
        role VARCHAR(16) DEFAULT 'student',
        membership_type VARCHAR(32),
        status VARCHAR(16) DEFAULT 'pending',
        points INTEGER DEFAULT 0,
        created_at TIMESTAMP_NTZ NOT NULL,
        updated_at TIMESTAMP_NTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS bookings (
        booking_id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(100) NOT NULL,
        session_id VARCHAR(36) NOT NULL,
        status VARCHAR(16) NOT NULL,
        booked_at TIMESTAMP_NTZ NOT NULL,
        updated_at TIMESTAMP_NTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_achievements (
        user_id VARCHAR(100) NOT NULL,
        achievement_id VARCHAR(50) NOT NULL,
        points_awarded INTEGER NOT NULL,
        earned_at TIMESTAMP_NTZ NOT NULL,
        PRIMARY KEY (user_id, achievement_id)
    )
    """,
]

# (start, end, capacity)
OPEN_GYM_SLOTS = [
    (time(6, 0), time(7, 30), 20),
    (time(7, 30), time(9, 0), 20),
    (time(12, 0), time(13, 30), 25),
    (time(16, 30), time(18, 0), 30),
    (time(18, 0), time(19, 30), 30),
]

WEEKDAY_CLASS = (time(19, 30), time(20, 30), 15)


def build_timetable(start: date, weeks: int) -> list[GymSession]:
    """One GymSession per slot for every day in the range."""
    sessions = []

    for offset in range(weeks * 7):
        day = start + timedelta(days=offset)

        for start_time, end_time, capacity in OPEN_GYM_SLOTS:
            sessions.append(GymSession(
                session_date=day,
                start_time=start_time,
                end_time=end_time,
                capacity=capacity,
                session_type=SessionType.GENERAL,
                description="Open gym",
            ))

        if day.weekday() < 5:
            start_time, end_time, capacity = WEEKDAY_CLASS
            sessions.append(GymSession(
                session_date=day,
                start_time=start_time,
                end_time=end_time,
                capacity=capacity,
                session_type=SessionType.CLASS,
                description="Circuit class",
            ))

    return sessions


def seed(sessions: list[GymSession], create_tables: bool, dry_run: bool = False) -> bool:
    settings = get_settings()

    if dry_run:
        print("\n=== DRY RUN - No data will be inserted ===\n")
        for session in sessions:
            print(
                f"Would insert: {session.session_date} "
                f"{session.start_time:%H:%M}-{session.end_time:%H:%M} "
                f"{session.session_type.value} ({session.capacity} seats)"
            )
        print(f"\nTotal: {len(sessions)} sessions")
        return True

    missing = settings.validate_required_fields()
    if missing:
        print(f"ERROR: Missing configuration: {', '.join(missing)}")
        return False

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

    print(f"Connecting to Snowflake account: {config.account}")
    try:
        with create_snowflake_connection(config=config, mock_mode=settings.snowflake_mock_mode) as conn:
            if create_tables:
                cursor = conn.cursor()
                try:
                    for ddl in TABLE_DDL:
                        cursor.execute(ddl)
                    conn.commit()
                finally:
                    cursor.close()
                print("[OK] Tables created")

            repository = GymSessionRepository(conn)
            inserted = 0
            for session in sessions:
                repository.create_session(session)
                inserted += 1

            print(f"\n=== Seed Complete ===")
            print(f"Inserted: {inserted}")
            return True

    except SnowflakeConnectionError as e:
        print(f"ERROR connecting to Snowflake: {e}")
        return False


def main():
    parser = argparse.ArgumentParser(description='Seed the gym timetable in Snowflake')
    parser.add_argument('--start', type=date.fromisoformat, default=None,
                        help='First day to seed (default: today)')
    parser.add_argument('--weeks', type=int, default=2, help='Number of weeks to seed')
    parser.add_argument('--create-tables', action='store_true', help='Create tables first')
    parser.add_argument('--dry-run', action='store_true', help='Print sessions, don\'t insert')
    args = parser.parse_args()

    if args.weeks < 1:
        print("ERROR: --weeks must be at least 1")
        sys.exit(1)

    start = args.start or datetime.now().date()
    sessions = build_timetable(start, args.weeks)
    print(f"Built {len(sessions)} sessions from {start} over {args.weeks} week(s)")

    success = seed(sessions, create_tables=args.create_tables, dry_run=args.dry_run)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
