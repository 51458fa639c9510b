"""
JCU Gym API - bookings and achievements for the university gym.

This package contains the complete application:
- core: Framework-agnostic business logic
- infrastructure: Snowflake persistence
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
