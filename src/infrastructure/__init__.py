"""
Infrastructure layer - external service integrations.

- snowflake: Database persistence (plus an in-memory mock for local dev)

These wrappers translate between Snowflake rows and our domain models.
"""
