"""
Core business logic for the gym.

This module is framework-agnostic - it doesn't import FastAPI, Snowflake,
or any infrastructure concerns. This separation means we can test the
booking and achievement rules in isolation and swap frameworks if needed.
"""
