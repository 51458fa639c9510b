"""HTTP test client wired to the shared mock connection."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_today, reset_mock_connection
from src.config.settings import Settings, get_settings
from src.main import app

API_TODAY = date(2025, 3, 12)
MEMBER_KEY = "test-key"
ADMIN_KEY = "admin-key"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        api_keys=MEMBER_KEY,
        admin_api_keys=ADMIN_KEY,
        snowflake_mock_mode=True,
        member_email_domain="my.jcu.edu.au",
    )


@pytest.fixture
def client(test_settings):
    reset_mock_connection()
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_today] = lambda: API_TODAY

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    reset_mock_connection()


@pytest.fixture
def member_headers() -> dict:
    return {"X-API-Key": MEMBER_KEY}


@pytest.fixture
def admin_headers() -> dict:
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture
def create_session(client, admin_headers):
    """Add a session through the API and return its JSON."""

    def _create(capacity: int = 5, session_date: str = "2025-03-12", start_time: str = "07:00:00") -> dict:
        hour = int(start_time[:2])
        response = client.post(
            "/api/v1/sessions",
            json={
                "session_date": session_date,
                "start_time": start_time,
                "end_time": f"{hour + 1:02d}{start_time[2:]}",
                "capacity": capacity,
            },
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def register_member(client, member_headers, admin_headers):
    """Register and approve a member through the API, returning its id."""

    def _register(email: str = "jo@my.jcu.edu.au") -> str:
        response = client.post(
            "/api/v1/users",
            json={"email": email, "firstName": "Jo", "lastName": "Bloggs"},
            headers=member_headers,
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["user_id"]

        approved = client.post(f"/api/v1/users/{user_id}/approve", headers=admin_headers)
        assert approved.status_code == 200, approved.text
        return user_id

    return _register
