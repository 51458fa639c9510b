"""
HTTP tests for the API routes.

These go through the full FastAPI stack (auth, dependency injection,
error mapping) with the in-memory mock database.
"""


# ---------------------------------------------------------------------------
# Health and Auth
# ---------------------------------------------------------------------------

class TestHealth:

    def test_liveness_needs_no_key(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_readiness_in_mock_mode(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"


class TestAuth:

    def test_missing_key_is_rejected(self, client):
        assert client.get("/api/v1/sessions").status_code == 403

    def test_wrong_key_is_rejected(self, client):
        response = client.get("/api/v1/sessions", headers={"X-API-Key": "nope"})
        assert response.status_code == 403

    def test_member_key_cannot_create_sessions(self, client, member_headers):
        response = client.post(
            "/api/v1/sessions",
            json={"session_date": "2025-03-12", "start_time": "07:00:00", "end_time": "08:00:00", "capacity": 5},
            headers=member_headers,
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Admin role required"


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

class TestSessions:

    def test_list_defaults_to_coming_week(self, client, member_headers, create_session):
        create_session(session_date="2025-03-12")
        create_session(session_date="2025-03-18")
        create_session(session_date="2025-03-19")

        response = client.get("/api/v1/sessions", headers=member_headers)

        assert response.status_code == 200
        dates = [s["session_date"] for s in response.json()["sessions"]]
        assert dates == ["2025-03-12", "2025-03-18"]

    def test_inverted_range_is_rejected(self, client, member_headers):
        response = client.get(
            "/api/v1/sessions",
            params={"start_date": "2025-03-12", "end_date": "2025-03-01"},
            headers=member_headers,
        )
        assert response.status_code == 400

    def test_unknown_session_is_404(self, client, member_headers):
        response = client.get(
            "/api/v1/sessions/00000000-0000-0000-0000-000000000000",
            headers=member_headers,
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Session not found"

    def test_end_before_start_is_422(self, client, admin_headers):
        response = client.post(
            "/api/v1/sessions",
            json={"session_date": "2025-03-12", "start_time": "09:00:00", "end_time": "08:00:00", "capacity": 5},
            headers=admin_headers,
        )
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------

class TestBookings:

    def test_book_with_camel_case_body(self, client, member_headers, create_session):
        session = create_session(capacity=2)

        response = client.post(
            "/api/v1/bookings",
            json={"userId": "member-a", "sessionId": session["session_id"]},
            headers=member_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Session booked successfully"
        assert body["booking"]["status"] == "confirmed"

        refreshed = client.get(f"/api/v1/sessions/{session['session_id']}", headers=member_headers)
        assert refreshed.json()["current_bookings"] == 1
        assert refreshed.json()["available_spots"] == 1

    def test_user_id_from_header(self, client, member_headers, create_session):
        session = create_session()

        response = client.post(
            "/api/v1/bookings",
            json={"session_id": session["session_id"]},
            headers={**member_headers, "X-User-Id": "member-a"},
        )

        assert response.status_code == 201
        assert response.json()["booking"]["user_id"] == "member-a"

    def test_missing_ids_is_400(self, client, member_headers):
        response = client.post("/api/v1/bookings", json={}, headers=member_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "User ID and Session ID are required"

    def test_blank_user_id_is_400(self, client, member_headers, create_session):
        session = create_session()

        response = client.post(
            "/api/v1/bookings",
            json={"userId": "   ", "sessionId": session["session_id"]},
            headers=member_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "User ID and Session ID are required"

    def test_blank_body_user_falls_back_to_header(self, client, member_headers, create_session):
        session = create_session()

        response = client.post(
            "/api/v1/bookings",
            json={"userId": " ", "sessionId": session["session_id"]},
            headers={**member_headers, "X-User-Id": "member-a"},
        )

        assert response.status_code == 201
        assert response.json()["booking"]["user_id"] == "member-a"

    def test_full_session_is_409(self, client, member_headers, create_session):
        session = create_session(capacity=1)
        client.post(
            "/api/v1/bookings",
            json={"user_id": "member-a", "session_id": session["session_id"]},
            headers=member_headers,
        )

        response = client.post(
            "/api/v1/bookings",
            json={"user_id": "member-b", "session_id": session["session_id"]},
            headers=member_headers,
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "Session is fully booked"

    def test_duplicate_is_409(self, client, member_headers, create_session):
        session = create_session(capacity=3)
        payload = {"user_id": "member-a", "session_id": session["session_id"]}
        client.post("/api/v1/bookings", json=payload, headers=member_headers)

        response = client.post("/api/v1/bookings", json=payload, headers=member_headers)

        assert response.status_code == 409

    def test_cancel_own_booking(self, client, member_headers, create_session):
        session = create_session()
        booking = client.post(
            "/api/v1/bookings",
            json={"user_id": "member-a", "session_id": session["session_id"]},
            headers=member_headers,
        ).json()["booking"]

        forbidden = client.post(
            f"/api/v1/bookings/{booking['booking_id']}/cancel",
            headers={**member_headers, "X-User-Id": "member-b"},
        )
        assert forbidden.status_code == 403

        cancelled = client.post(
            f"/api/v1/bookings/{booking['booking_id']}/cancel",
            headers={**member_headers, "X-User-Id": "member-a"},
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"

    def test_check_in_is_admin_only(self, client, member_headers, admin_headers, create_session):
        session = create_session()
        booking = client.post(
            "/api/v1/bookings",
            json={"user_id": "member-a", "session_id": session["session_id"]},
            headers=member_headers,
        ).json()["booking"]
        path = f"/api/v1/bookings/{booking['booking_id']}/complete"

        assert client.post(path, headers=member_headers).status_code == 403

        response = client.post(path, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        again = client.post(path, headers=admin_headers)
        assert again.status_code == 409


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------

class TestAchievements:

    def _complete_workout(self, client, user_id, session, member_headers, admin_headers):
        booking = client.post(
            "/api/v1/bookings",
            json={"user_id": user_id, "session_id": session["session_id"]},
            headers=member_headers,
        ).json()["booking"]
        client.post(f"/api/v1/bookings/{booking['booking_id']}/complete", headers=admin_headers)

    def test_catalog(self, client, member_headers):
        response = client.get("/api/v1/achievements", params={"type": "all"}, headers=member_headers)

        assert response.status_code == 200
        ids = {a["id"] for a in response.json()["achievements"]}
        assert ids == {
            "first_workout", "weekly_warrior", "consistency_king",
            "early_bird", "month_master", "dedicated_member",
        }

    def test_needs_user_or_type(self, client, member_headers):
        response = client.get("/api/v1/achievements", headers=member_headers)
        assert response.status_code == 400

    def test_unknown_user_is_404(self, client, member_headers):
        response = client.get("/api/v1/achievements", params={"user_id": "nobody"}, headers=member_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"

    def test_grant_flow(self, client, member_headers, admin_headers, create_session, register_member):
        user_id = register_member()
        session = create_session(start_time="07:00:00")
        self._complete_workout(client, user_id, session, member_headers, admin_headers)

        granted = client.post(
            "/api/v1/achievements/grant",
            json={"userId": user_id, "achievementId": "first_workout"},
            headers=member_headers,
        )
        assert granted.status_code == 201, granted.text
        assert granted.json()["message"] == "Achievement awarded!"
        assert granted.json()["achievement"]["points_awarded"] == 10

        again = client.post(
            "/api/v1/achievements/grant",
            json={"user_id": user_id, "achievement_id": "first_workout"},
            headers=member_headers,
        )
        assert again.status_code == 409
        assert again.json()["detail"] == "Achievement already earned"

        summary = client.get("/api/v1/achievements", params={"user_id": user_id}, headers=member_headers)
        body = summary.json()
        assert body["total_points"] == 10
        assert [a["id"] for a in body["earned"]] == ["first_workout"]
        early_bird = next(a for a in body["available"] if a["id"] == "early_bird")
        assert early_bird["progress"] == 20.0

        member = client.get(f"/api/v1/users/{user_id}", headers=member_headers)
        assert member.json()["points"] == 10

    def test_locked_achievement_is_409(self, client, member_headers, register_member):
        user_id = register_member()

        response = client.post(
            "/api/v1/achievements/grant",
            json={"user_id": user_id, "achievement_id": "weekly_warrior"},
            headers=member_headers,
        )

        assert response.status_code == 409

    def test_override_requires_admin_key(self, client, member_headers, admin_headers, register_member):
        user_id = register_member()
        payload = {"user_id": user_id, "achievement_id": "month_master", "admin_override": True}

        assert client.post("/api/v1/achievements/grant", json=payload, headers=member_headers).status_code == 403

        response = client.post("/api/v1/achievements/grant", json=payload, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["achievement"]["points_awarded"] == 150


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class TestUsers:

    def test_register_outside_domain_is_422(self, client, member_headers):
        response = client.post(
            "/api/v1/users",
            json={"email": "jo@gmail.com", "first_name": "Jo", "last_name": "Bloggs"},
            headers=member_headers,
        )
        assert response.status_code == 422

    def test_duplicate_registration_is_409(self, client, member_headers, register_member):
        register_member("jo@my.jcu.edu.au")

        response = client.post(
            "/api/v1/users",
            json={"email": "jo@my.jcu.edu.au", "first_name": "Jo", "last_name": "Bloggs"},
            headers=member_headers,
        )
        assert response.status_code == 409

    def test_approve_is_admin_only(self, client, member_headers):
        response = client.post("/api/v1/users/someone/approve", headers=member_headers)
        assert response.status_code == 403

    def test_stats_and_bookings(self, client, member_headers, admin_headers, create_session, register_member):
        user_id = register_member()
        done = create_session(session_date="2025-03-11")
        upcoming = create_session(session_date="2025-03-13")
        for session in (done, upcoming):
            client.post(
                "/api/v1/bookings",
                json={"user_id": user_id, "session_id": session["session_id"]},
                headers=member_headers,
            )
        bookings = client.get(f"/api/v1/users/{user_id}/bookings", headers=member_headers).json()
        assert bookings["total"] == 2
        past = next(b for b in bookings["bookings"] if b["session_date"] == "2025-03-11")
        client.post(f"/api/v1/bookings/{past['booking_id']}/complete", headers=admin_headers)

        stats = client.get(f"/api/v1/users/{user_id}/stats", headers=member_headers).json()

        assert stats["total_workouts"] == 1
        assert stats["current_streak"] == 1
        assert stats["weekly_bookings"] == 1
        assert stats["status"] == "approved"

        completed = client.get(
            f"/api/v1/users/{user_id}/bookings",
            params={"status": "completed"},
            headers=member_headers,
        ).json()
        assert [b["booking_id"] for b in completed["bookings"]] == [past["booking_id"]]

    def test_unknown_booking_status_filter_is_400(self, client, member_headers):
        response = client.get(
            "/api/v1/users/someone/bookings",
            params={"status": "maybe"},
            headers=member_headers,
        )
        assert response.status_code == 400
