"""
Tests for the HTTP API.

These tests drive the FastAPI app through TestClient against an in-memory
database and check that domain errors map to the right status codes.
"""

import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from matchday.database import Base, get_db
from matchday.main import app
from matchday.admins import add_admin
from matchday.seasons import ensure_initial_season

ADMIN_ID = 1
SUPER_ADMIN_ID = 2
FUTURE_KICKOFF = "2099-06-01T18:00:00"


@pytest.fixture(scope="function")
def client():
    """TestClient wired to a fresh in-memory database with one admin."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = TestingSession()
    ensure_initial_season(db)
    add_admin(db, ADMIN_ID)
    add_admin(db, SUPER_ADMIN_ID, is_super_admin=True)
    db.close()

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def match_id(client):
    for user_id, name in [(101, "Alice"), (102, "Bob"), (103, "Carol")]:
        response = client.post("/users/", json={"id": user_id, "first_name": name})
        assert response.status_code == 200

    response = client.post("/matches/", json={
        "team_a": "Spartak", "team_b": "Zenit",
        "match_date": FUTURE_KICKOFF, "admin_id": ADMIN_ID
    })
    assert response.status_code == 200
    return response.json()["id"]


def _predict(client, match_id, user_id, a, b):
    return client.put(
        f"/matches/{match_id}/predictions/{user_id}",
        json={"prediction_a": a, "prediction_b": b}
    )


class TestMatchFlow:

    def test_predict_and_settle(self, client, match_id):
        assert _predict(client, match_id, 101, 2, 1).status_code == 200
        assert _predict(client, match_id, 102, 1, 1).status_code == 200
        assert _predict(client, match_id, 103, 0, 2).status_code == 200

        response = client.post(f"/matches/{match_id}/settle", json={
            "result_a": 2, "result_b": 1, "admin_id": ADMIN_ID
        })

        assert response.status_code == 200
        report = response.json()
        assert {line["user_id"]: line["points"] for line in report["lines"]} == {101: 3, 102: 0, 103: 0}
        assert client.get("/users/101").json()["total_points"] == 3

    def test_settle_twice_conflicts(self, client, match_id):
        payload = {"result_a": 1, "result_b": 0, "admin_id": ADMIN_ID}
        client.post(f"/matches/{match_id}/settle", json=payload)

        response = client.post(f"/matches/{match_id}/settle", json=payload)

        assert response.status_code == 409
        assert response.json()["error"] == "AlreadySettled"

    def test_invalid_result(self, client, match_id):
        response = client.post(f"/matches/{match_id}/settle", json={
            "result_a": 21, "result_b": 0, "admin_id": ADMIN_ID
        })

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidResult"

    def test_invalid_prediction(self, client, match_id):
        response = _predict(client, match_id, 101, -1, 0)

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidPrediction"

    def test_settle_requires_admin(self, client, match_id):
        response = client.post(f"/matches/{match_id}/settle", json={
            "result_a": 1, "result_b": 0, "admin_id": 101
        })

        assert response.status_code == 403
        assert client.get(f"/matches/{match_id}").json()["is_finished"] is False

    def test_unknown_match(self, client):
        response = client.get("/matches/999")

        assert response.status_code == 404
        assert response.json()["error"] == "MatchNotFound"

    def test_predictions_closed_after_settlement(self, client, match_id):
        client.post(f"/matches/{match_id}/settle", json={"result_a": 0, "result_b": 0, "admin_id": ADMIN_ID})

        response = _predict(client, match_id, 101, 0, 0)
        assert response.status_code == 409

    def test_offset_kickoff_in_the_past_closes_predictions(self, client):
        client.post("/users/", json={"id": 101, "first_name": "Alice"})
        moscow = timezone(timedelta(hours=3))
        kickoff = datetime.now(moscow) - timedelta(hours=1)

        response = client.post("/matches/", json={
            "team_a": "Spartak", "team_b": "Zenit",
            "match_date": kickoff.isoformat(), "admin_id": ADMIN_ID
        })
        assert response.status_code == 200
        new_match_id = response.json()["id"]

        response = _predict(client, new_match_id, 101, 1, 0)
        assert response.status_code == 409
        assert response.json()["error"] == "PredictionsClosed"


class TestPoints:

    def test_add_then_subtract(self, client, match_id):
        first = client.post("/points/101/add", json={"delta": 5, "admin_id": ADMIN_ID}).json()
        second = client.post("/points/101/add", json={"delta": -3, "admin_id": ADMIN_ID}).json()

        assert second["old_total"] == first["new_total"] == 5
        assert client.get("/users/101").json()["total_points"] == 2

        history = client.get("/points/history", params={"user_id": 101}).json()
        assert [entry["points_change"] for entry in history] == [-3, 5]

    def test_set_negative_rejected(self, client, match_id):
        response = client.post("/points/101/set", json={"new_total": -5, "admin_id": ADMIN_ID})

        assert response.status_code == 422
        assert response.json()["error"] == "NegativeTotal"

    def test_unknown_user(self, client):
        response = client.post("/points/404/set", json={"new_total": 5, "admin_id": ADMIN_ID})

        assert response.status_code == 404


class TestReminders:

    def test_recipients_for_unknown_match(self, client):
        response = client.get("/reminders/999/recipients")

        assert response.status_code == 404
        assert response.json()["error"] == "MatchNotFound"

    def test_recipients_exclude_predictors(self, client, match_id):
        _predict(client, match_id, 102, 1, 1)

        recipients = client.get(f"/reminders/{match_id}/recipients").json()
        assert [user["id"] for user in recipients] == [101, 103]


class TestSeasons:

    def test_close_and_read_archive(self, client, match_id):
        client.post("/points/101/add", json={"delta": 7, "admin_id": ADMIN_ID})

        response = client.post("/seasons/close", json={"admin_id": ADMIN_ID, "name": "Second"})
        assert response.status_code == 200
        assert response.json()["new_season_number"] == 2
        assert response.json()["users_reset"] == 3

        assert client.get("/seasons/current").json()["name"] == "Second"
        assert client.get("/users/101").json()["total_points"] == 0

        results = client.get("/seasons/1/results").json()
        assert results[0]["user_id"] == 101
        assert results[0]["final_points"] == 7

        stats = client.get("/users/101/seasons/1").json()
        assert stats["is_current"] is False
        assert stats["final_points"] == 7

    def test_unknown_season(self, client):
        assert client.get("/seasons/9/results").status_code == 404


class TestAdmins:

    def test_only_super_admin_adds(self, client):
        response = client.post("/admins/", json={"user_id": 50, "added_by": ADMIN_ID})
        assert response.status_code == 403

        response = client.post("/admins/", json={"user_id": 50, "added_by": SUPER_ADMIN_ID})
        assert response.status_code == 200
        assert 50 in [a["user_id"] for a in client.get("/admins/").json()]

    def test_remove(self, client):
        response = client.delete(f"/admins/{ADMIN_ID}", params={"removed_by": SUPER_ADMIN_ID})
        assert response.status_code == 204
        assert ADMIN_ID not in [a["user_id"] for a in client.get("/admins/").json()]
