"""
Tests for prediction intake and users.

These tests verify:
1. Predictions are validated and can be overwritten until kickoff
2. Predictions are frozen after kickoff or once the match is finished
3. Users are registered once and ranked on the leaderboard
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from datetime import datetime, timedelta, timezone

from matchday.database import Base
from matchday.errors import (
    InvalidPrediction, MatchNotFound, NoActiveSeason, PredictionsClosed, UserNotFound
)
from matchday.models import Prediction, User
from matchday import predictions, users
from matchday.seasons import close_season, ensure_initial_season
from matchday.settlement import settle_match

KICKOFF = datetime(2030, 6, 1, 18, 0)
BEFORE_KICKOFF = KICKOFF - timedelta(hours=2)
MOSCOW = timezone(timedelta(hours=3))


# Test database setup
@pytest.fixture(scope="function")
def db_session():
    """Create a fresh test database for each test function."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def sample_season(db_session):
    return ensure_initial_season(db_session)


@pytest.fixture
def sample_user(db_session, sample_season):
    return users.register_user(db_session, 7, username="nine", first_name="Nina")


@pytest.fixture
def sample_match(db_session, sample_season):
    return predictions.create_match(db_session, "CSKA", "Lokomotiv", KICKOFF)


class TestSubmitPrediction:
    """Tests for submitting predictions."""

    def test_creates_prediction(self, db_session, sample_user, sample_match):
        prediction = predictions.submit_prediction(
            db_session, sample_user.id, sample_match.id, 2, 0, now=BEFORE_KICKOFF
        )

        assert prediction.id is not None
        assert (prediction.prediction_a, prediction.prediction_b) == (2, 0)
        assert prediction.points_earned == 0
        assert prediction.settled_at is None

    def test_overwrite_before_kickoff(self, db_session, sample_user, sample_match):
        predictions.submit_prediction(db_session, sample_user.id, sample_match.id, 2, 0, now=BEFORE_KICKOFF)
        predictions.submit_prediction(db_session, sample_user.id, sample_match.id, 1, 1, now=BEFORE_KICKOFF)

        rows = db_session.query(Prediction).all()
        assert len(rows) == 1
        assert (rows[0].prediction_a, rows[0].prediction_b) == (1, 1)

    @pytest.mark.parametrize("score", [(-1, 0), (21, 0), (0, 30)])
    def test_out_of_bounds_rejected(self, db_session, sample_user, sample_match, score):
        with pytest.raises(InvalidPrediction):
            predictions.submit_prediction(db_session, sample_user.id, sample_match.id, *score, now=BEFORE_KICKOFF)

        assert db_session.query(Prediction).count() == 0

    def test_closed_at_kickoff(self, db_session, sample_user, sample_match):
        with pytest.raises(PredictionsClosed):
            predictions.submit_prediction(db_session, sample_user.id, sample_match.id, 1, 0, now=KICKOFF)

    def test_existing_prediction_frozen_after_kickoff(self, db_session, sample_user, sample_match):
        predictions.submit_prediction(db_session, sample_user.id, sample_match.id, 2, 0, now=BEFORE_KICKOFF)

        with pytest.raises(PredictionsClosed):
            predictions.submit_prediction(
                db_session, sample_user.id, sample_match.id, 0, 2, now=KICKOFF + timedelta(minutes=1)
            )

        prediction = predictions.get_prediction(db_session, sample_user.id, sample_match.id)
        assert (prediction.prediction_a, prediction.prediction_b) == (2, 0)

    def test_closed_when_finished(self, db_session, sample_user, sample_match):
        settle_match(db_session, sample_match.id, 1, 0)

        with pytest.raises(PredictionsClosed):
            predictions.submit_prediction(db_session, sample_user.id, sample_match.id, 1, 0, now=BEFORE_KICKOFF)

    def test_unknown_match(self, db_session, sample_user):
        with pytest.raises(MatchNotFound):
            predictions.submit_prediction(db_session, sample_user.id, 999, 1, 0, now=BEFORE_KICKOFF)

    def test_unknown_user(self, db_session, sample_match):
        with pytest.raises(UserNotFound):
            predictions.submit_prediction(db_session, 999, sample_match.id, 1, 0, now=BEFORE_KICKOFF)

    def test_aware_now_compared_in_utc(self, db_session, sample_user, sample_match):
        # 19:30 in Moscow is 16:30 UTC, before the 18:00 UTC kickoff
        predictions.submit_prediction(
            db_session, sample_user.id, sample_match.id, 1, 0,
            now=datetime(2030, 6, 1, 19, 30, tzinfo=MOSCOW)
        )

        # 21:30 in Moscow is 18:30 UTC, after kickoff
        with pytest.raises(PredictionsClosed):
            predictions.submit_prediction(
                db_session, sample_user.id, sample_match.id, 2, 0,
                now=datetime(2030, 6, 1, 21, 30, tzinfo=MOSCOW)
            )


class TestMatches:

    def test_aware_kickoff_stored_as_utc(self, db_session, sample_season):
        match = predictions.create_match(
            db_session, "A", "B", datetime(2030, 6, 1, 21, 0, tzinfo=MOSCOW)
        )

        assert match.match_date == KICKOFF
        assert not predictions.predictions_open(match, now=KICKOFF + timedelta(minutes=1))

    def test_active_matches_ordered_by_kickoff(self, db_session, sample_season):
        late = predictions.create_match(db_session, "C", "D", KICKOFF + timedelta(days=1))
        early = predictions.create_match(db_session, "A", "B", KICKOFF)

        assert [m.id for m in predictions.get_active_matches(db_session)] == [early.id, late.id]

    def test_finished_matches_not_active(self, db_session, sample_match):
        settle_match(db_session, sample_match.id, 0, 0)

        assert predictions.get_active_matches(db_session) == []

    def test_predictions_for_match(self, db_session, sample_user, sample_match):
        other = users.register_user(db_session, 8, first_name="Oleg")
        predictions.submit_prediction(db_session, sample_user.id, sample_match.id, 1, 0, now=BEFORE_KICKOFF)
        predictions.submit_prediction(db_session, other.id, sample_match.id, 0, 1, now=BEFORE_KICKOFF)

        rows = predictions.get_predictions_for_match(db_session, sample_match.id)
        assert [r.user_id for r in rows] == [7, 8]


class TestUsers:
    """Tests for user registration and standings."""

    def test_register_is_idempotent(self, db_session, sample_user):
        again = users.register_user(db_session, 7, username="changed")

        assert again.username == "nine"
        assert db_session.query(User).count() == 1

    def test_new_user_joins_active_season(self, db_session, sample_user):
        close_season(db_session)

        newcomer = users.register_user(db_session, 8)
        assert newcomer.current_season == 2

    def test_register_requires_active_season(self, db_session, sample_season):
        sample_season.is_active = False
        db_session.commit()

        with pytest.raises(NoActiveSeason):
            users.register_user(db_session, 8)
        assert db_session.query(User).count() == 0

    def test_display_name_fallbacks(self, db_session, sample_season):
        assert users.register_user(db_session, 1, username="u1", first_name="First").display_name == "First"
        assert users.register_user(db_session, 2, username="u2").display_name == "u2"
        assert users.register_user(db_session, 3).display_name == "Anonymous"

    def test_get_user_unknown(self, db_session, sample_season):
        with pytest.raises(UserNotFound):
            users.get_user(db_session, 404)

    def test_leaderboard_order(self, db_session, sample_season):
        for user_id, points in [(3, 4), (1, 4), (2, 9)]:
            db_session.add(User(id=user_id, total_points=points, current_season=1))
        db_session.commit()

        board = users.get_leaderboard(db_session, limit=2)
        assert [u.id for u in board] == [2, 1]

    def test_search(self, db_session, sample_season):
        users.register_user(db_session, 1, username="goalkeeper", first_name="Igor")
        users.register_user(db_session, 2, username="winger", first_name="Pavel")

        assert [u.id for u in users.search_users(db_session, "goal")] == [1]
        assert [u.id for u in users.search_users(db_session, "pav")] == [2]

    def test_user_stats(self, db_session, sample_user, sample_match):
        predictions.submit_prediction(db_session, sample_user.id, sample_match.id, 2, 0, now=BEFORE_KICKOFF)
        settle_match(db_session, sample_match.id, 3, 1)

        stats = users.get_user_stats(db_session, sample_user.id)
        assert stats['total_points'] == 2
        assert stats['total_predictions'] == 1
        assert stats['close_predictions'] == 1
        assert stats['incorrect_predictions'] == 0
