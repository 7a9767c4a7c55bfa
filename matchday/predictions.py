"""
Matches and prediction intake.

A user may overwrite their prediction for a match any number of times until
kickoff. After kickoff, or once the match is finished, it is frozen.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from matchday.errors import InvalidPrediction, MatchNotFound, PredictionsClosed, UserNotFound
from matchday.models import Match, Prediction, User, to_naive_utc, utcnow
from matchday.scoring import MAX_GOALS, MIN_GOALS, is_valid_prediction

logger = logging.getLogger(__name__)


def create_match(db: Session, team_a: str, team_b: str, match_date: datetime) -> Match:
    """
    Create a match.

    Args:
        db: Database session
        team_a: First (home) team
        team_b: Second (away) team
        match_date: Kickoff time, naive UTC or timezone-aware

    Returns:
        Created Match
    """
    match_date = to_naive_utc(match_date)
    match = Match(team_a=team_a, team_b=team_b, match_date=match_date)
    db.add(match)
    db.commit()
    db.refresh(match)
    logger.info("Created match %s: %s - %s at %s", match.id, team_a, team_b, match_date)
    return match


def get_match(db: Session, match_id: int) -> Match:
    """
    Raises:
        MatchNotFound: If the match does not exist
    """
    match = db.query(Match).filter(Match.id == match_id).first()
    if match is None:
        raise MatchNotFound(match_id)
    return match


def get_active_matches(db: Session) -> List[Match]:
    """Unfinished matches, earliest kickoff first."""
    return db.query(Match).filter(
        Match.is_finished == False
    ).order_by(Match.match_date.asc()).all()


def predictions_open(match: Match, now: Optional[datetime] = None) -> bool:
    """True while the match is unfinished and kickoff has not passed."""
    now = to_naive_utc(now) if now is not None else utcnow()
    return not match.is_finished and now < match.match_date


def submit_prediction(
    db: Session,
    user_id: int,
    match_id: int,
    prediction_a: int,
    prediction_b: int,
    now: Optional[datetime] = None
) -> Prediction:
    """
    Record or overwrite a user's prediction for a match.

    Args:
        db: Database session
        user_id: Predicting user
        match_id: Match being predicted
        prediction_a: Goals for team_a
        prediction_b: Goals for team_b
        now: Current time, naive UTC or timezone-aware (defaults to the clock)

    Returns:
        The stored Prediction

    Raises:
        InvalidPrediction: If the scoreline is out of bounds
        MatchNotFound: If the match does not exist
        UserNotFound: If the user does not exist
        PredictionsClosed: If kickoff has passed or the match is finished
    """
    if not is_valid_prediction(prediction_a, prediction_b):
        raise InvalidPrediction(
            f"Prediction must be two whole numbers from {MIN_GOALS} to {MAX_GOALS}, "
            f"got {prediction_a!r}:{prediction_b!r}"
        )

    match = get_match(db, match_id)
    if not predictions_open(match, now):
        raise PredictionsClosed(match_id)

    if db.query(User).filter(User.id == user_id).first() is None:
        raise UserNotFound(user_id)

    prediction = get_prediction(db, user_id, match_id)
    if prediction is None:
        prediction = Prediction(user_id=user_id, match_id=match_id)
        db.add(prediction)

    prediction.prediction_a = prediction_a
    prediction.prediction_b = prediction_b

    db.commit()
    db.refresh(prediction)
    logger.debug("User %s predicted %s:%s for match %s", user_id, prediction_a, prediction_b, match_id)
    return prediction


def get_prediction(db: Session, user_id: int, match_id: int) -> Optional[Prediction]:
    return db.query(Prediction).filter(
        Prediction.user_id == user_id,
        Prediction.match_id == match_id
    ).first()


def get_predictions_for_match(db: Session, match_id: int) -> List[Prediction]:
    """All predictions for a match, in submission order."""
    return db.query(Prediction).filter(
        Prediction.match_id == match_id
    ).order_by(Prediction.id.asc()).all()
