"""
Match settlement: record the final score and award points.

Settling a match happens in two phases:

1. The match is flipped from unfinished to finished with a conditional
   UPDATE. Only one caller can win that race; everyone else gets
   AlreadySettled.
2. Each prediction is scored and committed on its own. The prediction's
   settled_at marker is claimed with a conditional UPDATE in the same
   transaction that credits the user, so a prediction is never awarded
   twice, even if settlement is resumed after a failure.

If some predictions fail to commit, PartialSettlementError lists what went
through and what did not. resume_settlement() picks up the remainder.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from matchday.database import write_lock
from matchday.errors import AlreadySettled, InvalidResult, MatchNotFinished, PartialSettlementError
from matchday.models import Match, Prediction, User, utcnow
from matchday.predictions import get_match
from matchday.scoring import MAX_GOALS, MIN_GOALS, calculate_points, is_valid_prediction
from matchday.seasons import get_active_season
from matchday.users import lock_user

logger = logging.getLogger(__name__)


def _award_prediction(db: Session, prediction: Prediction, points: int) -> Optional[int]:
    """
    Claim a prediction's settled marker and credit its user in one transaction.

    The user row is locked before the active season is read, so a season
    closure on another connection either archives this award with the old
    season or has finished before the award picks its season.

    Returns:
        Season number the points counted towards, or None if the prediction
        had already been settled by someone else
    """
    try:
        lock_user(db, prediction.user_id)
        season_number = get_active_season(db).season_number

        claimed = db.query(Prediction).filter(
            Prediction.id == prediction.id,
            Prediction.settled_at.is_(None)
        ).update({
            Prediction.points_earned: points,
            Prediction.settled_at: utcnow(),
            Prediction.season_number: season_number,
        }, synchronize_session=False)

        if not claimed:
            db.rollback()
            return None

        if points > 0:
            db.query(User).filter(User.id == prediction.user_id).update(
                {User.total_points: User.total_points + points},
                synchronize_session=False
            )

        db.commit()
    except Exception:
        db.rollback()
        raise

    return season_number


def _report_line(prediction: Prediction, points: int) -> Dict[str, Any]:
    user = prediction.user
    return {
        'prediction_id': prediction.id,
        'user_id': prediction.user_id,
        'display_name': user.display_name if user else "Anonymous",
        'prediction_a': prediction.prediction_a,
        'prediction_b': prediction.prediction_b,
        'points': points,
    }


def _settle_predictions(db: Session, match: Match) -> Dict[str, Any]:
    match_id = match.id
    result_a, result_b = match.result_a, match.result_b
    season_number = get_active_season(db).season_number

    pending = db.query(Prediction).filter(
        Prediction.match_id == match_id,
        Prediction.settled_at.is_(None)
    ).order_by(Prediction.id.asc()).all()

    succeeded: List[Dict[str, Any]] = []
    failed: List[Dict[str, Any]] = []

    for prediction in pending:
        points = calculate_points(prediction.prediction_a, prediction.prediction_b, result_a, result_b)
        line = _report_line(prediction, points)

        try:
            awarded_season = _award_prediction(db, prediction, points)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception(
                "Failed to settle prediction %s (user %s) for match %s",
                line['prediction_id'], line['user_id'], match_id
            )
            failed.append({
                'prediction_id': line['prediction_id'],
                'user_id': line['user_id'],
                'error': str(exc),
            })
            continue

        if awarded_season is not None:
            season_number = awarded_season
            succeeded.append(line)

    if failed:
        raise PartialSettlementError(match_id, succeeded, failed)

    logger.info(
        "Settled match %s at %s:%s, %d prediction(s) awarded",
        match_id, result_a, result_b, len(succeeded)
    )

    return {
        'match_id': match_id,
        'team_a': match.team_a,
        'team_b': match.team_b,
        'result_a': result_a,
        'result_b': result_b,
        'season_number': season_number,
        'lines': succeeded,
    }


def settle_match(db: Session, match_id: int, result_a: int, result_b: int) -> Dict[str, Any]:
    """
    Record a match's final score and distribute points.

    Args:
        db: Database session
        match_id: Match to settle
        result_a: Goals scored by team_a
        result_b: Goals scored by team_b

    Returns:
        Settlement report: match_id, team_a, team_b, result_a, result_b,
        season_number and lines (one dict per awarded prediction with
        user_id, display_name, prediction_a, prediction_b, points)

    Raises:
        InvalidResult: If the score is out of bounds
        MatchNotFound: If the match does not exist
        AlreadySettled: If the match is already finished, checked before
            the active season
        NoActiveSeason: If no season is active
        PartialSettlementError: If some predictions could not be awarded
    """
    if not is_valid_prediction(result_a, result_b):
        raise InvalidResult(
            f"Result must be two whole numbers from {MIN_GOALS} to {MAX_GOALS}, "
            f"got {result_a!r}:{result_b!r}"
        )

    with write_lock:
        match = get_match(db, match_id)
        if match.is_finished:
            raise AlreadySettled(match_id)
        get_active_season(db)

        try:
            finished = db.query(Match).filter(
                Match.id == match_id,
                Match.is_finished == False
            ).update({
                Match.result_a: result_a,
                Match.result_b: result_b,
                Match.is_finished: True,
                Match.finished_at: utcnow(),
            }, synchronize_session=False)

            if not finished:
                db.rollback()
                raise AlreadySettled(match_id)

            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        db.refresh(match)
        logger.info("Match %s finished %s:%s", match_id, result_a, result_b)

        return _settle_predictions(db, match)


def resume_settlement(db: Session, match_id: int) -> Dict[str, Any]:
    """
    Award any predictions of a finished match that are still unsettled.

    Predictions that already carry a settled marker are skipped, so this is
    safe to call repeatedly after a PartialSettlementError.

    Returns:
        Settlement report covering only the predictions awarded by this call

    Raises:
        MatchNotFound: If the match does not exist
        MatchNotFinished: If the match has not been settled yet
        PartialSettlementError: If some predictions still could not be awarded
    """
    with write_lock:
        match = get_match(db, match_id)
        if not match.is_finished:
            raise MatchNotFinished(match_id)

        logger.info("Resuming settlement of match %s", match_id)
        return _settle_predictions(db, match)
