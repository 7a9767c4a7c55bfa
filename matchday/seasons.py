"""
Season lifecycle: the active season, closing it, and the archive.

Closing a season freezes the standings into season_results, ends the
season, opens the next one and resets every user's running total. All of
it happens in one transaction while holding the write lock, so no match is
settled and no points are adjusted halfway through.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from matchday.database import write_lock
from matchday.errors import NoActiveSeason, SeasonAlreadyClosed, SeasonNotFound
from matchday.models import Prediction, Season, SeasonResult, User, utcnow
from matchday.scoring import EXACT_POINTS, MARGIN_POINTS, OUTCOME_POINTS

logger = logging.getLogger(__name__)


def default_season_name(season_number: int) -> str:
    return f"Season {season_number}"


def get_current_season(db: Session) -> Optional[Season]:
    """Return the active season, or None if there is none."""
    return db.query(Season).filter(
        Season.is_active == True
    ).order_by(Season.season_number.desc()).first()


def get_active_season(db: Session) -> Season:
    """
    Return the active season.

    Raises:
        NoActiveSeason: If no season is active
    """
    season = get_current_season(db)
    if season is None:
        raise NoActiveSeason()
    return season


def ensure_initial_season(db: Session) -> Season:
    """Create season 1 if the seasons table is empty."""
    existing = db.query(Season).order_by(Season.season_number.desc()).first()
    if existing:
        return existing

    season = Season(
        season_number=1,
        name=default_season_name(1),
        is_active=True
    )
    db.add(season)
    db.commit()
    db.refresh(season)
    logger.info("Created initial season %s", season.name)
    return season


def get_prediction_counts(
    db: Session,
    season_number: int,
    user_id: Optional[int] = None
) -> Dict[int, Dict[str, int]]:
    """
    Count settled predictions per user and category for a season.

    Args:
        db: Database session
        season_number: Season the awards counted towards
        user_id: Optional user filter

    Returns:
        Dict keyed by user id with total/exact/close/outcome counts
    """
    query = db.query(
        Prediction.user_id,
        func.count(Prediction.id),
        func.sum(case((Prediction.points_earned == EXACT_POINTS, 1), else_=0)),
        func.sum(case((Prediction.points_earned == MARGIN_POINTS, 1), else_=0)),
        func.sum(case((Prediction.points_earned == OUTCOME_POINTS, 1), else_=0)),
    ).filter(
        Prediction.season_number == season_number,
        Prediction.settled_at.isnot(None)
    )

    if user_id is not None:
        query = query.filter(Prediction.user_id == user_id)

    counts = {}
    for uid, total, exact, close, outcome in query.group_by(Prediction.user_id).all():
        counts[uid] = {
            'total_predictions': total or 0,
            'exact_predictions': exact or 0,
            'close_predictions': close or 0,
            'outcome_predictions': outcome or 0,
        }
    return counts


def _empty_counts() -> Dict[str, int]:
    return {
        'total_predictions': 0,
        'exact_predictions': 0,
        'close_predictions': 0,
        'outcome_predictions': 0,
    }


def archive_season_standings(db: Session, season_number: int) -> List[SeasonResult]:
    """
    Write one season_results row per user in the season.

    Users are ranked by total_points descending, ties broken by ascending
    user id. Rows are added to the session but not committed; close_season()
    owns the transaction.

    Returns:
        The SeasonResult rows, in rank order
    """
    users = db.query(User).filter(
        User.current_season == season_number
    ).order_by(
        User.total_points.desc(), User.id.asc()
    ).with_for_update().populate_existing().all()

    counts = get_prediction_counts(db, season_number)

    results = []
    for position, user in enumerate(users, start=1):
        user_counts = counts.get(user.id, _empty_counts())
        result = SeasonResult(
            season_number=season_number,
            user_id=user.id,
            final_points=user.total_points,
            position=position,
            **user_counts
        )
        db.add(result)
        results.append(result)

    db.flush()
    return results


def close_season(db: Session, new_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Close the active season and open the next one.

    Archives standings, ends the active season, opens season N+1 and resets
    every user's total_points to 0. Either all of that is committed or none
    of it is.

    Args:
        db: Database session
        new_name: Optional name for the new season, defaults to "Season N+1"

    Returns:
        Dict with new_season_number, new_season_name, users_reset and
        archived (number of season_results rows written)

    Raises:
        NoActiveSeason: If no season is active
        SeasonAlreadyClosed: If another connection closed the season first
    """
    with write_lock:
        try:
            season = db.query(Season).filter(
                Season.is_active == True
            ).with_for_update().first()
            if season is None:
                raise NoActiveSeason()
            closing_number = season.season_number

            # Ending the season is the first write of the transaction, so the
            # database write lock is held before any standings are read.
            ended = db.query(Season).filter(
                Season.id == season.id,
                Season.is_active == True
            ).update({
                Season.is_active: False,
                Season.end_date: utcnow(),
            }, synchronize_session=False)
            if not ended:
                raise SeasonAlreadyClosed(closing_number)

            archived = archive_season_standings(db, closing_number)

            new_number = closing_number + 1
            new_season = Season(
                season_number=new_number,
                name=new_name or default_season_name(new_number),
                is_active=True
            )
            db.add(new_season)
            db.flush()

            users_reset = db.query(User).update(
                {User.total_points: 0, User.current_season: new_number},
                synchronize_session=False
            )

            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info(
        "Closed season %s (%d users archived), opened season %s '%s', reset %d users",
        closing_number, len(archived), new_number, new_season.name, users_reset
    )

    return {
        'new_season_number': new_number,
        'new_season_name': new_season.name,
        'users_reset': users_reset,
        'archived': len(archived),
    }


def get_season(db: Session, season_number: int) -> Season:
    season = db.query(Season).filter(Season.season_number == season_number).first()
    if season is None:
        raise SeasonNotFound(season_number)
    return season


def get_season_history(db: Session, limit: int = 10) -> List[Season]:
    """Most recent seasons first."""
    return db.query(Season).order_by(Season.season_number.desc()).limit(limit).all()


def get_season_results(db: Session, season_number: int, limit: int = 10) -> List[SeasonResult]:
    """Archived standings of a closed season, best position first."""
    return db.query(SeasonResult).filter(
        SeasonResult.season_number == season_number
    ).order_by(SeasonResult.position.asc()).limit(limit).all()


def get_user_season_stats(
    db: Session,
    user_id: int,
    season_number: Optional[int] = None
) -> Optional[Dict[str, Any]]:
    """
    Season statistics for one user.

    For the active season the figures are computed from live data. For a
    closed season they come from the archive, never from live data.

    Args:
        db: Database session
        user_id: User id
        season_number: Season to look at, defaults to the active season

    Returns:
        Dict of stats with is_current flag, or None if the user has no
        archived row for that season

    Raises:
        NoActiveSeason: If no season is active
    """
    active = get_active_season(db)
    if season_number is None:
        season_number = active.season_number

    if season_number == active.season_number:
        user = db.query(User).filter(User.id == user_id).first()
        counts = get_prediction_counts(db, season_number, user_id=user_id).get(user_id, _empty_counts())
        return {
            'season_number': season_number,
            'final_points': user.total_points if user else 0,
            'position': None,
            'is_current': True,
            **counts
        }

    row = db.query(SeasonResult).filter(
        SeasonResult.user_id == user_id,
        SeasonResult.season_number == season_number
    ).first()
    if row is None:
        return None

    return {
        'season_number': row.season_number,
        'final_points': row.final_points,
        'position': row.position,
        'is_current': False,
        'total_predictions': row.total_predictions,
        'exact_predictions': row.exact_predictions,
        'close_predictions': row.close_predictions,
        'outcome_predictions': row.outcome_predictions,
    }
