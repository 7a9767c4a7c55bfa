"""
Users and the live leaderboard.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from matchday.errors import UserNotFound
from matchday.models import User
from matchday.seasons import get_active_season, get_prediction_counts

logger = logging.getLogger(__name__)


def register_user(
    db: Session,
    user_id: int,
    username: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None
) -> User:
    """
    Get or create a user on first interaction.

    Existing users are returned unchanged. New users join the active season.

    Raises:
        NoActiveSeason: If no season is active
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user:
        return user

    season = get_active_season(db)
    user = User(
        id=user_id,
        username=username,
        first_name=first_name,
        last_name=last_name,
        total_points=0,
        current_season=season.season_number
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s (%s)", user_id, user.display_name)
    return user


def lock_user(db: Session, user_id: int) -> User:
    """
    Lock a user's row for the rest of the current transaction.

    The row is touched with an UPDATE before it is read. That write opens the
    transaction, so on SQLite the database write lock is already held when the
    row and anything after it are read, and another connection cannot commit
    in between. Other backends hold the row lock from the UPDATE onwards.

    Raises:
        UserNotFound: If the user does not exist
    """
    touched = db.query(User).filter(User.id == user_id).update(
        {User.total_points: User.total_points},
        synchronize_session=False
    )
    if not touched:
        raise UserNotFound(user_id)

    return db.query(User).filter(
        User.id == user_id
    ).with_for_update().populate_existing().one()


def get_user(db: Session, user_id: int) -> User:
    """
    Raises:
        UserNotFound: If the user does not exist
    """
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UserNotFound(user_id)
    return user


def search_users(db: Session, term: str) -> List[User]:
    """Find users whose username, first or last name contains term."""
    pattern = f"%{term}%"
    return db.query(User).filter(
        or_(
            User.username.ilike(pattern),
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern)
        )
    ).order_by(User.total_points.desc(), User.id.asc()).all()


def get_leaderboard(db: Session, limit: int = 10) -> List[User]:
    """Top users of the active season by running total."""
    return db.query(User).order_by(
        User.total_points.desc(), User.id.asc()
    ).limit(limit).all()


def get_user_stats(db: Session, user_id: int) -> Dict[str, Any]:
    """
    Live statistics for a user in the active season.

    Returns:
        Dict with total_points and settled prediction counts by category,
        plus incorrect_predictions for 0-point awards

    Raises:
        UserNotFound: If the user does not exist
        NoActiveSeason: If no season is active
    """
    user = get_user(db, user_id)
    season = get_active_season(db)
    counts = get_prediction_counts(db, season.season_number, user_id=user_id).get(user_id, {
        'total_predictions': 0,
        'exact_predictions': 0,
        'close_predictions': 0,
        'outcome_predictions': 0,
    })

    incorrect = counts['total_predictions'] - (
        counts['exact_predictions'] + counts['close_predictions'] + counts['outcome_predictions']
    )

    return {
        'user_id': user.id,
        'display_name': user.display_name,
        'season_number': season.season_number,
        'total_points': user.total_points,
        'incorrect_predictions': incorrect,
        **counts
    }
