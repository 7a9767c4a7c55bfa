"""
Points ledger - single point of entry for ALL manual points changes.

Admins can add to or overwrite a user's running total. Every change is
recorded in points_history together with the totals before and after.

CRITICAL RULES:
1. Ledger entries are IMMUTABLE - never update, only insert
2. old_total/new_total come from the same locked read that performs the write
3. The season stamped on an entry is the season active when the call is made
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from matchday.database import write_lock
from matchday.errors import NegativeTotal
from matchday.models import PointsHistory
from matchday.seasons import get_active_season
from matchday.users import lock_user

logger = logging.getLogger(__name__)


def _record_change(
    db: Session,
    user_id: int,
    admin_id: int,
    action_type: str,
    compute_new_total,
    reason: Optional[str]
) -> PointsHistory:
    with write_lock:
        try:
            user = lock_user(db, user_id)
            season = get_active_season(db)

            old_total = user.total_points
            new_total = compute_new_total(old_total)
            user.total_points = new_total

            entry = PointsHistory(
                user_id=user_id,
                admin_id=admin_id,
                points_change=new_total - old_total,
                reason=reason,
                action_type=action_type,
                old_total=old_total,
                new_total=new_total,
                season=season.season_number
            )
            db.add(entry)
            db.commit()
        except Exception:
            db.rollback()
            raise

    db.refresh(entry)
    logger.info(
        "Admin %s %s points for user %s: %s -> %s (season %s)",
        admin_id, action_type, user_id, entry.old_total, entry.new_total, entry.season
    )
    return entry


def add_points(
    db: Session,
    user_id: int,
    delta: int,
    admin_id: int,
    reason: Optional[str] = None
) -> PointsHistory:
    """
    Add points to a user's running total.

    delta may be negative, and the total may go below zero this way.

    Args:
        db: Database session
        user_id: User receiving the change
        delta: Signed number of points to add
        admin_id: Admin making the change
        reason: Optional free-text reason

    Returns:
        Created PointsHistory entry (action_type 'add', points_change == delta)

    Raises:
        UserNotFound: If the user does not exist
        NoActiveSeason: If no season is active
    """
    return _record_change(
        db, user_id, admin_id, 'add',
        lambda old_total: old_total + delta,
        reason
    )


def set_points(
    db: Session,
    user_id: int,
    new_total: int,
    admin_id: int,
    reason: Optional[str] = None
) -> PointsHistory:
    """
    Overwrite a user's running total.

    Args:
        db: Database session
        user_id: User receiving the change
        new_total: New total, must not be negative
        admin_id: Admin making the change
        reason: Optional free-text reason

    Returns:
        Created PointsHistory entry (action_type 'set',
        points_change == new_total - old_total)

    Raises:
        NegativeTotal: If new_total is negative
        UserNotFound: If the user does not exist
        NoActiveSeason: If no season is active
    """
    if new_total < 0:
        raise NegativeTotal(new_total)

    return _record_change(
        db, user_id, admin_id, 'set',
        lambda old_total: new_total,
        reason
    )


def get_points_history(
    db: Session,
    user_id: Optional[int] = None,
    season: Optional[int] = None,
    limit: Optional[int] = 20,
    offset: Optional[int] = 0
) -> List[PointsHistory]:
    """
    Query ledger entries with optional filters.

    Args:
        db: Database session
        user_id: Filter by user
        season: Filter by season number
        limit: Maximum number of entries to return
        offset: Number of entries to skip

    Returns:
        List of PointsHistory entries, newest first
    """
    query = db.query(PointsHistory)

    if user_id is not None:
        query = query.filter(PointsHistory.user_id == user_id)

    if season is not None:
        query = query.filter(PointsHistory.season == season)

    query = query.order_by(PointsHistory.created_at.desc(), PointsHistory.id.desc())

    if offset:
        query = query.offset(offset)

    if limit:
        query = query.limit(limit)

    return query.all()
