"""
Kickoff reminders.

The notification timer calls get_matches_for_notification() on a fixed
cadence, messages the users returned by get_users_without_prediction() and
then calls mark_notification_sent() so each match is announced once.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from matchday.config import config
from matchday.models import Match, MatchNotification, Prediction, User, to_naive_utc, utcnow
from matchday.predictions import get_match

logger = logging.getLogger(__name__)


def get_matches_for_notification(
    db: Session,
    now: Optional[datetime] = None,
    min_lead: Optional[timedelta] = None,
    max_lead: Optional[timedelta] = None
) -> List[Match]:
    """
    Unfinished, not yet announced matches kicking off soon.

    A match qualifies when its kickoff is after now + min_lead and no later
    than now + max_lead.
    """
    now = to_naive_utc(now) if now is not None else utcnow()
    min_lead = min_lead if min_lead is not None else timedelta(minutes=config.REMINDER_MIN_LEAD_MINUTES)
    max_lead = max_lead if max_lead is not None else timedelta(minutes=config.REMINDER_MAX_LEAD_MINUTES)

    return db.query(Match).outerjoin(
        MatchNotification, MatchNotification.match_id == Match.id
    ).filter(
        Match.is_finished == False,
        Match.match_date > now + min_lead,
        Match.match_date <= now + max_lead,
        MatchNotification.id.is_(None)
    ).order_by(Match.match_date.asc()).all()


def get_users_without_prediction(db: Session, match_id: int) -> List[User]:
    """
    Users who have not predicted the given match yet.

    Raises:
        MatchNotFound: If the match does not exist
    """
    get_match(db, match_id)
    predicted = select(Prediction.user_id).where(Prediction.match_id == match_id)
    return db.query(User).filter(
        User.id.notin_(predicted)
    ).order_by(User.id.asc()).all()


def mark_notification_sent(db: Session, match_id: int, users_notified: int) -> MatchNotification:
    """
    Record that the reminder for a match went out.

    Calling it again for the same match updates the existing row.

    Raises:
        MatchNotFound: If the match does not exist
    """
    get_match(db, match_id)

    notification = db.query(MatchNotification).filter(
        MatchNotification.match_id == match_id
    ).first()
    if notification is None:
        notification = MatchNotification(match_id=match_id)
        db.add(notification)

    notification.users_notified = users_notified
    notification.notification_sent = utcnow()
    db.commit()
    db.refresh(notification)

    logger.info("Reminder for match %s sent to %d user(s)", match_id, users_notified)
    return notification


def is_notification_sent(db: Session, match_id: int) -> bool:
    return db.query(MatchNotification).filter(
        MatchNotification.match_id == match_id
    ).first() is not None
