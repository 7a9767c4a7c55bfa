"""
Reminder routes polled by the notification timer.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchday.database import get_db
from matchday import reminders
from matchday.schemas import MatchResponse, NotificationResponse, NotificationSent, UserResponse

router = APIRouter()


@router.get("/due", response_model=List[MatchResponse])
async def due_reminders(db: Session = Depends(get_db)):
    """Matches whose kickoff reminder should go out now."""
    return reminders.get_matches_for_notification(db)


@router.get("/{match_id}/recipients", response_model=List[UserResponse])
async def reminder_recipients(match_id: int, db: Session = Depends(get_db)):
    """Users who have not predicted the match yet."""
    return reminders.get_users_without_prediction(db, match_id)


@router.post("/{match_id}/sent", response_model=NotificationResponse)
async def reminder_sent(match_id: int, payload: NotificationSent, db: Session = Depends(get_db)):
    return reminders.mark_notification_sent(db, match_id, payload.users_notified)
