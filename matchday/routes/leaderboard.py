"""
Leaderboard route.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchday.database import get_db
from matchday import users
from matchday.schemas import UserResponse

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
async def leaderboard(limit: int = Query(10, ge=1, le=1000), db: Session = Depends(get_db)):
    """Top users of the active season."""
    return users.get_leaderboard(db, limit=limit)
