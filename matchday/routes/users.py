"""
User routes: registration, lookup and per-user statistics.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from matchday.database import get_db
from matchday import seasons, users
from matchday.schemas import UserCreate, UserResponse, UserSeasonStatsResponse, UserStatsResponse

router = APIRouter()


@router.post("/", response_model=UserResponse)
async def register_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register a user on first interaction; existing users are returned as-is."""
    return users.register_user(
        db,
        user_id=payload.id,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name
    )


@router.get("/search", response_model=List[UserResponse])
async def search_users(q: str, db: Session = Depends(get_db)):
    return users.search_users(db, q)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: Session = Depends(get_db)):
    return users.get_user(db, user_id)


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(user_id: int, db: Session = Depends(get_db)):
    """Live statistics for the active season."""
    return users.get_user_stats(db, user_id)


@router.get("/{user_id}/seasons/{season_number}", response_model=UserSeasonStatsResponse)
async def get_user_season_stats(user_id: int, season_number: int, db: Session = Depends(get_db)):
    """Live stats for the active season, archived stats for a closed one."""
    users.get_user(db, user_id)
    stats = seasons.get_user_season_stats(db, user_id, season_number)
    if stats is None:
        raise HTTPException(status_code=404, detail=f"No results for user {user_id} in season {season_number}")
    return stats
