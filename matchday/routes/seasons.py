"""
Season management routes.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchday.database import get_db
from matchday import admins, seasons
from matchday.schemas import SeasonClose, SeasonCloseResponse, SeasonResponse, SeasonResultResponse

router = APIRouter()


@router.get("/", response_model=List[SeasonResponse])
async def list_seasons(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    """List seasons, most recent first."""
    return seasons.get_season_history(db, limit=limit)


@router.get("/current", response_model=SeasonResponse)
async def current_season(db: Session = Depends(get_db)):
    return seasons.get_active_season(db)


@router.post("/close", response_model=SeasonCloseResponse)
async def close_season(payload: SeasonClose, db: Session = Depends(get_db)):
    """Archive standings, close the active season and open the next one."""
    admins.require_admin(db, payload.admin_id)
    return seasons.close_season(db, new_name=payload.name)


@router.get("/{season_number}/results", response_model=List[SeasonResultResponse])
async def season_results(
    season_number: int,
    limit: int = Query(10, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """Archived standings of a closed season."""
    seasons.get_season(db, season_number)
    return seasons.get_season_results(db, season_number, limit=limit)
