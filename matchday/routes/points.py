"""
Points routes for manual adjustments and the adjustment history.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from matchday.database import get_db
from matchday import admins, ledger
from matchday.schemas import PointsAdd, PointsHistoryResponse, PointsSet

router = APIRouter()


@router.get("/history", response_model=List[PointsHistoryResponse])
async def points_history(
    user_id: Optional[int] = None,
    season: Optional[int] = None,
    limit: int = Query(20, ge=1, le=500),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db)
):
    """List ledger entries, newest first."""
    offset = (page - 1) * limit
    return ledger.get_points_history(db, user_id=user_id, season=season, limit=limit, offset=offset)


@router.post("/{user_id}/add", response_model=PointsHistoryResponse)
async def add_points(user_id: int, payload: PointsAdd, db: Session = Depends(get_db)):
    admins.require_admin(db, payload.admin_id)
    return ledger.add_points(db, user_id, payload.delta, payload.admin_id, payload.reason)


@router.post("/{user_id}/set", response_model=PointsHistoryResponse)
async def set_points(user_id: int, payload: PointsSet, db: Session = Depends(get_db)):
    admins.require_admin(db, payload.admin_id)
    return ledger.set_points(db, user_id, payload.new_total, payload.admin_id, payload.reason)
