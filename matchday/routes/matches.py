"""
Match routes: fixtures, predictions and settlement.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from matchday.database import get_db
from matchday import admins, predictions, settlement
from matchday.schemas import (
    AdminAction, MatchCreate, MatchResponse, MatchSettle,
    PredictionResponse, PredictionSubmit, SettlementReport
)

router = APIRouter()


@router.get("/", response_model=List[MatchResponse])
async def list_matches(db: Session = Depends(get_db)):
    """Unfinished matches, earliest kickoff first."""
    return predictions.get_active_matches(db)


@router.post("/", response_model=MatchResponse)
async def create_match(payload: MatchCreate, db: Session = Depends(get_db)):
    admins.require_admin(db, payload.admin_id)
    return predictions.create_match(db, payload.team_a, payload.team_b, payload.match_date)


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(match_id: int, db: Session = Depends(get_db)):
    return predictions.get_match(db, match_id)


@router.get("/{match_id}/predictions", response_model=List[PredictionResponse])
async def list_predictions(match_id: int, db: Session = Depends(get_db)):
    predictions.get_match(db, match_id)
    return predictions.get_predictions_for_match(db, match_id)


@router.put("/{match_id}/predictions/{user_id}", response_model=PredictionResponse)
async def submit_prediction(
    match_id: int,
    user_id: int,
    payload: PredictionSubmit,
    db: Session = Depends(get_db)
):
    """Create or overwrite a user's prediction before kickoff."""
    return predictions.submit_prediction(
        db,
        user_id=user_id,
        match_id=match_id,
        prediction_a=payload.prediction_a,
        prediction_b=payload.prediction_b
    )


@router.post("/{match_id}/settle", response_model=SettlementReport)
async def settle_match(match_id: int, payload: MatchSettle, db: Session = Depends(get_db)):
    """Enter the final score and award points."""
    admins.require_admin(db, payload.admin_id)
    return settlement.settle_match(db, match_id, payload.result_a, payload.result_b)


@router.post("/{match_id}/settle/resume", response_model=SettlementReport)
async def resume_settlement(match_id: int, payload: AdminAction, db: Session = Depends(get_db)):
    """Award predictions left over from a partially failed settlement."""
    admins.require_admin(db, payload.admin_id)
    return settlement.resume_settlement(db, match_id)
