"""
Pydantic schemas for request/response validation in FastAPI.

Scorelines are plain integers here on purpose: bounds are enforced by
matchday.scoring so the API reports the same validation errors as every
other caller.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


# User Schemas
class UserBase(BaseModel):
    username: Optional[str] = Field(None, max_length=100)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class UserCreate(UserBase):
    id: int


class UserResponse(UserBase):
    id: int
    total_points: int
    current_season: int
    created_at: datetime

    class Config:
        from_attributes = True


class UserStatsResponse(BaseModel):
    user_id: int
    display_name: str
    season_number: int
    total_points: int
    total_predictions: int
    exact_predictions: int
    close_predictions: int
    outcome_predictions: int
    incorrect_predictions: int


class UserSeasonStatsResponse(BaseModel):
    season_number: int
    final_points: int
    position: Optional[int] = None
    is_current: bool
    total_predictions: int
    exact_predictions: int
    close_predictions: int
    outcome_predictions: int


# Match Schemas
class MatchCreate(BaseModel):
    team_a: str = Field(..., max_length=100)
    team_b: str = Field(..., max_length=100)
    match_date: datetime
    admin_id: int


class MatchResponse(BaseModel):
    id: int
    team_a: str
    team_b: str
    match_date: datetime
    result_a: Optional[int] = None
    result_b: Optional[int] = None
    is_finished: bool
    finished_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MatchSettle(BaseModel):
    result_a: int
    result_b: int
    admin_id: int


class AdminAction(BaseModel):
    admin_id: int


# Prediction Schemas
class PredictionSubmit(BaseModel):
    prediction_a: int
    prediction_b: int


class PredictionResponse(BaseModel):
    id: int
    user_id: int
    match_id: int
    prediction_a: int
    prediction_b: int
    points_earned: int
    settled_at: Optional[datetime] = None
    season_number: Optional[int] = None

    class Config:
        from_attributes = True


# Settlement Schemas
class SettlementLine(BaseModel):
    prediction_id: int
    user_id: int
    display_name: str
    prediction_a: int
    prediction_b: int
    points: int


class SettlementReport(BaseModel):
    match_id: int
    team_a: str
    team_b: str
    result_a: int
    result_b: int
    season_number: int
    lines: List[SettlementLine]


# Season Schemas
class SeasonResponse(BaseModel):
    season_number: int
    name: str
    start_date: datetime
    end_date: Optional[datetime] = None
    is_active: bool

    class Config:
        from_attributes = True


class SeasonClose(BaseModel):
    admin_id: int
    name: Optional[str] = Field(None, max_length=100)


class SeasonCloseResponse(BaseModel):
    new_season_number: int
    new_season_name: str
    users_reset: int
    archived: int


class SeasonResultResponse(BaseModel):
    season_number: int
    user_id: int
    final_points: int
    position: int
    total_predictions: int
    exact_predictions: int
    close_predictions: int
    outcome_predictions: int

    class Config:
        from_attributes = True


# Points Schemas
class PointsAdd(BaseModel):
    delta: int
    admin_id: int
    reason: Optional[str] = None


class PointsSet(BaseModel):
    new_total: int
    admin_id: int
    reason: Optional[str] = None


class PointsHistoryResponse(BaseModel):
    id: int
    user_id: int
    admin_id: int
    points_change: int
    reason: Optional[str] = None
    action_type: str = Field(..., pattern="^(add|set)$")
    old_total: int
    new_total: int
    season: int
    created_at: datetime

    class Config:
        from_attributes = True


# Reminder Schemas
class NotificationSent(BaseModel):
    users_notified: int = Field(..., ge=0)


class NotificationResponse(BaseModel):
    match_id: int
    notification_sent: datetime
    users_notified: int

    class Config:
        from_attributes = True


# Admin Schemas
class AdminCreate(BaseModel):
    user_id: int
    added_by: int
    username: Optional[str] = Field(None, max_length=100)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class AdminResponse(BaseModel):
    user_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    is_super_admin: bool
    added_by: Optional[int] = None
    added_at: datetime

    class Config:
        from_attributes = True
