"""
SQLAlchemy ORM models for the Matchday database.

This module defines all database tables using SQLAlchemy's declarative base.
Live standings sit on the users table; closed seasons are frozen into
season_results and every manual points change is written to points_history.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint, Index, Text, text
)
from sqlalchemy.orm import relationship

from matchday.database import Base


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC. Naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class User(Base):
    """
    A participant, keyed by the chat platform's numeric id.

    total_points is the running total for current_season only. It is reset
    to zero whenever a season is closed.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=False)
    username = Column(String(100), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    total_points = Column(Integer, default=0, nullable=False)
    current_season = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    predictions = relationship("Prediction", back_populates="user")

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or "Anonymous"

    def __repr__(self):
        return f"<User id={self.id} points={self.total_points} season={self.current_season}>"


class Admin(Base):
    """
    A user allowed to run administrative actions.

    Rows are deactivated rather than deleted.
    """
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, unique=True, nullable=False)
    username = Column(String(100), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    is_super_admin = Column(Boolean, default=False, nullable=False)
    added_by = Column(Integer, nullable=True)
    added_at = Column(DateTime, default=utcnow, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class Match(Base):
    """
    A fixture between two teams.

    is_finished only ever goes from False to True, together with the result.
    """
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_a = Column(String(100), nullable=False)
    team_b = Column(String(100), nullable=False)
    match_date = Column(DateTime, nullable=False)  # Kickoff, UTC
    result_a = Column(Integer, nullable=True)
    result_b = Column(Integer, nullable=True)
    is_finished = Column(Boolean, default=False, nullable=False)
    finished_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    predictions = relationship("Prediction", back_populates="match")
    notification = relationship("MatchNotification", back_populates="match", uselist=False)

    def __repr__(self):
        return f"<Match id={self.id} {self.team_a} - {self.team_b} finished={self.is_finished}>"


class Prediction(Base):
    """
    A user's predicted scoreline for one match.

    settled_at is the per-prediction settlement marker. Once it is set,
    points_earned and season_number are final.
    """
    __tablename__ = "predictions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False)
    prediction_a = Column(Integer, nullable=False)
    prediction_b = Column(Integer, nullable=False)
    points_earned = Column(Integer, default=0, nullable=False)
    settled_at = Column(DateTime, nullable=True)
    season_number = Column(Integer, nullable=True)  # Season the award counted towards
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="predictions")
    match = relationship("Match", back_populates="predictions")

    # Constraints
    __table_args__ = (
        UniqueConstraint('user_id', 'match_id', name='uq_prediction_user_match'),
        CheckConstraint('points_earned IN (0, 1, 2, 3)', name='ck_points_earned'),
        Index('idx_predictions_match', 'match_id'),
        Index('idx_predictions_season', 'season_number'),
    )


class Season(Base):
    """
    A bounded scoring period.

    Only one season is active at a time; the partial unique index enforces
    it at the database level.
    """
    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_number = Column(Integer, nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    start_date = Column(DateTime, default=utcnow, nullable=False)
    end_date = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index(
            'uq_seasons_single_active', 'is_active', unique=True,
            sqlite_where=text('is_active = 1'),
            postgresql_where=text('is_active'),
        ),
    )

    def __repr__(self):
        return f"<Season number={self.season_number} active={self.is_active}>"


class SeasonResult(Base):
    """
    Archived standing of one user in a closed season.

    Written once when the season is closed and never updated.
    """
    __tablename__ = "season_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_number = Column(Integer, ForeignKey("seasons.season_number"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    final_points = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False)
    total_predictions = Column(Integer, default=0, nullable=False)
    exact_predictions = Column(Integer, default=0, nullable=False)
    close_predictions = Column(Integer, default=0, nullable=False)
    outcome_predictions = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('season_number', 'user_id', name='uq_season_result_user'),
    )


class PointsHistory(Base):
    """
    Audit trail of manual points adjustments.

    CRITICAL: This table is append-only - entries are never updated or deleted.
    new_total always equals the user's total_points right after the change.

    Action types:
        - 'add': points_change was added to the running total
        - 'set': the total was overwritten; points_change = new_total - old_total
    """
    __tablename__ = "points_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    admin_id = Column(Integer, nullable=False)
    points_change = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    action_type = Column(String(10), nullable=False)
    old_total = Column(Integer, nullable=False)
    new_total = Column(Integer, nullable=False)
    season = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    user = relationship("User")

    __table_args__ = (
        CheckConstraint("action_type IN ('add', 'set')", name='ck_action_type'),
    )


class MatchNotification(Base):
    """Records that the kickoff reminder for a match has gone out."""
    __tablename__ = "match_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, unique=True)
    notification_sent = Column(DateTime, default=utcnow, nullable=False)
    users_notified = Column(Integer, default=0, nullable=False)

    match = relationship("Match", back_populates="notification")
