"""
Error types raised by Matchday services.

Every failure path raises one of these; callers (HTTP routes, scripts, the
chat front end) decide how to word it for users.
"""


class MatchdayError(Exception):
    """Base class for all domain errors."""


class ValidationError(MatchdayError, ValueError):
    """Input failed a bounds check. Nothing was written."""


class InvalidPrediction(ValidationError):
    pass


class InvalidResult(ValidationError):
    pass


class ConflictError(MatchdayError):
    """The requested transition is no longer possible."""


class AlreadySettled(ConflictError):
    def __init__(self, match_id: int):
        super().__init__(f"Match {match_id} is already settled")
        self.match_id = match_id


class PredictionsClosed(ConflictError):
    def __init__(self, match_id: int):
        super().__init__(f"Predictions for match {match_id} are closed")
        self.match_id = match_id


class MatchNotFinished(ConflictError):
    def __init__(self, match_id: int):
        super().__init__(f"Match {match_id} has not been settled yet")
        self.match_id = match_id


class SeasonAlreadyClosed(ConflictError):
    def __init__(self, season_number: int):
        super().__init__(f"Season {season_number} was closed by another request")
        self.season_number = season_number


class NotFoundError(MatchdayError):
    pass


class UserNotFound(NotFoundError):
    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class MatchNotFound(NotFoundError):
    def __init__(self, match_id: int):
        super().__init__(f"Match {match_id} not found")
        self.match_id = match_id


class SeasonNotFound(NotFoundError):
    def __init__(self, season_number: int):
        super().__init__(f"Season {season_number} not found")
        self.season_number = season_number


class InvariantViolation(MatchdayError):
    """A state that should be unreachable, or a forbidden value."""


class NoActiveSeason(InvariantViolation):
    def __init__(self):
        super().__init__("No active season")


class NegativeTotal(InvariantViolation):
    def __init__(self, new_total: int):
        super().__init__(f"Points total cannot be negative (got {new_total})")
        self.new_total = new_total


class PermissionDenied(MatchdayError):
    def __init__(self, user_id):
        super().__init__(f"User {user_id} is not allowed to do this")
        self.user_id = user_id


class PartialSettlementError(MatchdayError):
    """
    Some predictions of a settled match could not be awarded.

    The match itself is finished. succeeded holds the report lines that were
    committed; failed holds {'prediction_id', 'user_id', 'error'} dicts for
    the rest. Call settlement.resume_settlement() to finish the job; it
    skips everything in succeeded.
    """

    def __init__(self, match_id: int, succeeded: list, failed: list):
        super().__init__(
            f"Match {match_id}: {len(failed)} prediction(s) failed to settle, "
            f"{len(succeeded)} settled"
        )
        self.match_id = match_id
        self.succeeded = succeeded
        self.failed = failed
