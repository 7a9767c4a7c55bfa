"""
Scoring rules for scoreline predictions.

Points for a prediction, checked in order:
    3 - exact scoreline
    0 - wrong outcome (win/draw/loss)
    2 - right outcome and right goal difference
    1 - right outcome only

A correctly predicted draw that is not exact always scores 2, since every
draw has a goal difference of zero.
"""

from enum import Enum

MIN_GOALS = 0
MAX_GOALS = 20

EXACT_POINTS = 3
MARGIN_POINTS = 2
OUTCOME_POINTS = 1
MISS_POINTS = 0


class Outcome(Enum):
    FIRST_WINS = "win_a"
    DRAW = "draw"
    SECOND_WINS = "win_b"


def get_outcome(goals_a: int, goals_b: int) -> Outcome:
    """Classify a scoreline as a win for either side or a draw."""
    if goals_a > goals_b:
        return Outcome.FIRST_WINS
    if goals_a < goals_b:
        return Outcome.SECOND_WINS
    return Outcome.DRAW


def _is_goal_count(value) -> bool:
    # bool is a subclass of int but never a valid goal count
    return isinstance(value, int) and not isinstance(value, bool) and MIN_GOALS <= value <= MAX_GOALS


def is_valid_prediction(goals_a, goals_b) -> bool:
    """
    Check a submitted scoreline.

    Both values must be integers between 0 and 20 inclusive. The same bounds
    apply to match results entered by operators.
    """
    return _is_goal_count(goals_a) and _is_goal_count(goals_b)


def calculate_points(pred_a: int, pred_b: int, result_a: int, result_b: int) -> int:
    """
    Calculate the points a prediction earns against the actual result.

    Both scorelines are assumed to have passed is_valid_prediction().

    Returns:
        0, 1, 2 or 3
    """
    if pred_a == result_a and pred_b == result_b:
        return EXACT_POINTS

    if get_outcome(pred_a, pred_b) != get_outcome(result_a, result_b):
        return MISS_POINTS

    if pred_a - pred_b == result_a - result_b:
        return MARGIN_POINTS

    return OUTCOME_POINTS


def points_description(points: int) -> str:
    """Short label for a points award, used in settlement messages."""
    if points == EXACT_POINTS:
        return "Exact score (+3)"
    if points == MARGIN_POINTS:
        return "Goal difference and outcome (+2)"
    if points == OUTCOME_POINTS:
        return "Outcome (+1)"
    return "Miss (+0)"


def format_score(goals_a: int, goals_b: int) -> str:
    return f"{goals_a}:{goals_b}"
