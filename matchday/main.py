"""
FastAPI main application entry point for Matchday.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from matchday.database import init_db
from matchday.errors import (
    ConflictError, InvariantViolation, MatchdayError, NegativeTotal,
    NotFoundError, PartialSettlementError, PermissionDenied, ValidationError
)
from matchday.logging_config import setup_logging
from matchday.routes import admins, leaderboard, matches, points, reminders, seasons, users

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Matchday",
    description="Scoring and season bookkeeping for a score prediction game",
    version="1.0.0"
)

# Register routes
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])
app.include_router(matches.router, prefix="/matches", tags=["Matches"])
app.include_router(seasons.router, prefix="/seasons", tags=["Seasons"])
app.include_router(points.router, prefix="/points", tags=["Points"])
app.include_router(reminders.router, prefix="/reminders", tags=["Reminders"])
app.include_router(admins.router, prefix="/admins", tags=["Admins"])


def _error_body(exc: Exception) -> dict:
    return {"error": type(exc).__name__, "detail": str(exc)}


def _status_for(exc: MatchdayError) -> int:
    if isinstance(exc, (ValidationError, NegativeTotal)):
        return 422
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, PermissionDenied):
        return 403
    return 500


@app.exception_handler(PartialSettlementError)
async def partial_settlement_handler(request: Request, exc: PartialSettlementError):
    body = _error_body(exc)
    body["match_id"] = exc.match_id
    body["succeeded"] = exc.succeeded
    body["failed"] = exc.failed
    return JSONResponse(status_code=500, content=body)


@app.exception_handler(MatchdayError)
async def matchday_error_handler(request: Request, exc: MatchdayError):
    status_code = _status_for(exc)
    if isinstance(exc, InvariantViolation) and status_code == 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content=_error_body(exc))


@app.on_event("startup")
async def startup_event():
    """Configure logging and initialize the database on startup."""
    setup_logging()
    init_db()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
