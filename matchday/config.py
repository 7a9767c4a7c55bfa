"""
Runtime configuration for Matchday.

Values come from environment variables, optionally loaded from a .env file
at the repository root.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))

DEFAULT_DATABASE_DIR = os.path.join(BASE_DIR, "database")
DEFAULT_DATABASE_URL = f"sqlite:///{os.path.join(DEFAULT_DATABASE_DIR, 'matchday.db')}"


def _parse_ids(raw: Optional[str]) -> List[int]:
    """Parse a comma-separated list of user ids, skipping junk."""
    if not raw:
        return []
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if part.lstrip("-").isdigit():
            ids.append(int(part))
    return ids


class Config:
    """Settings read once at import time."""

    DATABASE_URL = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)

    ADMIN_IDS = _parse_ids(os.environ.get("ADMIN_IDS"))
    _super_admin = os.environ.get("SUPER_ADMIN_ID")
    SUPER_ADMIN_ID = int(_super_admin) if _super_admin else (ADMIN_IDS[0] if ADMIN_IDS else None)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Kickoff reminder window
    REMINDER_MIN_LEAD_MINUTES = int(os.environ.get("REMINDER_MIN_LEAD_MINUTES", "5"))
    REMINDER_MAX_LEAD_MINUTES = int(os.environ.get("REMINDER_MAX_LEAD_MINUTES", "60"))


config = Config()
