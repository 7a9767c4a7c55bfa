"""
Database initialization script.

Run this script to create the database, all tables and season 1.

Usage:
    python init_db.py
"""

from matchday.database import init_db
from matchday.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging()
    print("Initializing database...")
    init_db()
    print("Database initialization complete!")
