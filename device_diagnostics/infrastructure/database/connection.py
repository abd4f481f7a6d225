"""
SQL engine shared by the SQL catalog and session repository.

DATABASE_URL selects the backend (SQLite locally, PostgreSQL in production).
"""

from sqlmodel import create_engine, SQLModel
from ...config import settings

# SQLite needs this to be shared with the FastAPI thread pool
_connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(settings.DATABASE_URL, echo=False, connect_args=_connect_args)


def init_db(bind=None):
    """Creates any missing tables. Safe to call on every startup."""
    SQLModel.metadata.create_all(bind or engine)
