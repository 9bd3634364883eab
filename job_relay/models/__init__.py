"""ORM models for the job ledger."""

from .base import Base, make_engine, make_session_factory, normalize_database_url
from .config_entry import ConfigEntry
from .run_history import RunHistory
from .seen_job import SeenJob

__all__ = [
    "Base",
    "make_engine",
    "make_session_factory",
    "normalize_database_url",
    "ConfigEntry",
    "RunHistory",
    "SeenJob",
]
