"""
Storage Package

Persistence for saved reviews:
- database: engine, sessions and ORM models
- repository: review data access
"""

from code_reviewer.storage.database import (
    Base,
    Review,
    ReviewFile,
    ReviewResult,
    User,
    check_db,
    get_db,
    get_engine,
    init_db,
)
from code_reviewer.storage.repository import ReviewRepository, ReviewStoreError

__all__ = [
    "Base",
    "Review",
    "ReviewFile",
    "ReviewResult",
    "User",
    "check_db",
    "get_db",
    "get_engine",
    "init_db",
    "ReviewRepository",
    "ReviewStoreError",
]
