"""
Database Module

SQLAlchemy engine/session management and the ORM models for saved reviews.

Design Decisions:
- One cached engine per process, built from settings.database_url
- Request-scoped sessions handed out through a FastAPI dependency
- Result arrays stored in JSON columns (portable across SQLite and Postgres)
- Rows are only ever inserted and read
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Generator

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from code_reviewer.config import get_settings
from code_reviewer.logging_config import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware current time for column defaults."""
    return datetime.now(timezone.utc)


# =============================================================================
# ORM Models
# =============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    reviews = relationship("Review", back_populates="user")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    code = Column(Text, nullable=True)  # pasted snippet, if any
    language = Column(String(50), nullable=False, default="javascript")
    mode = Column(String(50), nullable=False, default="general")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="reviews")
    files = relationship(
        "ReviewFile",
        back_populates="review",
        order_by="ReviewFile.id",
        cascade="all, delete-orphan"
    )
    results = relationship(
        "ReviewResult",
        back_populates="review",
        order_by="ReviewResult.id",
        cascade="all, delete-orphan"
    )


class ReviewFile(Base):
    __tablename__ = "review_files"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id"), nullable=False, index=True)
    path = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    review = relationship("Review", back_populates="files")


class ReviewResult(Base):
    __tablename__ = "review_results"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id"), nullable=False, index=True)
    suggestions = Column(JSON, nullable=False, default=list)
    improvements = Column(JSON, nullable=False, default=list)
    security = Column(JSON, nullable=False, default=list)
    dependencies = Column(JSON, nullable=False, default=list)
    architecture = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    review = relationship("Review", back_populates="results")


# =============================================================================
# Engine & Sessions
# =============================================================================

def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections are shared with FastAPI's threadpool, and an
    in-memory SQLite database must live on a single connection.
    """
    kwargs = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in database_url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(database_url, **kwargs)


@lru_cache()
def get_engine() -> Engine:
    """Get the process-wide engine."""
    settings = get_settings()
    return build_engine(settings.database_url, echo=settings.database_echo)


@lru_cache()
def get_session_factory() -> sessionmaker:
    """Get the process-wide session factory."""
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


def init_db(engine: Engine = None) -> None:
    """Create any missing tables."""
    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized", dialect=engine.dialect.name)


def check_db(engine: Engine = None) -> None:
    """Run a trivial query; raises if the database is unreachable."""
    engine = engine or get_engine()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
