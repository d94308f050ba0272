"""
Database engine and session management.

Builds the SQLAlchemy engine from settings and exposes the FastAPI
session dependency.
"""
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from watukobu.core.config import get_settings
from watukobu.core.logging import get_logger

logger = get_logger(__name__)


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections are shared across threads."""
    kwargs = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **kwargs)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = None) -> None:
    """Create all tables that do not exist yet."""
    from watukobu.models.database import Base

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database schema ready", url=str((bind or engine).url))


def check_connection(db: Session) -> bool:
    """Run a trivial query to confirm the database answers."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False


def get_db() -> Generator[Session, None, None]:
    """Dependency to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
