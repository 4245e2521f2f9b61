"""Database engine and session management."""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from pickup_orders.core.config import settings


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections are shared across request threads."""
    connect_args: dict[str, bool | float] = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30.0}
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(settings.database_url or "sqlite://")
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and ensure proper cleanup."""
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
